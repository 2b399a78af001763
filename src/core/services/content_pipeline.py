"""Admin-side workflows built on top of the content flows.

These helpers do what the admin panel and the public portfolio do with flow
results, so that scripts, the CLI and tests share one implementation:

- reviewing an upload (moderate first, caption only approved images);
- searching the portfolio and mapping the ranked ids back to photos;
- folding a theme suggestion into the stored theme;
- tidying a generated blog post before it is saved (slug normalisation).
"""

from __future__ import annotations

import logging
import re
import unicodedata
from typing import Sequence

from core.domain.errors import FlowError
from core.domain.models import (
    AiSearchInput,
    GenerateBlogPostOutput,
    GenerateCaptionInput,
    ImageModerationInput,
    Photo,
    PhotoCandidate,
    Theme,
    ThemeCustomizationInput,
    ThemeCustomizationOutput,
    UploadReview,
)
from core.flows import generate_caption, moderate_image, search_photos
from core.services.flow_runner import FlowRunner

logger = logging.getLogger(__name__)

_SLUG_SEPARATORS_RE = re.compile(r"[^a-z0-9]+")

DEFAULT_STYLE_DESCRIPTION = "A clean, modern, and visually engaging design for a photography portfolio."

DEFAULT_THEME_REQUEST = ThemeCustomizationInput(
    primary_color="#4B0082",
    background_color="#F0F0F0",
    accent_color="#D8B4FE",
    headline_font="Belleza",
    body_font="Alegreya",
    style_description=DEFAULT_STYLE_DESCRIPTION,
)


async def review_upload(
    runner: FlowRunner,
    *,
    photo_data_uri: str,
    with_caption: bool = True,
) -> UploadReview:
    """Moderate an uploaded image and, when it is approved, caption it.

    Moderation errors propagate. A caption failure does not reject an approved
    image: it is recorded in `caption_error` so the uploader can type a title.
    """

    moderation = await moderate_image(runner, ImageModerationInput(photo_data_uri=photo_data_uri))
    if not moderation.is_appropriate:
        logger.info("Upload rejected by moderation: %s", moderation.reason or "no reason given")
        return UploadReview(moderation=moderation)

    if not with_caption:
        return UploadReview(moderation=moderation)

    try:
        caption = await generate_caption(runner, GenerateCaptionInput(photo_data_uri=photo_data_uri))
    except FlowError as exc:
        logger.warning("Captioning failed for an approved upload: %s", exc)
        return UploadReview(moderation=moderation, caption_error=str(exc))
    return UploadReview(moderation=moderation, caption=caption)


async def search_portfolio(
    runner: FlowRunner,
    *,
    query: str,
    photos: Sequence[Photo],
) -> list[Photo]:
    """Return the photos matching `query`, in portfolio order.

    Ids the model invents are dropped. A blank query returns every photo.
    """

    candidates = [PhotoCandidate(id=photo.id, title=photo.title or "") for photo in photos]
    result = await search_photos(runner, AiSearchInput(query=query, photos=candidates))
    matched = set(result.photo_ids)
    found = [photo for photo in photos if photo.id in matched]
    unknown = matched - {photo.id for photo in photos}
    if unknown:
        logger.debug("Search returned %d unknown photo ids", len(unknown))
    return found


def apply_theme_suggestion(theme: Theme, suggestion: ThemeCustomizationOutput) -> Theme:
    """Return `theme` updated with a model suggestion."""

    return theme.model_copy(
        update={
            "primary_color": suggestion.updated_primary_color,
            "background_color": suggestion.updated_background_color,
            "accent_color": suggestion.updated_accent_color,
            "headline_font": suggestion.updated_headline_font,
            "body_font": suggestion.updated_body_font,
        }
    )


def slugify(text: str) -> str:
    """Lower-case, ASCII-only, hyphen-separated version of `text`."""

    ascii_text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    return _SLUG_SEPARATORS_RE.sub("-", ascii_text.lower()).strip("-")


def tidy_blog_post(post: GenerateBlogPostOutput) -> GenerateBlogPostOutput:
    """Return `post` with a URL-safe slug, derived from the title when the model left it blank."""

    slug = slugify(post.slug) or slugify(post.title)
    if slug == post.slug:
        return post
    logger.debug("Normalised blog slug %r -> %r", post.slug, slug)
    return post.model_copy(update={"slug": slug})
