"""Domain models (Pydantic v2).

These records are the schemas of the content flows: each flow validates its
input and its output against one of the models below.

Notes:
- Python attributes are snake_case; the camelCase names used by the web
  front-end are accepted and emitted as aliases.
- The models describe *what* a record is, never *how* it is produced.
"""

from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from pydantic.config import ConfigDict

DATA_URI_PATTERN = r"^data:[\w.+-]+/[\w.+-]+;base64,"
HEX_COLOR_PATTERN = r"^#(?:[0-9a-fA-F]{3}){1,2}$"


class FlowRecord(BaseModel):
    """Base for every flow input/output record."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


# ---------------------------------------------------------------------------
# Image moderation
# ---------------------------------------------------------------------------


class ImageModerationInput(FlowRecord):
    photo_data_uri: str = Field(
        ...,
        pattern=DATA_URI_PATTERN,
        description=(
            "A photo to be moderated, as a data URI that must include a MIME type "
            "and use Base64 encoding. Expected format: 'data:<mimetype>;base64,<encoded_data>'."
        ),
    )


class ImageModerationOutput(FlowRecord):
    is_appropriate: bool = Field(
        ...,
        description="Whether or not the image is appropriate for a professional photography portfolio.",
    )
    reason: str | None = Field(
        default=None,
        description=(
            "The reason why the image was flagged as inappropriate. "
            "This will be empty if the image is appropriate."
        ),
    )


# ---------------------------------------------------------------------------
# Caption generation
# ---------------------------------------------------------------------------


class GenerateCaptionInput(FlowRecord):
    photo_data_uri: str = Field(
        ...,
        pattern=DATA_URI_PATTERN,
        description=(
            "A photo to be captioned, as a data URI that must include a MIME type "
            "and use Base64 encoding. Expected format: 'data:<mimetype>;base64,<encoded_data>'."
        ),
    )


class GenerateCaptionOutput(FlowRecord):
    title: str = Field(..., description="A creative and professional title for the image.")
    description: str = Field(..., description="A brief, compelling description for the image.")


# ---------------------------------------------------------------------------
# Portfolio search
# ---------------------------------------------------------------------------


class PhotoCandidate(FlowRecord):
    id: str = Field(..., min_length=1, description="Document id of the photo.")
    title: str = Field(default="", description="Title shown in the portfolio.")


class AiSearchInput(FlowRecord):
    query: str = Field(..., description="The user's natural language search query.")
    photos: list[PhotoCandidate] = Field(
        ...,
        description="The list of available photos to search through.",
    )


class AiSearchOutput(FlowRecord):
    photo_ids: list[str] = Field(
        ...,
        description="An array of photo IDs that best match the search query, sorted by relevance.",
    )


# ---------------------------------------------------------------------------
# Theme customisation
# ---------------------------------------------------------------------------


class ThemeCustomizationInput(FlowRecord):
    primary_color: str = Field(
        ...,
        pattern=HEX_COLOR_PATTERN,
        description="The primary color of the theme, in hex format (e.g., #4B0082).",
    )
    background_color: str = Field(
        ...,
        pattern=HEX_COLOR_PATTERN,
        description="The background color of the theme, in hex format (e.g., #F0F0F0).",
    )
    accent_color: str = Field(
        ...,
        pattern=HEX_COLOR_PATTERN,
        description="The accent color of the theme, in hex format (e.g., #D8B4FE).",
    )
    headline_font: str = Field(..., min_length=1, description="The name of the font for headlines (e.g., Belleza).")
    body_font: str = Field(..., min_length=1, description="The name of the font for body text (e.g., Alegreya).")
    style_description: str | None = Field(
        default=None,
        description=(
            "Optional description of the desired website aesthetic, "
            "which will be used as additional prompt context."
        ),
    )


class ThemeCustomizationOutput(FlowRecord):
    updated_primary_color: str = Field(
        ..., pattern=HEX_COLOR_PATTERN, description="The AI-adjusted primary color in hex format."
    )
    updated_background_color: str = Field(
        ..., pattern=HEX_COLOR_PATTERN, description="The AI-adjusted background color in hex format."
    )
    updated_accent_color: str = Field(
        ..., pattern=HEX_COLOR_PATTERN, description="The AI-adjusted accent color in hex format."
    )
    updated_headline_font: str = Field(..., description="The AI-adjusted headline font name.")
    updated_body_font: str = Field(..., description="The AI-adjusted body font name.")
    design_notes: str = Field(
        ...,
        description="AI-generated notes and suggestions regarding the theme customization.",
    )


# ---------------------------------------------------------------------------
# Service description
# ---------------------------------------------------------------------------


class GenerateServiceDescriptionInput(FlowRecord):
    title: str = Field(
        ...,
        min_length=1,
        description='The title of the photography service (e.g., "Wedding Package", "Portrait Session").',
    )
    keywords: str | None = Field(
        default=None,
        description='Optional comma-separated keywords to guide the AI (e.g., "natural light, outdoor, candid").',
    )


class GenerateServiceDescriptionOutput(FlowRecord):
    description: str = Field(..., description="A compelling, professional description for the service.")
    features: list[str] = Field(
        ...,
        description="A list of 3-5 key features or deliverables for the service.",
    )


# ---------------------------------------------------------------------------
# Blog post
# ---------------------------------------------------------------------------


class GenerateBlogPostInput(FlowRecord):
    topic: str = Field(..., min_length=1, description="The main topic or title of the blog post.")
    photo_data_uri: str | None = Field(
        default=None,
        pattern=DATA_URI_PATTERN,
        description=(
            "An optional photo to inspire the blog post, as a data URI that must include "
            "a MIME type and use Base64 encoding."
        ),
    )


class GenerateBlogPostOutput(FlowRecord):
    title: str = Field(..., description="A creative and engaging title for the blog post.")
    slug: str = Field(
        ...,
        description='A URL-friendly slug for the blog post (e.g., "my-awesome-post").',
    )
    content: str = Field(..., description="The full content of the blog post, formatted in HTML.")
    excerpt: str = Field(..., description="A short, compelling summary of the blog post (1-2 sentences).")


# ---------------------------------------------------------------------------
# Storage CORS (non-AI)
# ---------------------------------------------------------------------------


class SetupCorsInput(FlowRecord):
    bucket_name: str = Field(
        ...,
        min_length=3,
        max_length=222,
        description="The name of the Google Cloud Storage bucket (e.g., 'my-bucket').",
    )
    origin: str = Field(
        ...,
        min_length=1,
        description="The origin URL to allow requests from (e.g., 'https://my-app.com').",
    )


class SetupCorsOutput(FlowRecord):
    success: bool = Field(..., description="Whether the CORS configuration was applied successfully.")
    message: str = Field(..., description="A message indicating the result of the operation.")


class CorsRule(FlowRecord):
    """One entry of a bucket's `cors` list, in Cloud Storage wire names."""

    origin: list[str]
    method: list[str]
    response_header: list[str]
    max_age_seconds: int


# ---------------------------------------------------------------------------
# Site records used by callers
# ---------------------------------------------------------------------------


class Photo(FlowRecord):
    """A portfolio photo as stored by the site."""

    id: str = Field(..., min_length=1)
    url: str = Field(default="")
    title: str = Field(default="")
    width: int = Field(default=0, ge=0)
    height: int = Field(default=0, ge=0)


class Theme(FlowRecord):
    """Site theme; the fonts default to the ones shipped with the site."""

    headline_font: str = "Belleza"
    body_font: str = "Alegreya"
    primary_color: str | None = Field(default=None, pattern=HEX_COLOR_PATTERN)
    background_color: str | None = Field(default=None, pattern=HEX_COLOR_PATTERN)
    accent_color: str | None = Field(default=None, pattern=HEX_COLOR_PATTERN)


class UploadReview(FlowRecord):
    """Outcome of reviewing an uploaded photo (moderation, then caption)."""

    moderation: ImageModerationOutput
    caption: GenerateCaptionOutput | None = None
    caption_error: str | None = None

    @property
    def approved(self) -> bool:
        return self.moderation.is_appropriate
