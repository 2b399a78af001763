"""Image moderation for uploads to the portfolio."""

from __future__ import annotations

from typing import Any

from core.domain.models import ImageModerationInput, ImageModerationOutput
from core.services.flow_runner import FlowDefinition, FlowRunner
from core.services.prompt_renderer import PromptTemplate

NAME = "content_moderation"

PROMPT = """\
You are a content moderator for a professional photography website called SnapVerse. Your task is to analyze the provided image and determine if it is appropriate for a general audience and a professional portfolio.

The following content is considered inappropriate:
- Nudity or sexually explicit content
- Graphic violence or gore
- Hate speech or symbols
- Depictions of illegal activities

Analyze the image and set the 'isAppropriate' flag to false if it contains any inappropriate content. If you flag an image, provide a brief, professional reason in the 'reason' field. If the image is appropriate, set 'isAppropriate' to true and leave the reason empty.

Image: {{ media(photo_data_uri) }}
"""


def build_definition() -> FlowDefinition:
    return FlowDefinition(
        name=NAME,
        input_schema=ImageModerationInput,
        output_schema=ImageModerationOutput,
        prompt=PromptTemplate(PROMPT, schema=ImageModerationInput, name=NAME),
        description="Decide whether an image is fit for a professional portfolio.",
    )


async def moderate_image(
    runner: FlowRunner,
    value: ImageModerationInput | dict[str, Any],
) -> ImageModerationOutput:
    return await runner.invoke(NAME, value)  # type: ignore[return-value]
