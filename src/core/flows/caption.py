"""Caption generation: a title and a short description for a photo."""

from __future__ import annotations

from typing import Any

from core.domain.models import GenerateCaptionInput, GenerateCaptionOutput
from core.services.flow_runner import FlowDefinition, FlowRunner
from core.services.prompt_renderer import PromptTemplate

NAME = "generate_caption"

PROMPT = """\
You are a professional photographer and content creator for the SnapVerse website. Your task is to analyze the provided image and generate a creative, professional title and a brief, compelling description for it.

The title should be evocative and catchy. The description should be 1-2 sentences and highlight the key elements or mood of the photograph.

Image: {{ media(photo_data_uri) }}
"""


def build_definition() -> FlowDefinition:
    return FlowDefinition(
        name=NAME,
        input_schema=GenerateCaptionInput,
        output_schema=GenerateCaptionOutput,
        prompt=PromptTemplate(PROMPT, schema=GenerateCaptionInput, name=NAME),
        description="Title and describe a photo.",
    )


async def generate_caption(
    runner: FlowRunner,
    value: GenerateCaptionInput | dict[str, Any],
) -> GenerateCaptionOutput:
    return await runner.invoke(NAME, value)  # type: ignore[return-value]
