"""Service (photography package) description and feature list."""

from __future__ import annotations

from typing import Any

from core.domain.models import GenerateServiceDescriptionInput, GenerateServiceDescriptionOutput
from core.services.flow_runner import FlowDefinition, FlowRunner
from core.services.prompt_renderer import PromptTemplate

NAME = "generate_service_description"

PROMPT = """\
You are a professional copywriter for the SnapVerse photography website. Your task is to generate a compelling service description and a list of features for a photography package.

Service Title: {{ title }}
{% if keywords %}
Keywords: {{ keywords }}
{% endif %}

Based on the title and keywords, generate the following:
1.  A professional and enticing 'description' for the service. It should be about 1-2 sentences long.
2.  A list of 3-5 key 'features' that would be included in this package. These should be concise and highlight the value to the client.

For example, if the title is "Newborn Photography", features could include "3-hour in-home session", "Access to props and wraps", "20 high-resolution edited images", and "Online viewing gallery".

Output your response in JSON format.
"""


def build_definition() -> FlowDefinition:
    return FlowDefinition(
        name=NAME,
        input_schema=GenerateServiceDescriptionInput,
        output_schema=GenerateServiceDescriptionOutput,
        prompt=PromptTemplate(PROMPT, schema=GenerateServiceDescriptionInput, name=NAME),
        description="Write the description and key features of a photography package.",
    )


async def generate_service_description(
    runner: FlowRunner,
    value: GenerateServiceDescriptionInput | dict[str, Any],
) -> GenerateServiceDescriptionOutput:
    return await runner.invoke(NAME, value)  # type: ignore[return-value]
