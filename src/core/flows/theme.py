"""Theme suggestion: adjust palette and fonts following current design trends."""

from __future__ import annotations

from typing import Any

from core.domain.models import ThemeCustomizationInput, ThemeCustomizationOutput
from core.services.flow_runner import FlowDefinition, FlowRunner
from core.services.prompt_renderer import PromptTemplate

NAME = "theme_customization"

PROMPT = """\
You are an AI-powered theme customization tool for the SnapVerse photography website.

Based on current design trends and the following specifications, suggest adjustments to the color palette and fonts to create a modern and visually appealing website theme:

Primary Color: {{ primary_color }}
Background Color: {{ background_color }}
Accent Color: {{ accent_color }}
Headline Font: {{ headline_font }}
Body Font: {{ body_font }}
{% if style_description %}
Style Description: {{ style_description }}
{% endif %}

Provide the adjusted color palette (primary, background, and accent colors in hex format), updated font names for headlines and body text, and any relevant design notes.

Ensure the suggested theme is suitable for a photography portfolio website, emphasizing a clean, modern, and visually engaging design.

Output your values in JSON format.
"""


def build_definition() -> FlowDefinition:
    return FlowDefinition(
        name=NAME,
        input_schema=ThemeCustomizationInput,
        output_schema=ThemeCustomizationOutput,
        prompt=PromptTemplate(PROMPT, schema=ThemeCustomizationInput, name=NAME),
        description="Suggest an updated colour palette and font pairing.",
    )


async def customize_theme(
    runner: FlowRunner,
    value: ThemeCustomizationInput | dict[str, Any],
) -> ThemeCustomizationOutput:
    return await runner.invoke(NAME, value)  # type: ignore[return-value]
