"""Portfolio search: rank photos against a natural-language query."""

from __future__ import annotations

from typing import Any

from core.domain.models import AiSearchInput, AiSearchOutput
from core.services.flow_runner import FlowDefinition, FlowRunner
from core.services.prompt_renderer import PromptTemplate

NAME = "ai_search"

PROMPT = """\
You are an intelligent search assistant for the SnapVerse photography portfolio. Your task is to find photos that match the user's search query from the provided list of photos.

Analyze the user's query: {{ query }}

Here is the list of available photos with their IDs and titles:
{% for photo in photos %}
- ID: {{ photo.id }}, Title: "{{ photo.title }}"
{% endfor %}

Return an array of photo IDs that best match the query. The results should be relevant to the query's theme, objects, or concepts. For example, if the query is "peaceful water", photos with titles like "Ocean's Breath" or "Whispering Woods" (if it has a lake) would be good matches. Only return the IDs of the photos that exist in the provided list. If no photos match, return an empty array.

Output your response in JSON format.
"""


def empty_query_fast_path(record: AiSearchInput) -> AiSearchOutput | None:
    """A blank query matches every candidate, in input order, without a model call."""

    if record.query.strip():
        return None
    return AiSearchOutput(photo_ids=[photo.id for photo in record.photos])


def build_definition() -> FlowDefinition:
    return FlowDefinition(
        name=NAME,
        input_schema=AiSearchInput,
        output_schema=AiSearchOutput,
        prompt=PromptTemplate(PROMPT, schema=AiSearchInput, name=NAME),
        fast_path=empty_query_fast_path,
        description="Rank portfolio photos against a natural-language query.",
    )


async def search_photos(runner: FlowRunner, value: AiSearchInput | dict[str, Any]) -> AiSearchOutput:
    return await runner.invoke(NAME, value)  # type: ignore[return-value]
