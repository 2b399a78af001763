"""Blog post generation, optionally inspired by a photo."""

from __future__ import annotations

from typing import Any

from core.domain.models import GenerateBlogPostInput, GenerateBlogPostOutput
from core.services.flow_runner import FlowDefinition, FlowRunner
from core.services.prompt_renderer import PromptTemplate

NAME = "generate_blog_post"

PROMPT = """\
You are an expert copywriter and blogger for a professional photography website called SnapVerse. Your task is to write a compelling blog post based on the provided topic.

Topic: {{ topic }}
{% if photo_data_uri %}
Inspiration Image: {{ media(photo_data_uri) }}
Use the image as the primary inspiration for the tone, mood, and subject of the post.
{% endif %}

Please generate the following:
1.  A creative and SEO-friendly 'title' for the blog post.
2.  A URL-friendly 'slug'.
3.  A short, engaging 'excerpt' (1-2 sentences).
4.  The full 'content' of the blog post. The content should be well-structured, at least 3 paragraphs long, and formatted in HTML. Use tags like <h2> for subheadings and <p> for paragraphs.

The tone should be professional yet approachable, appealing to potential photography clients. Write with passion and expertise about the art of photography.

Output your response in JSON format.
"""


def build_definition() -> FlowDefinition:
    return FlowDefinition(
        name=NAME,
        input_schema=GenerateBlogPostInput,
        output_schema=GenerateBlogPostOutput,
        prompt=PromptTemplate(PROMPT, schema=GenerateBlogPostInput, name=NAME),
        description="Draft a blog post (title, slug, excerpt, HTML content).",
    )


async def generate_blog_post(
    runner: FlowRunner,
    value: GenerateBlogPostInput | dict[str, Any],
) -> GenerateBlogPostOutput:
    return await runner.invoke(NAME, value)  # type: ignore[return-value]
