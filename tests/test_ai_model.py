"""OpenAI-compatible model adapter, over a mocked HTTP transport."""

import json

import httpx
import pytest
from openai import AsyncOpenAI

from adapters.ai_model import OpenAIModelClient, build_message_content, build_model_client
from core.config import AppSettings
from core.domain.errors import ModelInvocationError, OutputValidationError
from core.domain.models import GenerateBlogPostInput
from core.flows import blog_post
from core.interfaces.model_client import GenerativeModel, MediaPart, RenderedPrompt

from tests.conftest import PNG_DATA_URI, MockTransport

SCHEMA = {"type": "object", "properties": {"photoIds": {"type": "array"}}, "required": ["photoIds"]}


def completion(content):
    return httpx.Response(
        200,
        json={
            "id": "chatcmpl-1",
            "object": "chat.completion",
            "created": 0,
            "model": "test-model",
            "choices": [
                {
                    "index": 0,
                    "message": {"role": "assistant", "content": content},
                    "finish_reason": "stop",
                }
            ],
        },
    )


def make_client(transport: MockTransport) -> OpenAIModelClient:
    openai_client = AsyncOpenAI(
        api_key="test-key",
        base_url="https://llm.test/v1",
        max_retries=0,
        http_client=httpx.AsyncClient(transport=transport),
    )
    return OpenAIModelClient(client=openai_client, model="test-model", temperature=0.2)


class TestMessageContent:
    def test_text_only_prompt_stays_a_string(self):
        assert build_message_content(RenderedPrompt(text="hello")) == "hello"

    def test_parts_become_text_and_image_parts_in_order(self):
        prompt = RenderedPrompt(
            text="Before\nImage: [image:1]\nAfter",
            media=("data:image/png;base64,AAA",),
            parts=("Before\nImage: ", MediaPart(index=1, uri="data:image/png;base64,AAA"), "\nAfter"),
        )
        assert build_message_content(prompt) == [
            {"type": "text", "text": "Before\nImage:"},
            {"type": "image_url", "image_url": {"url": "data:image/png;base64,AAA"}},
            {"type": "text", "text": "After"},
        ]

    def test_prompt_without_parts_appends_media(self):
        prompt = RenderedPrompt(text="Describe this [image:1]", media=("data:image/jpeg;base64,BBB",))
        assert build_message_content(prompt) == [
            {"type": "text", "text": "Describe this [image:1]"},
            {"type": "image_url", "image_url": {"url": "data:image/jpeg;base64,BBB"}},
        ]

    def test_marker_typed_into_a_field_stays_text(self):
        template = blog_post.build_definition().prompt
        prompt = template.render(GenerateBlogPostInput(topic="compare with [image:1]", photo_data_uri=PNG_DATA_URI))

        content = build_message_content(prompt)

        images = [part for part in content if part["type"] == "image_url"]
        texts = "\n".join(part["text"] for part in content if part["type"] == "text")
        assert len(images) == len(prompt.media) == 1
        assert "Topic: compare with [image:1]" in texts
        assert "Inspiration Image:" in texts


class TestGenerate:
    async def test_sends_structured_output_request(self):
        transport = MockTransport([completion('{"photoIds": ["a"]}')])
        client = make_client(transport)

        prompt = RenderedPrompt(text="Find: [image:1]", media=("data:image/png;base64,AAA",))
        result = await client.generate(flow="ai_search", prompt=prompt, output_schema=SCHEMA)

        assert result == {"photoIds": ["a"]}
        assert len(transport.requests) == 1
        request = transport.requests[0]
        assert request.method == "POST"
        assert request.url.path.endswith("/chat/completions")
        assert request.headers["authorization"] == "Bearer test-key"

        body = json.loads(request.content)
        assert body["model"] == "test-model"
        assert body["temperature"] == 0.2
        assert body["response_format"] == {
            "type": "json_schema",
            "json_schema": {"name": "ai_search", "schema": SCHEMA, "strict": False},
        }
        content = body["messages"][0]["content"]
        assert {"type": "image_url", "image_url": {"url": "data:image/png;base64,AAA"}} in content
        await client.aclose()

    async def test_fenced_json_is_extracted(self):
        transport = MockTransport([completion('Here you go:\n```json\n{"photoIds": []}\n```')])
        client = make_client(transport)

        result = await client.generate(flow="ai_search", prompt=RenderedPrompt(text="q"), output_schema=SCHEMA)

        assert result == {"photoIds": []}

    async def test_non_json_answer_is_output_error(self):
        transport = MockTransport([completion("I could not find anything.")])
        client = make_client(transport)

        with pytest.raises(OutputValidationError):
            await client.generate(flow="ai_search", prompt=RenderedPrompt(text="q"), output_schema=SCHEMA)

    async def test_empty_answer_is_output_error(self):
        transport = MockTransport([completion("")])
        client = make_client(transport)

        with pytest.raises(OutputValidationError, match="empty"):
            await client.generate(flow="ai_search", prompt=RenderedPrompt(text="q"), output_schema=SCHEMA)

    async def test_auth_failure_is_not_retried(self):
        transport = MockTransport(
            [
                httpx.Response(401, json={"error": {"message": "invalid api key"}}),
                completion('{"photoIds": []}'),
            ]
        )
        client = make_client(transport)

        with pytest.raises(ModelInvocationError) as exc_info:
            await client.generate(flow="ai_search", prompt=RenderedPrompt(text="q"), output_schema=SCHEMA)

        assert exc_info.value.flow == "ai_search"
        assert "401" in str(exc_info.value)
        assert len(transport.requests) == 1

    async def test_transport_failure(self):
        transport = MockTransport([httpx.ConnectError("connection refused")])
        client = make_client(transport)

        with pytest.raises(ModelInvocationError):
            await client.generate(flow="ai_search", prompt=RenderedPrompt(text="q"), output_schema=SCHEMA)


class TestBuildModelClient:
    async def test_missing_key_fails_every_call(self):
        settings = AppSettings(_env_file=None)
        client = build_model_client(settings)

        assert isinstance(client, GenerativeModel)
        with pytest.raises(ModelInvocationError, match="SNAPVERSE_AI_API_KEY"):
            await client.generate(flow="ai_search", prompt=RenderedPrompt(text="q"), output_schema=SCHEMA)

    async def test_local_server_needs_no_key(self):
        transport = MockTransport([completion('{"photoIds": ["z"]}')])
        settings = AppSettings(_env_file=None, ai_base_url="http://localhost:11434/v1", ai_model="llava")

        client = build_model_client(settings, http_client=httpx.AsyncClient(transport=transport))
        result = await client.generate(flow="ai_search", prompt=RenderedPrompt(text="q"), output_schema=SCHEMA)

        assert result == {"photoIds": ["z"]}
        assert client.model == "llava"
        assert transport.requests[0].url.host == "localhost"
        await client.aclose()

    def test_settings_from_environment(self, monkeypatch):
        monkeypatch.setenv("SNAPVERSE_AI_MODEL", "gpt-4o-mini")
        monkeypatch.setenv("SNAPVERSE_AI_API_KEY", "sk-test")

        client = build_model_client(AppSettings(_env_file=None))

        assert client.model == "gpt-4o-mini"
