"""Generative model adapter (OpenAI-compatible SDK).

Responsibilities:
- Turn a `RenderedPrompt` into a chat request (its text segments and one image
  part per attached data URI, in template order).
- Ask for structured output with the flow's JSON schema as `response_format`.
- Decode the JSON answer. Validation against the schema is left to the runner.

Gemini is reached through its OpenAI-compatible endpoint by default; any other
compatible provider (OpenAI, Groq, Ollama...) works by changing the settings.
The client is built with `max_retries=0`: a failed call fails the flow.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

import httpx
from openai import APIError, AsyncOpenAI

from core.config import AppSettings
from core.domain.errors import ModelInvocationError, OutputValidationError
from core.interfaces.model_client import MediaPart, RenderedPrompt

logger = logging.getLogger(__name__)

_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL | re.IGNORECASE)


def _is_local_base_url(url: str) -> bool:
    url_l = (url or "").strip().lower()
    return url_l.startswith("http://localhost") or url_l.startswith("http://127.0.0.1") or url_l.startswith(
        "http://0.0.0.0"
    )


def _extract_json_object(text: str) -> str:
    """Return the first JSON object present in the provider response."""

    match = _JSON_FENCE_RE.search(text)
    if match:
        return match.group(1).strip()

    stripped = text.strip()
    if stripped.startswith("{") and stripped.endswith("}"):
        return stripped

    start = stripped.find("{")
    end = stripped.rfind("}")
    if 0 <= start < end:
        candidate = stripped[start : end + 1]
        try:
            json.loads(candidate)
            return candidate
        except json.JSONDecodeError:
            pass

    raise ValueError("Could not locate a valid JSON object in the AI provider response.")


def build_message_content(prompt: RenderedPrompt) -> str | list[dict[str, Any]]:
    """Chat `content` for a rendered prompt.

    Plain prompts stay a string. Prompts with media become a list of text and
    `image_url` parts following `prompt.parts`; a prompt built without parts
    sends its text first and then every attached image.
    """

    if not prompt.media:
        return prompt.text

    segments = prompt.parts or (
        prompt.text,
        *(MediaPart(index=i, uri=uri) for i, uri in enumerate(prompt.media, start=1)),
    )
    parts: list[dict[str, Any]] = []
    for segment in segments:
        if isinstance(segment, MediaPart):
            parts.append({"type": "image_url", "image_url": {"url": segment.uri}})
            continue
        text = segment.strip()
        if text:
            parts.append({"type": "text", "text": text})
    return parts


class OpenAIModelClient:
    """`GenerativeModel` implementation over `openai.AsyncOpenAI`."""

    def __init__(
        self,
        *,
        client: AsyncOpenAI | None,
        model: str,
        temperature: float = 0.7,
    ) -> None:
        self._client = client
        self.model = model
        self.temperature = temperature

    async def generate(
        self,
        *,
        flow: str,
        prompt: RenderedPrompt,
        output_schema: dict[str, Any],
    ) -> Any:
        if self._client is None:
            raise ModelInvocationError(flow=flow, message="missing AI API key (set SNAPVERSE_AI_API_KEY)")

        messages = [{"role": "user", "content": build_message_content(prompt)}]
        response_format = {
            "type": "json_schema",
            "json_schema": {"name": flow, "schema": output_schema, "strict": False},
        }

        logger.debug("Calling %s for flow %s (%d media)", self.model, flow, len(prompt.media))
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=messages,  # type: ignore[arg-type]
                temperature=self.temperature,
                response_format=response_format,  # type: ignore[arg-type]
            )
        except APIError as exc:
            status = getattr(exc, "status_code", None)
            detail = f"HTTP {status}: {exc.message}" if status else exc.message
            raise ModelInvocationError(flow=flow, message=detail) from exc

        if not response.choices:
            raise OutputValidationError(flow=flow, field="", message="model returned no choices")
        content = (response.choices[0].message.content or "").strip()
        if not content:
            raise OutputValidationError(flow=flow, field="", message="model returned an empty response")

        try:
            return json.loads(_extract_json_object(content))
        except (json.JSONDecodeError, ValueError) as exc:
            raise OutputValidationError(flow=flow, field="", message=str(exc)) from exc

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()


def build_model_client(
    settings: AppSettings | None = None,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> OpenAIModelClient:
    """Create the model client from settings.

    Without an API key, local OpenAI-compatible servers get a dummy key; hosted
    providers get a client that fails every call with `ModelInvocationError`.
    """

    settings = settings or AppSettings()
    api_key = (settings.ai_api_key or "").strip()
    if not api_key and _is_local_base_url(settings.ai_base_url):
        api_key = "local"

    client: AsyncOpenAI | None = None
    if api_key:
        client = AsyncOpenAI(
            api_key=api_key,
            base_url=settings.ai_base_url,
            timeout=settings.ai_timeout_seconds,
            max_retries=0,
            http_client=http_client,
        )
    else:
        logger.warning("No AI API key configured; model-backed flows will fail")

    return OpenAIModelClient(client=client, model=settings.ai_model, temperature=settings.ai_temperature)
