"""Contract for generative model clients.

A `Protocol` keeps the flow runner independent from the provider SDK and lets
tests substitute a fake client that records calls.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class MediaPart:
    """An image attached by the template, 1-based `index` in attachment order."""

    index: int
    uri: str


@dataclass(frozen=True)
class RenderedPrompt:
    """Prompt text plus the image data URIs attached to it, in template order.

    `text` shows each attachment as an `[image:N]` marker and is meant for
    logs. `parts` is the same prompt split into text segments and
    `MediaPart`s; clients build messages from it, never by parsing `text`.
    """

    text: str
    media: tuple[str, ...] = field(default_factory=tuple)
    parts: tuple[str | MediaPart, ...] = field(default_factory=tuple)


@runtime_checkable
class GenerativeModel(Protocol):
    """Minimal contract for a structured-output model call.

    Rules:
    - `generate` is async because it performs network I/O.
    - It returns the decoded JSON value produced by the model; validation
      against the output schema is the caller's job.
    - Any failure raises; implementations do not retry.
    """

    async def generate(
        self,
        *,
        flow: str,
        prompt: RenderedPrompt,
        output_schema: dict[str, Any],
    ) -> Any:
        ...
