"""Shared test fixtures.

Provides:
  - FakeModel: a GenerativeModel that returns queued answers and records calls
  - MockTransport for httpx (intercepts every request)
  - A FlowRunner wired with the fake model and a stub storage configurator
"""

from __future__ import annotations

import base64
import os
from typing import Any

import httpx
import pytest

from core.domain.models import SetupCorsInput, SetupCorsOutput
from core.flows import build_flow_registry
from core.interfaces.model_client import RenderedPrompt
from core.services.flow_runner import FlowRunner

# 1x1 transparent PNG
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)
PNG_DATA_URI = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii")


class FakeModel:
    """Returns queued answers in order; raises queued exceptions."""

    def __init__(self, answers: list[Any] | None = None) -> None:
        self.answers = list(answers or [])
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    async def generate(
        self,
        *,
        flow: str,
        prompt: RenderedPrompt,
        output_schema: dict[str, Any],
    ) -> Any:
        self.calls.append({"flow": flow, "prompt": prompt, "output_schema": output_schema})
        if not self.answers:
            raise AssertionError(f"unexpected model call for {flow}")
        answer = self.answers.pop(0)
        if isinstance(answer, BaseException):
            raise answer
        return answer

    async def aclose(self) -> None:
        self.closed = True


class StubStorage:
    def __init__(self, output: SetupCorsOutput | None = None) -> None:
        self.output = output or SetupCorsOutput(success=True, message="ok")
        self.records: list[SetupCorsInput] = []
        self.closed = False

    async def apply(self, record: SetupCorsInput) -> SetupCorsOutput:
        self.records.append(record)
        return self.output

    async def aclose(self) -> None:
        self.closed = True


class MockTransport(httpx.AsyncBaseTransport):
    """Mock HTTP transport that returns preconfigured responses.

    Each request pops the next response; when the list is exhausted a 500 is
    returned. Every request is kept in `requests` for assertions.
    """

    def __init__(self, responses: list[httpx.Response | Exception] | None = None) -> None:
        self.responses = list(responses or [])
        self.requests: list[httpx.Request] = []

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.responses:
            response = self.responses.pop(0)
            if isinstance(response, Exception):
                raise response
            response.stream = httpx.ByteStream(response.content)
            return response
        return httpx.Response(500, json={"error": "No more mock responses"})


@pytest.fixture
def png_data_uri() -> str:
    return PNG_DATA_URI


@pytest.fixture
def fake_model() -> FakeModel:
    return FakeModel()


@pytest.fixture
def stub_storage() -> StubStorage:
    return StubStorage()


@pytest.fixture
def runner(fake_model: FakeModel, stub_storage: StubStorage) -> FlowRunner:
    registry = build_flow_registry(storage=stub_storage)
    return FlowRunner(registry=registry, model=fake_model, resources=[fake_model, stub_storage])


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """Keep tests away from real env vars and the user's .env."""

    for key in list(os.environ):
        if key.startswith("SNAPVERSE_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.chdir(tmp_path)
