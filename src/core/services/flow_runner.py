"""Flow definitions, the explicit registry and the invocation pipeline.

A flow is a named (input schema, output schema, prompt template) triple. The
runner validates the input, renders the prompt, asks the model for a
structured answer and validates that answer. Nothing is retried: the first
failure is raised to the caller as one of the `core.domain.errors` kinds.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterator, Mapping

from pydantic import BaseModel

from core.domain.errors import (
    FlowError,
    InputValidationError,
    ModelInvocationError,
    OutputValidationError,
    UnknownFlowError,
)
from core.interfaces.model_client import GenerativeModel
from core.services.prompt_renderer import PromptTemplate
from core.services.schema_validator import output_json_schema, validate_record

logger = logging.getLogger(__name__)

FastPath = Callable[[Any], "BaseModel | Mapping[str, Any] | None"]
Handler = Callable[[Any], Awaitable["BaseModel | Mapping[str, Any]"]]


@dataclass(frozen=True)
class FlowDefinition:
    """Immutable description of one flow.

    Exactly one of `prompt` (model-backed flow) or `handler` (utility flow)
    must be set. `fast_path` may answer without calling the model by returning
    a result instead of None.
    """

    name: str
    input_schema: type[BaseModel]
    output_schema: type[BaseModel]
    prompt: PromptTemplate | None = None
    handler: Handler | None = None
    fast_path: FastPath | None = None
    description: str = ""

    def __post_init__(self) -> None:
        if (self.prompt is None) == (self.handler is None):
            raise ValueError(f"flow {self.name!r} needs exactly one of prompt or handler")
        if self.prompt is not None and self.prompt.schema is not self.input_schema:
            raise ValueError(f"flow {self.name!r}: prompt is compiled against another schema")

    @property
    def uses_model(self) -> bool:
        return self.prompt is not None


class FlowRegistry:
    """Mapping from flow name to definition, filled by explicit `register` calls."""

    def __init__(self, definitions: list[FlowDefinition] | None = None) -> None:
        self._flows: dict[str, FlowDefinition] = {}
        for definition in definitions or []:
            self.register(definition)

    def register(self, definition: FlowDefinition) -> FlowDefinition:
        if definition.name in self._flows:
            raise ValueError(f"flow {definition.name!r} is already registered")
        self._flows[definition.name] = definition
        return definition

    def get(self, name: str) -> FlowDefinition:
        try:
            return self._flows[name]
        except KeyError:
            raise UnknownFlowError(name) from None

    def names(self) -> list[str]:
        return sorted(self._flows)

    def __contains__(self, name: object) -> bool:
        return name in self._flows

    def __iter__(self) -> Iterator[FlowDefinition]:
        return iter(self._flows[name] for name in self.names())

    def __len__(self) -> int:
        return len(self._flows)


async def invoke(
    definition: FlowDefinition,
    value: Any,
    *,
    model: GenerativeModel | None = None,
) -> BaseModel:
    """Run one flow invocation and return its validated output record."""

    name = definition.name
    record = validate_record(
        definition.input_schema,
        value,
        flow=name,
        error_cls=InputValidationError,
    )

    if definition.fast_path is not None:
        shortcut = definition.fast_path(record)
        if shortcut is not None:
            logger.info("Flow %s answered by its fast path", name)
            return validate_record(
                definition.output_schema,
                shortcut,
                flow=name,
                error_cls=OutputValidationError,
            )

    if definition.handler is not None:
        result = await definition.handler(record)
        return validate_record(
            definition.output_schema,
            result,
            flow=name,
            error_cls=OutputValidationError,
        )

    assert definition.prompt is not None
    if model is None:
        raise ModelInvocationError(flow=name, message="no model client configured")

    prompt = definition.prompt.render(record)
    started = time.perf_counter()
    try:
        raw = await model.generate(
            flow=name,
            prompt=prompt,
            output_schema=output_json_schema(definition.output_schema),
        )
    except FlowError:
        raise
    except Exception as exc:
        logger.warning("Flow %s: model call failed: %s", name, exc)
        raise ModelInvocationError(flow=name, message=str(exc) or type(exc).__name__) from exc

    logger.info("Flow %s: model answered in %.2fs", name, time.perf_counter() - started)
    if raw is None:
        raise OutputValidationError(flow=name, field="", message="model returned no structured output")
    return validate_record(
        definition.output_schema,
        raw,
        flow=name,
        error_cls=OutputValidationError,
    )


class FlowRunner:
    """Invokes registered flows by name against one model client.

    Owns the lifecycle of the clients handed to it: create at process start
    (see `from_settings`), dispose with `aclose()` or `async with`.
    """

    def __init__(
        self,
        *,
        registry: FlowRegistry,
        model: GenerativeModel | None = None,
        resources: list[Any] | None = None,
    ) -> None:
        self.registry = registry
        self.model = model
        self._resources = list(resources or [])
        self._closed = False

    @classmethod
    def from_settings(cls, settings: Any = None) -> "FlowRunner":
        """Build the model client, the storage adapter and the full registry."""

        from adapters.ai_model import build_model_client  # noqa: PLC0415
        from adapters.storage_cors import StorageCorsConfigurator  # noqa: PLC0415
        from core.config import AppSettings  # noqa: PLC0415
        from core.flows import build_flow_registry  # noqa: PLC0415

        settings = settings or AppSettings()
        model = build_model_client(settings)
        storage = StorageCorsConfigurator.from_settings(settings)
        registry = build_flow_registry(storage=storage)
        return cls(registry=registry, model=model, resources=[model, storage])

    async def invoke(self, name: str, value: Any) -> BaseModel:
        if self._closed:
            raise RuntimeError("FlowRunner is closed")
        definition = self.registry.get(name)
        logger.debug("Invoking flow %s", name)
        return await invoke(definition, value, model=self.model)

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        for resource in reversed(self._resources):
            close = getattr(resource, "aclose", None)
            if close is not None:
                await close()

    async def __aenter__(self) -> "FlowRunner":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
