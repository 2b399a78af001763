"""Storage CORS configuration (utility flow, no model involved)."""

from __future__ import annotations

from typing import Any, Protocol

from core.domain.models import SetupCorsInput, SetupCorsOutput
from core.services.flow_runner import FlowDefinition, FlowRunner

NAME = "setup_cors"


class CorsConfigurator(Protocol):
    async def apply(self, record: SetupCorsInput) -> SetupCorsOutput:
        ...


def build_definition(storage: CorsConfigurator) -> FlowDefinition:
    return FlowDefinition(
        name=NAME,
        input_schema=SetupCorsInput,
        output_schema=SetupCorsOutput,
        handler=storage.apply,
        description="Allow an origin to read and write a storage bucket (CORS).",
    )


async def setup_cors(runner: FlowRunner, value: SetupCorsInput | dict[str, Any]) -> SetupCorsOutput:
    return await runner.invoke(NAME, value)  # type: ignore[return-value]
