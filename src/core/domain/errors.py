"""Error kinds raised by content flows.

Every failure of `FlowRunner.invoke` surfaces as one of these, so callers can
catch `FlowError` once and report it.
"""

from __future__ import annotations


class FlowError(Exception):
    """Base class for every flow failure."""


class ValidationError(FlowError):
    """A record did not match its schema.

    `field` is the dotted path of the first failing field (empty for
    whole-record failures) and `message` the human readable reason.
    """

    kind = "validation"

    def __init__(self, *, flow: str, field: str, message: str) -> None:
        self.flow = flow
        self.field = field
        self.message = message
        where = f" at '{field}'" if field else ""
        super().__init__(f"{flow}: {self.kind} failed{where}: {message}")


class InputValidationError(ValidationError):
    """Caller supplied data that does not match the flow's input schema."""

    kind = "input validation"


class OutputValidationError(ValidationError):
    """The model (or handler) returned data that does not match the output schema."""

    kind = "output validation"


class ModelInvocationError(FlowError):
    """The call to the external model failed (network, auth, quota...)."""

    def __init__(self, *, flow: str, message: str) -> None:
        self.flow = flow
        self.message = message
        super().__init__(f"{flow}: model invocation failed: {message}")


class TemplateError(FlowError):
    """A prompt template references an unknown field or uses an unsupported construct."""


class UnknownFlowError(FlowError, KeyError):
    """No flow is registered under the requested name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"unknown flow: {name!r}")

    def __str__(self) -> str:
        return self.args[0]
