"""Schema validation shared by flow inputs and outputs.

Pydantic models are the schemas. This module turns a pydantic failure into one
of the flow error kinds, reporting only the first failing field.
"""

from __future__ import annotations

from typing import Any, TypeVar

import pydantic
from pydantic import BaseModel

from core.domain.errors import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


def _field_path(loc: tuple[int | str, ...]) -> str:
    return ".".join(str(part) for part in loc)


def validate_record(
    schema: type[ModelT],
    value: Any,
    *,
    flow: str,
    error_cls: type[ValidationError] = ValidationError,
) -> ModelT:
    """Return `value` as a validated `schema` instance.

    `value` may be a mapping, an instance of `schema` or any object pydantic
    accepts. Raises `error_cls` with the first failing field.
    """

    if isinstance(value, schema):
        return value
    if isinstance(value, BaseModel):
        value = value.model_dump(by_alias=True)
    try:
        return schema.model_validate(value)
    except pydantic.ValidationError as exc:
        errors = exc.errors(include_url=False)
        first = errors[0] if errors else {"loc": (), "msg": str(exc)}
        raise error_cls(
            flow=flow,
            field=_field_path(tuple(first.get("loc", ()))),
            message=str(first.get("msg", "invalid value")),
        ) from exc


def output_json_schema(schema: type[BaseModel]) -> dict[str, Any]:
    """JSON schema sent to the model as structured-output constraint (wire names)."""

    return schema.model_json_schema(by_alias=True, mode="validation")
