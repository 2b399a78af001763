"""Prompt templates for content flows.

Templates use a deliberately small subset of Jinja2, checked when the template
is compiled against its input schema:

- ``{{ field }}`` and ``{{ item.prop }}`` interpolation;
- ``{% if field %}...{% endif %}`` (emptiness test, optional ``not``, ``elif``
  and ``else``);
- ``{% for item in list_field %}...{% endfor %}``;
- ``{{ media(field) }}`` which attaches an image data URI to the prompt
  instead of inlining it.

Anything else (filters, tests, arbitrary calls, arithmetic, assignments,
macros) is rejected with `TemplateError`, as is any field the schema does not
declare. Rendering happens in a sandboxed environment with strict undefined
handling.
"""

from __future__ import annotations

import logging
import re
import secrets
import types
import typing
from typing import Any, Union

import jinja2
from jinja2 import StrictUndefined, nodes
from jinja2.sandbox import SandboxedEnvironment
from pydantic import BaseModel

from core.domain.errors import TemplateError
from core.interfaces.model_client import MediaPart, RenderedPrompt

logger = logging.getLogger(__name__)

MEDIA_FUNCTION = "media"
MEDIA_MARKER = "[image:{index}]"

_Scope = dict[str, "type[BaseModel] | None"]


def _finalize(value: object) -> object:
    return "" if value is None else value


def _build_environment() -> SandboxedEnvironment:
    return SandboxedEnvironment(
        undefined=StrictUndefined,
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=False,
        finalize=_finalize,
    )


_ENV = _build_environment()


def _unwrap_optional(annotation: Any) -> Any:
    origin = typing.get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def _as_model(annotation: Any) -> type[BaseModel] | None:
    annotation = _unwrap_optional(annotation)
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return annotation
    return None


def _is_list(annotation: Any) -> bool:
    return typing.get_origin(_unwrap_optional(annotation)) in (list, tuple, set, frozenset)


def _item_model(annotation: Any) -> type[BaseModel] | None:
    annotation = _unwrap_optional(annotation)
    if _is_list(annotation):
        args = typing.get_args(annotation)
        if args:
            return _as_model(args[0])
    return None


class _TemplateChecker:
    """Walks a parsed template and enforces the supported subset."""

    def __init__(self, *, name: str, schema: type[BaseModel]) -> None:
        self._name = name
        self._schema = schema
        self.referenced: set[str] = set()
        self.media_fields: set[str] = set()

    def _fail(self, node: nodes.Node, message: str) -> TemplateError:
        return TemplateError(f"{self._name} (line {node.lineno}): {message}")

    def check(self, template: nodes.Template) -> None:
        self._body(template.body, {})

    def _body(self, body: list[nodes.Node], loops: _Scope) -> None:
        for node in body:
            self._statement(node, loops)

    def _statement(self, node: nodes.Node, loops: _Scope) -> None:
        if isinstance(node, nodes.Output):
            for child in node.nodes:
                if isinstance(child, nodes.TemplateData):
                    continue
                self._expression(child, loops, allow_media=True)
            return

        if isinstance(node, nodes.If):
            self._condition(node.test, loops)
            self._body(node.body, loops)
            for branch in node.elif_:
                self._statement(branch, loops)
            self._body(node.else_, loops)
            return

        if isinstance(node, nodes.For):
            if node.recursive or node.test is not None:
                raise self._fail(node, "filtered or recursive loops are not supported")
            if not isinstance(node.target, nodes.Name):
                raise self._fail(node, "loop target must be a single name")
            if not isinstance(node.iter, (nodes.Name, nodes.Getattr)):
                raise self._fail(node, "loops may only iterate over a field")
            item = self._iterable(node.iter, loops)
            inner = {**loops, node.target.name: item}
            self._body(node.body, inner)
            self._body(node.else_, loops)
            return

        raise self._fail(node, f"unsupported construct '{type(node).__name__}'")

    def _condition(self, test: nodes.Expr, loops: _Scope) -> None:
        if isinstance(test, nodes.Not):
            test = test.node
        if not isinstance(test, (nodes.Name, nodes.Getattr)):
            raise self._fail(test, "conditions may only test whether a field is empty")
        self._lookup(test, loops)

    def _expression(self, expr: nodes.Expr, loops: _Scope, *, allow_media: bool = False) -> None:
        if isinstance(expr, (nodes.Name, nodes.Getattr)):
            self._lookup(expr, loops)
            return
        if allow_media and isinstance(expr, nodes.Call):
            callee = expr.node
            if (
                isinstance(callee, nodes.Name)
                and callee.name == MEDIA_FUNCTION
                and len(expr.args) == 1
                and not expr.kwargs
                and expr.dyn_args is None
                and expr.dyn_kwargs is None
                and isinstance(expr.args[0], (nodes.Name, nodes.Getattr))
            ):
                self._lookup(expr.args[0], loops)
                if isinstance(expr.args[0], nodes.Name):
                    self.media_fields.add(expr.args[0].name)
                return
        raise self._fail(expr, f"unsupported expression '{type(expr).__name__}'")

    def _lookup(self, expr: nodes.Expr, loops: _Scope) -> type[BaseModel] | None:
        """Resolve a name or dotted path; return the model it points at (if any)."""

        if isinstance(expr, nodes.Name):
            if expr.name in loops:
                return loops[expr.name]
            fields = self._schema.model_fields
            if expr.name not in fields:
                raise self._fail(expr, f"field '{expr.name}' is not declared by {self._schema.__name__}")
            self.referenced.add(expr.name)
            return _as_model(fields[expr.name].annotation)

        if isinstance(expr, nodes.Getattr):
            owner = self._lookup(expr.node, loops)
            if owner is None:
                raise self._fail(expr, f"'{expr.attr}' is looked up on a value without fields")
            if expr.attr not in owner.model_fields:
                raise self._fail(expr, f"field '{expr.attr}' is not declared by {owner.__name__}")
            return _as_model(owner.model_fields[expr.attr].annotation)

        raise self._fail(expr, f"unsupported expression '{type(expr).__name__}'")

    def _iterable(self, expr: nodes.Expr, loops: _Scope) -> type[BaseModel] | None:
        """Check a loop target is a declared list field; return its item model (if any)."""

        if isinstance(expr, nodes.Name):
            if expr.name in loops:
                raise self._fail(expr, "loops may only iterate over a list field, not a loop item")
            fields = self._schema.model_fields
            if expr.name not in fields:
                raise self._fail(expr, f"field '{expr.name}' is not declared by {self._schema.__name__}")
            self.referenced.add(expr.name)
            name, annotation = expr.name, fields[expr.name].annotation
        elif isinstance(expr, nodes.Getattr):
            owner = self._lookup(expr.node, loops)
            if owner is None or expr.attr not in owner.model_fields:
                raise self._fail(expr, f"field '{expr.attr}' cannot be iterated")
            name, annotation = expr.attr, owner.model_fields[expr.attr].annotation
        else:
            raise self._fail(expr, "loops may only iterate over a list field")

        if not _is_list(annotation):
            raise self._fail(expr, f"field '{name}' is not a list")
        return _item_model(annotation)


def _blank_to_empty(value: Any) -> Any:
    """Whitespace-only strings count as empty in conditions."""

    if isinstance(value, str):
        return value if value.strip() else ""
    if isinstance(value, list):
        return [_blank_to_empty(v) for v in value]
    if isinstance(value, dict):
        return {k: _blank_to_empty(v) for k, v in value.items()}
    return value


class PromptTemplate:
    """A prompt template compiled against the schema of the records it renders."""

    def __init__(self, source: str, *, schema: type[BaseModel], name: str = "prompt") -> None:
        self.name = name
        self.source = source
        self.schema = schema
        try:
            parsed = _ENV.parse(source)
        except jinja2.TemplateSyntaxError as exc:
            raise TemplateError(f"{name} (line {exc.lineno}): {exc.message}") from exc

        checker = _TemplateChecker(name=name, schema=schema)
        checker.check(parsed)
        self.fields = frozenset(checker.referenced)
        self.media_fields = frozenset(checker.media_fields)
        self._template = _ENV.from_string(source)

    def render(self, record: BaseModel) -> RenderedPrompt:
        """Render `record` (an instance of the template schema)."""

        if not isinstance(record, self.schema):
            raise TemplateError(
                f"{self.name}: expected a {self.schema.__name__} record, got {type(record).__name__}"
            )

        attachments: list[str] = []
        # Field values cannot contain a sentinel they have never seen.
        nonce = secrets.token_hex(8)
        sentinel = re.compile(rf"\x00{nonce}:(\d+)\x00")

        def media(uri: object) -> str:
            if not isinstance(uri, str) or not uri:
                return ""
            attachments.append(uri)
            return f"\x00{nonce}:{len(attachments)}\x00"

        context = _blank_to_empty(record.model_dump(mode="json"))
        try:
            raw = self._template.render(**context, **{MEDIA_FUNCTION: media})
        except jinja2.TemplateError as exc:
            raise TemplateError(f"{self.name}: {exc}") from exc

        raw = raw.strip()
        parts: list[str | MediaPart] = []
        cursor = 0
        for match in sentinel.finditer(raw):
            if match.start() > cursor:
                parts.append(raw[cursor : match.start()])
            index = int(match.group(1))
            parts.append(MediaPart(index=index, uri=attachments[index - 1]))
            cursor = match.end()
        if cursor < len(raw):
            parts.append(raw[cursor:])

        text = sentinel.sub(lambda m: MEDIA_MARKER.format(index=m.group(1)), raw)
        logger.debug("Rendered %s (%d chars, %d media)", self.name, len(text), len(attachments))
        return RenderedPrompt(text=text, media=tuple(attachments), parts=tuple(parts))
