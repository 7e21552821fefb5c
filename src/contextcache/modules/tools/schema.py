"""Tool schema translation for provider-side context caches.

Tools are described by ``ToolDescriptor``. The caller declares how the input
schema is expressed (``schema_kind``):

- ``"typed"``: a pydantic model class.
- ``"json"``: a JSON-schema mapping, or a zero-arg callable/awaitable that
  produces one.

Translation never fails as a whole: a tool whose schema cannot be resolved is
declared with an empty object schema and the fallback is logged.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from langchain_core.tools import BaseTool
from pydantic import BaseModel

logger = logging.getLogger(__name__)

SchemaKind = Literal["typed", "json"]

_MAX_REF_DEPTH = 16


def empty_object_schema() -> dict[str, Any]:
    return {"type": "object", "properties": {}}


@dataclass(frozen=True)
class ToolDescriptor:
    """Internal description of one agent tool.

    Attributes:
        name: Tool name as the model will call it.
        description: Human-readable description sent to the model.
        schema_kind: How ``input_schema`` is expressed ("typed" or "json").
        input_schema: Pydantic model class, JSON-schema mapping, or a
            zero-arg callable/awaitable returning a mapping.
    """

    name: str
    description: str = ""
    schema_kind: SchemaKind = "json"
    input_schema: Any = None

    @classmethod
    def typed(cls, name: str, model: type[BaseModel], description: str = "") -> "ToolDescriptor":
        return cls(name=name, description=description, schema_kind="typed", input_schema=model)

    @classmethod
    def json(cls, name: str, schema: Any, description: str = "") -> "ToolDescriptor":
        return cls(name=name, description=description, schema_kind="json", input_schema=schema)

    @classmethod
    def from_langchain(cls, tool: BaseTool) -> "ToolDescriptor":
        """Describe a LangChain tool (``args_schema`` is a model class or a dict)."""
        schema = tool.args_schema
        if isinstance(schema, type) and issubclass(schema, BaseModel):
            return cls.typed(tool.name, schema, tool.description or "")
        return cls.json(tool.name, schema, tool.description or "")


@dataclass(frozen=True)
class FunctionDeclaration:
    """Provider-neutral function declaration."""

    name: str
    description: str
    parameters: dict[str, Any] = field(default_factory=empty_object_schema)

    def as_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
        }


def tool_registry(tools: Iterable[BaseTool | ToolDescriptor]) -> dict[str, ToolDescriptor]:
    """Build a name → descriptor registry from tools or descriptors."""
    registry: dict[str, ToolDescriptor] = {}
    for t in tools:
        desc = t if isinstance(t, ToolDescriptor) else ToolDescriptor.from_langchain(t)
        registry[desc.name] = desc
    return registry


# ---- Schema normalization --------------------------------------------------


def _clean_schema(
    schema: Mapping[str, Any],
    defs: Mapping[str, Any],
    stack: tuple[str, ...] = (),
) -> dict[str, Any]:
    """Inline local ``$ref``s and drop ``$defs``/``title`` keywords.

    Recursive references collapse to a bare object schema.
    """
    ref = schema.get("$ref")
    if isinstance(ref, str):
        ref_name = ref.rsplit("/", 1)[-1]
        target = defs.get(ref_name)
        if target is None or ref_name in stack or len(stack) >= _MAX_REF_DEPTH:
            return {"type": "object"}
        merged = {**target, **{k: v for k, v in schema.items() if k != "$ref"}}
        return _clean_schema(merged, defs, stack + (ref_name,))

    out: dict[str, Any] = {}
    for key, value in schema.items():
        if key in ("$defs", "definitions", "title"):
            continue
        if key in ("properties", "patternProperties") and isinstance(value, Mapping):
            # Property names are data, not keywords: a property may be called "title".
            out[key] = {
                prop: _clean_schema(sub, defs, stack) if isinstance(sub, Mapping) else sub
                for prop, sub in value.items()
            }
        elif key in ("items", "additionalProperties", "not") and isinstance(value, Mapping):
            out[key] = _clean_schema(value, defs, stack)
        elif key in ("anyOf", "oneOf", "allOf", "prefixItems") and isinstance(value, list):
            out[key] = [
                _clean_schema(sub, defs, stack) if isinstance(sub, Mapping) else sub
                for sub in value
            ]
        else:
            out[key] = value
    return out


def normalize_json_schema(schema: Mapping[str, Any]) -> dict[str, Any]:
    defs: dict[str, Any] = {}
    for defs_key in ("definitions", "$defs"):
        raw = schema.get(defs_key)
        if isinstance(raw, Mapping):
            defs.update(raw)
    return _clean_schema(schema, defs)


def typed_schema_to_json(model: type[BaseModel]) -> dict[str, Any]:
    """Convert a pydantic model class to a flattened JSON schema."""
    return normalize_json_schema(model.model_json_schema())


async def resolve_json_schema(source: Any) -> dict[str, Any] | None:
    """Generic adapter for raw JSON-schema sources.

    Accepts a mapping, or a zero-arg callable and/or awaitable yielding one.
    Returns ``None`` when the source yields nothing.
    """
    value = source() if callable(source) else source
    if inspect.isawaitable(value):
        value = await value
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise TypeError(f"expected a JSON-schema mapping, got {type(value).__name__}")
    return normalize_json_schema(value)


async def _parameters_for(tool: ToolDescriptor) -> dict[str, Any]:
    try:
        if tool.schema_kind == "typed":
            params: dict[str, Any] | None = typed_schema_to_json(tool.input_schema)
        else:
            params = await resolve_json_schema(tool.input_schema)
    except Exception as e:
        logger.warning(
            "Tool %s: schema resolution failed (%s), declaring empty object schema",
            tool.name,
            e,
        )
        return empty_object_schema()

    if not params:
        logger.warning("Tool %s: schema resolved to nothing, declaring empty object schema", tool.name)
        return empty_object_schema()
    return params


async def translate_tools(
    registry: Mapping[str, ToolDescriptor],
    allowed_names: Iterable[str] | None = None,
) -> list[FunctionDeclaration]:
    """Translate allowed tools into function declarations.

    Names in ``allowed_names`` that are absent from ``registry`` are skipped.
    ``None`` means every registered tool. Output follows ``allowed_names``
    order, without duplicates.
    """
    names = list(registry) if allowed_names is None else list(allowed_names)
    seen: set[str] = set()
    declarations: list[FunctionDeclaration] = []
    for name in names:
        if name in seen:
            continue
        seen.add(name)
        tool = registry.get(name)
        if tool is None:
            logger.debug("Tool %s not registered, skipping", name)
            continue
        declarations.append(
            FunctionDeclaration(
                name=name,
                description=tool.description or "",
                parameters=await _parameters_for(tool),
            )
        )
    return declarations


__all__ = [
    "FunctionDeclaration",
    "SchemaKind",
    "ToolDescriptor",
    "empty_object_schema",
    "normalize_json_schema",
    "resolve_json_schema",
    "tool_registry",
    "translate_tools",
    "typed_schema_to_json",
]
