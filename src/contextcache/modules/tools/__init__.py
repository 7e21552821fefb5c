"""Tool descriptors and provider declaration translation."""

from __future__ import annotations

from .schema import (
    FunctionDeclaration,
    SchemaKind,
    ToolDescriptor,
    empty_object_schema,
    tool_registry,
    translate_tools,
)

__all__ = [
    "FunctionDeclaration",
    "SchemaKind",
    "ToolDescriptor",
    "empty_object_schema",
    "tool_registry",
    "translate_tools",
]
