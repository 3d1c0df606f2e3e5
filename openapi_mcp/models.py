"""Data models shared by the parser, the schema translator and the dispatcher.

The parser produces OperationDescriptors, the translator turns each one into
a ToolCallSchema, and the dispatcher answers every call with a ToolResponse.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


PATH_GROUP = "pathNames"
QUERY_GROUP = "searchParams"
BODY_GROUP = "requestBody"

GROUP_KEYS = (PATH_GROUP, QUERY_GROUP, BODY_GROUP)

GROUP_DESCRIPTIONS: dict[str, str] = {
    PATH_GROUP: "path parameters for the tool",
    QUERY_GROUP: "url parameters for the tool",
    BODY_GROUP: "request body for the tool",
}

# Sentinel for a schema without a "type" key (distinct from an explicit null)
MISSING = object()


@dataclass(frozen=True)
class ApiInfo:
    title: str
    version: str
    description: str = ""


@dataclass(frozen=True)
class PropertySchema:
    """One property or parameter schema.

    ``items`` and ``properties`` are nested JSON passed through unchanged.
    """

    type: Any = MISSING
    description: str = ""
    enum: list[Any] | None = None
    format: str | None = None
    default: Any = None
    items: Any = None
    properties: dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> PropertySchema:
        return cls(
            type=raw.get("type", MISSING),
            description=raw.get("description") or "",
            enum=raw.get("enum"),
            format=raw.get("format") or None,
            default=raw.get("default"),
            items=raw.get("items"),
            properties=raw.get("properties"),
        )

    def to_property(self, description: str) -> dict[str, Any]:
        """Render as a JSON-schema property with the given description."""
        prop: dict[str, Any] = {"description": description}
        if self.type is not MISSING:
            prop["type"] = self.type
        if self.enum is not None:
            prop["enum"] = self.enum
        if self.format:
            prop["format"] = self.format
        if self.default is not None:
            prop["default"] = self.default
        if self.items is not None:
            prop["items"] = self.items
        if self.properties is not None:
            prop["properties"] = self.properties
        return prop


@dataclass(frozen=True)
class ParameterDescriptor:
    name: str
    location: str  # path / query / header / cookie
    required: bool
    schema: PropertySchema
    description: str = ""


@dataclass(frozen=True)
class MediaTypeDescriptor:
    """The object schema declared for one request body media type."""

    properties: dict[str, PropertySchema] = field(default_factory=dict)
    required: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RequestBodyDescriptor:
    content: dict[str, MediaTypeDescriptor] = field(default_factory=dict)


@dataclass(frozen=True)
class OperationDescriptor:
    operation_id: str
    method: str
    path: str  # /users/{id}
    summary: str = ""
    description: str = ""
    parameters: list[ParameterDescriptor] = field(default_factory=list)
    request_body: RequestBodyDescriptor | None = None
    tags: list[str] = field(default_factory=list)


@dataclass
class ParameterGroup:
    properties: dict[str, dict[str, Any]] = field(default_factory=dict)
    required: list[str] = field(default_factory=list)

    def add(self, name: str, prop: dict[str, Any], required: bool) -> None:
        self.properties[name] = prop
        if required and name not in self.required:
            self.required.append(name)

    def as_schema(self, description: str) -> dict[str, Any]:
        return {
            "type": "object",
            "description": description,
            "properties": self.properties,
            "required": self.required,
        }


@dataclass
class ToolCallSchema:
    name: str
    description: str
    groups: dict[str, ParameterGroup] = field(default_factory=dict)
    method: str = "GET"
    path: str = "/"

    def input_schema(self) -> dict[str, Any]:
        """Build the MCP inputSchema with one object property per group."""
        properties = {
            key: group.as_schema(GROUP_DESCRIPTIONS[key])
            for key, group in self.groups.items()
        }
        return {"type": "object", "properties": properties}


@dataclass(frozen=True)
class ToolResponse:
    text: str
    is_error: bool = False
