"""Translate parsed operations into grouped MCP tool-call schemas.

Each operation becomes up to three object parameters:
- pathNames     path parameters
- searchParams  query parameters
- requestBody   request body properties, flattened across media types

Header and cookie parameters are not exposed. Empty groups are omitted.
"""

from __future__ import annotations

import logging

from .models import (
    BODY_GROUP,
    PATH_GROUP,
    QUERY_GROUP,
    OperationDescriptor,
    ParameterGroup,
    ToolCallSchema,
)
from .naming import build_tool_name, deduplicate_tool_names

logger = logging.getLogger(__name__)

REQUIRED_MARKER = "[required]"

_LOCATION_TO_GROUP: dict[str, str] = {
    "path": PATH_GROUP,
    "query": QUERY_GROUP,
}


def prefix_required(is_required: bool, description: str) -> str:
    """Mark a description as required, at most once."""
    if is_required and not description.startswith(REQUIRED_MARKER):
        return f"{REQUIRED_MARKER} {description}"
    return description


def _describe(operation: OperationDescriptor) -> str:
    return f"{operation.operation_id} {operation.summary} {operation.description}"


def translate_operation(operation: OperationDescriptor, prefix: str) -> ToolCallSchema:
    """Build the tool name and grouped call schema for one operation."""
    groups: dict[str, ParameterGroup] = {
        PATH_GROUP: ParameterGroup(),
        QUERY_GROUP: ParameterGroup(),
        BODY_GROUP: ParameterGroup(),
    }

    for param in operation.parameters:
        group = _LOCATION_TO_GROUP.get(param.location)
        if group is None:
            continue
        prop = param.schema.to_property(prefix_required(param.required, param.description))
        groups[group].add(param.name, prop, param.required)

    if operation.request_body is not None:
        body = groups[BODY_GROUP]
        for media_type in operation.request_body.content.values():
            for name, schema in media_type.properties.items():
                is_required = name in media_type.required
                prop = schema.to_property(prefix_required(is_required, schema.description))
                body.add(name, prop, is_required)

    return ToolCallSchema(
        name=build_tool_name(prefix, operation.operation_id),
        description=_describe(operation),
        groups={key: group for key, group in groups.items() if group.properties},
        method=operation.method,
        path=operation.path,
    )


def translate_operations(
    operations: list[OperationDescriptor], prefix: str,
) -> list[ToolCallSchema]:
    """Translate every operation of one document and keep tool names unique."""
    schemas = [translate_operation(op, prefix) for op in operations]
    deduplicate_tool_names(schemas)
    for schema in schemas:
        logger.debug(
            "Tool %s -> %s %s (%s)",
            schema.name, schema.method, schema.path, ", ".join(schema.groups) or "no params",
        )
    return schemas
