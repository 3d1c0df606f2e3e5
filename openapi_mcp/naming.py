"""Convert operation ids and API titles to MCP tool names.

Tool names are lowercase ASCII with single underscore separators:

  sanitize_tool_name("Get User {id}")      -> get_user_id
  sanitize_tool_name("A & B")              -> a_and_b
  build_tool_name("petstore", "getPetById") -> petstore_getpetbyid
  operation_id_for("get", "/users/{id}")   -> get_users_id
"""

from __future__ import annotations

import logging
import re

from .models import ToolCallSchema

logger = logging.getLogger(__name__)

FALLBACK_NAME = "unnamed_tool"

# Character substitutions, applied in order
_REPLACEMENTS: tuple[tuple[str, str], ...] = (
    (" ", "_"),
    ("-", "_"),
    ("/", "_"),
    (".", "_"),
    ("{", ""),
    ("}", ""),
    (":", "_"),
    ("?", ""),
    ("&", "and"),
    ("=", "_eq_"),
    ("%", "_pct_"),
)


def sanitize_tool_name(name: str) -> str:
    """Map an arbitrary string to a tool-safe identifier. Never fails."""
    s = name.lower()
    for old, new in _REPLACEMENTS:
        s = s.replace(old, new)
    while "__" in s:
        s = s.replace("__", "_")
    s = s.removesuffix("_").removeprefix("_")
    return s or FALLBACK_NAME


def build_tool_name(prefix: str, operation_id: str) -> str:
    """Build a tool name from the sanitized API title and an operation id."""
    return sanitize_tool_name(f"{prefix}_{operation_id}")


def _camel_to_snake(name: str) -> str:
    """Convert camelCase or PascalCase to snake_case."""
    s1 = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    return re.sub(r"([a-z\d])([A-Z])", r"\1_\2", s1).lower()


def operation_id_for(method: str, path: str) -> str:
    """Synthesize an operation id for operations that do not declare one."""
    parts = [_camel_to_snake(p.strip("{}")) for p in path.split("/") if p]
    return "_".join([method.lower(), *parts])


def deduplicate_tool_names(schemas: list[ToolCallSchema]) -> None:
    """Ensure all tool names are unique by appending a numeric suffix."""
    taken = {schema.name for schema in schemas}
    seen: set[str] = set()
    for schema in schemas:
        name = schema.name
        if name not in seen:
            seen.add(name)
            continue
        n = 2
        while f"{name}_{n}" in taken:
            n += 1
        schema.name = f"{name}_{n}"
        taken.add(schema.name)
        seen.add(schema.name)
        logger.warning("Tool name %r already registered; renamed to %r", name, schema.name)
