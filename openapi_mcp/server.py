"""Build a FastMCP server exposing one tool per OpenAPI operation."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.tools.tool import Tool, ToolResult
from mcp.types import TextContent

from .config import DispatcherConfig
from .dispatcher import RequestDispatcher, ToolHandler
from .models import ApiInfo, OperationDescriptor, ToolCallSchema
from .naming import sanitize_tool_name
from .schema_parser import translate_operations

logger = logging.getLogger(__name__)


class OperationSource(Protocol):
    def info(self) -> ApiInfo: ...

    def operations(self) -> list[OperationDescriptor]: ...


class OperationTool(Tool):
    """A tool whose calls are forwarded to one HTTP operation."""

    handler: ToolHandler

    async def run(self, arguments: dict[str, Any]) -> ToolResult:
        response = await self.handler(arguments)
        if response.is_error:
            raise ToolError(response.text)
        return ToolResult(content=[TextContent(type="text", text=response.text)])


def make_tool(schema: ToolCallSchema, handler: ToolHandler) -> OperationTool:
    return OperationTool(
        name=schema.name,
        description=schema.description,
        parameters=schema.input_schema(),
        handler=handler,
    )


def build_server(
    parser: OperationSource,
    config: DispatcherConfig,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastMCP:
    """Translate every operation and register it with a new FastMCP server."""
    info = parser.info()
    prefix = sanitize_tool_name(info.title)

    server = FastMCP(prefix, version=info.version or None)
    dispatcher = RequestDispatcher(config, transport=transport)

    schemas = translate_operations(parser.operations(), prefix)
    for schema in schemas:
        server.add_tool(make_tool(schema, dispatcher.handler_for(schema.method, schema.path)))

    logger.info(
        "Registered %d tools for %s %s -> %s",
        len(schemas), info.title or prefix, info.version, config.base_url,
    )
    return server
