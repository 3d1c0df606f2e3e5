"""Expose the operations of an OpenAPI-described HTTP API as MCP tools."""

__version__ = "0.1.0"
