"""Shared fixtures: a small OpenAPI document and a recording HTTP transport."""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable

import httpx
import pytest

from openapi_mcp.config import DispatcherConfig
from openapi_mcp.dispatcher import RequestDispatcher
from openapi_mcp.loader import OpenAPIParser
from openapi_mcp.log import PACKAGE_LOGGER

BASE_URL = "http://api.test"


_PETSTORE: dict[str, Any] = {
    "openapi": "3.0.3",
    "info": {"title": "Pet Store", "version": "1.2.0"},
    "servers": [{"url": "https://petstore.example.com/v1/"}],
    "paths": {
        "/pets": {
            "get": {
                "operationId": "listPets",
                "summary": "List all pets",
                "parameters": [
                    {"$ref": "#/components/parameters/Limit"},
                    {
                        "name": "status",
                        "in": "query",
                        "schema": {"type": "string", "enum": ["available", "sold"]},
                    },
                    {
                        "name": "X-Request-Id",
                        "in": "header",
                        "schema": {"type": "string"},
                    },
                ],
            },
            "post": {
                "operationId": "createPet",
                "summary": "Create a pet",
                "requestBody": {
                    "content": {
                        "application/json": {"schema": {"$ref": "#/components/schemas/NewPet"}},
                    },
                },
            },
        },
        "/pets/{petId}": {
            "parameters": [
                {
                    "name": "petId",
                    "in": "path",
                    "required": True,
                    "description": "The pet to act on",
                    "schema": {"type": "integer", "format": "int64"},
                },
            ],
            "get": {
                "operationId": "getPet",
                "description": "Returns a single pet",
            },
            "delete": {
                "summary": "Delete a pet",
            },
        },
    },
    "components": {
        "parameters": {
            "Limit": {
                "name": "limit",
                "in": "query",
                "description": "How many items to return",
                "schema": {"type": "integer", "default": 20},
            },
        },
        "schemas": {
            "Named": {
                "type": "object",
                "properties": {"name": {"type": "string", "description": "Pet name"}},
                "required": ["name"],
            },
            "NewPet": {
                "allOf": [
                    {"$ref": "#/components/schemas/Named"},
                    {
                        "type": "object",
                        "properties": {
                            "tags": {"type": "array", "items": {"type": "string"}},
                            "owner": {
                                "type": "object",
                                "properties": {"email": {"type": "string"}},
                            },
                        },
                    },
                ],
            },
        },
    },
}


@pytest.fixture
def petstore_spec() -> dict[str, Any]:
    return copy.deepcopy(_PETSTORE)


@pytest.fixture
def petstore(petstore_spec) -> OpenAPIParser:
    return OpenAPIParser(petstore_spec)


class RecordingTransport(httpx.MockTransport):
    """MockTransport that remembers every request it served."""

    def __init__(self, responder: Callable[[httpx.Request], httpx.Response] | None = None):
        self.requests: list[httpx.Request] = []
        self._responder = responder or (lambda request: httpx.Response(200, text="ok"))
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._responder(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def dispatcher(transport) -> RequestDispatcher:
    return RequestDispatcher(DispatcherConfig(base_url=BASE_URL), transport=transport)


@pytest.fixture(autouse=True)
def package_logger():
    """Undo configure_logging() so no handler outlives the stream it was bound to."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    saved = (logger.handlers[:], logger.level, logger.propagate)
    logger.handlers.clear()
    yield logger
    logger.handlers[:], logger.level, logger.propagate = saved
