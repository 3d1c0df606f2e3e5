"""Turn tool invocation arguments into one HTTP request and return the body.

Arguments arrive either grouped::

    {"pathNames": {...}, "searchParams": {...}, "requestBody": {...}}

or flat (legacy form), in which case every key whose ``{key}`` placeholder
appears in the URL template is a path parameter and every other key is a
body field. The flat form never yields query parameters.

Any HTTP status is a successful result; the raw body is returned as text.
Failures before a response is read become error ToolResponses naming the
phase that failed.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import httpx

from .config import DispatcherConfig
from .models import BODY_GROUP, GROUP_KEYS, PATH_GROUP, QUERY_GROUP, ToolResponse

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"

ToolHandler = Callable[[Mapping[str, Any]], Awaitable[ToolResponse]]


def render_value(value: Any) -> str:
    """Render an argument value as URL text."""
    if isinstance(value, str):
        return value
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


def classify_arguments(
    url_template: str, arguments: Mapping[str, Any],
) -> tuple[dict[str, Any], dict[str, Any], dict[str, Any]]:
    """Split arguments into (path, query, body) parameter maps."""
    if any(isinstance(arguments.get(key), Mapping) for key in GROUP_KEYS):
        groups = [arguments.get(key) for key in (PATH_GROUP, QUERY_GROUP, BODY_GROUP)]
        path, query, body = (dict(g) if isinstance(g, Mapping) else {} for g in groups)
        return path, query, body

    path_params: dict[str, Any] = {}
    body_params: dict[str, Any] = {}
    for name, value in arguments.items():
        if f"{{{name}}}" in url_template:
            path_params[name] = value
        else:
            body_params[name] = value
    return path_params, {}, body_params


def substitute_path(url_template: str, path_params: Mapping[str, Any]) -> str:
    """Replace ``{name}`` placeholders. Unmatched placeholders stay as-is."""
    url = url_template
    for name, value in path_params.items():
        placeholder = f"{{{name}}}"
        if placeholder in url:
            url = url.replace(placeholder, render_value(value))
    return url


def append_query(url: str, query_params: Mapping[str, Any]) -> str:
    """Append query parameters to any existing query string.

    None values are skipped. Pairs are sorted by key, keeping the value order
    within each key, and encoded with ``+`` for spaces.
    """
    parts = urlsplit(url)
    pairs = parse_qsl(parts.query, keep_blank_values=True)
    for name, value in query_params.items():
        if value is None:
            continue
        pairs.append((name, render_value(value)))
    pairs.sort(key=lambda pair: pair[0])
    return urlunsplit(parts._replace(query=urlencode(pairs)))


def _error(phase: str, exc: BaseException) -> ToolResponse:
    message = f"Error {phase}: {exc}"
    logger.warning(message)
    return ToolResponse(text=message, is_error=True)


class RequestDispatcher:
    """Executes tool invocations against the configured base URL.

    Holds only immutable configuration; every call builds its own headers,
    client, request and response, so calls may run concurrently.
    """

    def __init__(
        self,
        config: DispatcherConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self._transport = transport

    def handler_for(self, method: str, path: str) -> ToolHandler:
        """Return the invocation handler for one operation."""
        url_template = self.config.base_url + path

        async def handle(arguments: Mapping[str, Any]) -> ToolResponse:
            return await self.dispatch(method, url_template, arguments)

        return handle

    async def dispatch(
        self,
        method: str,
        url_template: str,
        arguments: Mapping[str, Any] | None,
    ) -> ToolResponse:
        path_params, query_params, body_params = classify_arguments(
            url_template, arguments or {},
        )

        url = substitute_path(url_template, path_params)
        if query_params:
            try:
                url = append_query(url, query_params)
            except ValueError as exc:
                return _error("parsing URL", exc)

        content: bytes | None = None
        headers = httpx.Headers()
        if body_params:
            try:
                content = json.dumps(
                    body_params, separators=(",", ":"), sort_keys=True, allow_nan=False,
                ).encode("utf-8")
            except (TypeError, ValueError) as exc:
                return _error("marshaling body parameters", exc)
            headers["Content-Type"] = JSON_CONTENT_TYPE
        headers.update(self.config.extra_headers)

        logger.debug("%s %s", method.upper(), url)
        async with httpx.AsyncClient(
            timeout=None, follow_redirects=True, transport=self._transport,
        ) as client:
            try:
                request = client.build_request(
                    method.upper(), url, content=content, headers=headers,
                )
            except (httpx.InvalidURL, ValueError, TypeError) as exc:
                return _error("creating request", exc)

            try:
                response = await client.send(request, stream=True)
            except httpx.RequestError as exc:
                return _error("executing request", exc)

            try:
                await response.aread()
            except httpx.RequestError as exc:
                return _error("reading response", exc)
            finally:
                await response.aclose()

        logger.debug("%s %s -> %d", method.upper(), url, response.status_code)
        return ToolResponse(text=response.text)
