"""Runtime configuration.

DispatcherConfig is passed explicitly to each RequestDispatcher.
Settings collects process-level options from the environment (and .env).
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from dotenv import load_dotenv

DEFAULT_API_KEY_HEADER = "X-Api-Key"
TRANSPORTS = ("stdio", "sse", "http")


@dataclass(frozen=True)
class DispatcherConfig:
    """Base URL and static headers applied to every outbound call."""

    base_url: str
    extra_headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Read-only private copy
        object.__setattr__(self, "extra_headers", MappingProxyType(dict(self.extra_headers)))


@dataclass(frozen=True)
class Settings:
    spec_path: str | None
    base_url: str | None
    headers: dict[str, str]
    transport: str
    log_level: str


def parse_header(value: str) -> tuple[str, str]:
    """Parse a ``Key=Value`` or ``Key: Value`` header assignment."""
    positions = [i for i in (value.find("="), value.find(":")) if i > 0]
    if positions:
        i = min(positions)
        key = value[:i].strip()
        if key:
            return key, value[i + 1:].strip()
    raise ValueError(f"Invalid header {value!r}, expected KEY=VALUE")


def parse_headers(raw: str) -> dict[str, str]:
    """Parse ``;``-separated header assignments."""
    headers: dict[str, str] = {}
    for item in raw.split(";"):
        if item.strip():
            key, val = parse_header(item)
            headers = merge_headers(headers, {key: val})
    return headers


def merge_headers(base: Mapping[str, str], overrides: Mapping[str, str]) -> dict[str, str]:
    """Apply header overrides, matching names case-insensitively."""
    replaced = {key.lower() for key in overrides}
    merged = {key: val for key, val in base.items() if key.lower() not in replaced}
    merged.update(overrides)
    return merged


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Read settings from the environment, loading .env without overriding."""
    if env is None:
        load_dotenv(override=False)
        env = os.environ

    headers = parse_headers(env.get("OPENAPI_MCP_HEADERS", ""))
    api_key = env.get("OPENAPI_MCP_API_KEY", "").strip()
    if api_key:
        header = env.get("OPENAPI_MCP_API_KEY_HEADER", "").strip() or DEFAULT_API_KEY_HEADER
        headers = merge_headers(headers, {header: api_key})

    transport = (env.get("OPENAPI_MCP_TRANSPORT") or "stdio").strip().lower()
    if transport not in TRANSPORTS:
        raise ValueError(f"OPENAPI_MCP_TRANSPORT must be one of {', '.join(TRANSPORTS)}")

    return Settings(
        spec_path=env.get("OPENAPI_MCP_SPEC") or None,
        base_url=(env.get("OPENAPI_MCP_BASE_URL") or "").strip().rstrip("/") or None,
        headers=headers,
        transport=transport,
        log_level=(env.get("OPENAPI_MCP_LOG_LEVEL") or "INFO").strip().upper(),
    )
