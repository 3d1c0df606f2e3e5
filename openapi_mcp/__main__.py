"""Entry point: python -m openapi_mcp SPEC

Loads an OpenAPI document and serves its operations as MCP tools.
"""

from __future__ import annotations

import logging

import click

from .config import TRANSPORTS, DispatcherConfig, load_settings, merge_headers, parse_header
from .errors import OpenAPIMCPError
from .loader import OpenAPIParser
from .log import configure_logging
from .server import build_server

logger = logging.getLogger(__name__)


def _parse_header_option(ctx, param, values: tuple[str, ...]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for value in values:
        try:
            key, val = parse_header(value)
        except ValueError as exc:
            raise click.BadParameter(str(exc), ctx=ctx, param=param) from exc
        headers = merge_headers(headers, {key: val})
    return headers


@click.command()
@click.argument("spec", required=False, type=click.Path(exists=True, dir_okay=False))
@click.option("--base-url", default=None, help="Base URL prepended to every operation path.")
@click.option(
    "-H", "--header", "headers", multiple=True, callback=_parse_header_option,
    help="Extra header sent with every request, as KEY=VALUE. Repeatable.",
)
@click.option("--transport", default=None, type=click.Choice(TRANSPORTS), help="MCP transport.")
@click.option("--log-level", default=None, help="Logging level (default INFO).")
def main(
    spec: str | None,
    base_url: str | None,
    headers: dict[str, str],
    transport: str | None,
    log_level: str | None,
) -> None:
    """Serve the operations of an OpenAPI document as MCP tools."""
    try:
        settings = load_settings()
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc

    configure_logging(log_level or settings.log_level)

    spec_path = spec or settings.spec_path
    if not spec_path:
        raise click.UsageError("No OpenAPI document given (SPEC or OPENAPI_MCP_SPEC).")

    try:
        parser = OpenAPIParser.from_path(spec_path)
        resolved_base_url = (base_url or "").rstrip("/") or settings.base_url or parser.server_url()
        if not resolved_base_url:
            raise click.UsageError(
                "No base URL: pass --base-url, set OPENAPI_MCP_BASE_URL, or declare servers in the document."
            )
        config = DispatcherConfig(
            base_url=resolved_base_url,
            extra_headers=merge_headers(settings.headers, headers),
        )
        server = build_server(parser, config)
    except OpenAPIMCPError as exc:
        raise click.ClickException(str(exc)) from exc

    server.run(transport=transport or settings.transport)


if __name__ == "__main__":
    main()
