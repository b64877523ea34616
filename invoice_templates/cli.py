"""Transport selection for the template server.

``stdio`` serves MCP only. ``sse`` runs MCP over SSE in a background thread
and serves the JSON API plus preview pages with uvicorn in the foreground.
"""
from __future__ import annotations

import argparse
import logging
import socket
import threading
from typing import Callable, NamedTuple

import uvicorn
from starlette.applications import Starlette

from invoice_templates.utils.config import ENABLE_WRITES

HttpFactory = Callable[[], Starlette]
StartSSE = Callable[[str, int], None]
RunStdIO = Callable[[], None]


class Endpoint(NamedTuple):
    label: str
    flag: str
    host: str
    port: int


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="invoice-templates-mcp server")
    parser.add_argument("--transport", default="sse", choices=["stdio", "sse"])
    parser.add_argument("--mcp-host", default="127.0.0.1", help="MCP SSE bind host")
    parser.add_argument("--mcp-port", type=int, default=8099, help="MCP SSE bind port")
    parser.add_argument("--http-host", default="127.0.0.1", help="Template API bind host")
    parser.add_argument("--http-port", type=int, default=8081, help="Template API bind port")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def _endpoints(args: argparse.Namespace) -> tuple[Endpoint, Endpoint]:
    return (
        Endpoint("MCP SSE", "--mcp-port", args.mcp_host, args.mcp_port),
        Endpoint("Template API", "--http-port", args.http_host, args.http_port),
    )


def _port_is_free(endpoint: Endpoint) -> OSError | None:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((endpoint.host, endpoint.port))
        except OSError as exc:  # pragma: no cover - depends on local env
            return exc
    return None


def run(
    args: argparse.Namespace,
    *,
    logger: logging.Logger,
    start_sse: StartSSE,
    run_stdio: RunStdIO,
    http_factory: HttpFactory,
) -> None:
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)

    mcp, http = _endpoints(args)
    logger.info(
        "Starting template server (transport=%s, mcp=%s:%s, http=%s:%s, writes=%s)",
        args.transport,
        mcp.host,
        mcp.port,
        http.host,
        http.port,
        "enabled" if ENABLE_WRITES else "disabled",
    )

    for endpoint in (mcp, http):
        if not 0 < endpoint.port <= 65535:
            logger.error("Invalid %s: %s (must be between 1 and 65535)", endpoint.flag, endpoint.port)
            raise SystemExit(2)

    if args.transport == "stdio":
        run_stdio()
        return

    if (mcp.host, mcp.port) == (http.host, http.port):
        logger.error("%s and %s both bind %s:%s", mcp.flag, http.flag, http.host, http.port)
        raise SystemExit(2)

    for endpoint in (mcp, http):
        error = _port_is_free(endpoint)
        if error is not None:
            logger.error(
                "%s port %s is unavailable on %s: %s. Use %s to pick a free port.",
                endpoint.label,
                endpoint.port,
                endpoint.host,
                error.strerror or error,
                endpoint.flag,
            )
            raise SystemExit(1)

    if not ENABLE_WRITES:
        logger.warning("Write tools disabled (set MCP_ENABLE_WRITES=1 to enable writes).")

    threading.Thread(target=start_sse, args=(mcp.host, mcp.port), daemon=True).start()
    logger.debug("Template API on http://%s:%s/api/templates", http.host, http.port)
    uvicorn.run(http_factory(), host=http.host, port=int(http.port))


__all__ = ["build_parser", "run"]
