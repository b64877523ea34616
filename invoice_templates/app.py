"""MCP server instance and the HTTP application."""
from __future__ import annotations

import logging

from mcp.server.fastmcp import FastMCP
from starlette.applications import Starlette

from invoice_templates.api import make_routes, register_tools
from invoice_templates.web import register_routes

_LOGGER = logging.getLogger("invoice_templates.app")

MCP_SERVER = FastMCP("invoice-templates-mcp")
LOADED_BACKENDS = register_tools(MCP_SERVER)
_LOGGER.debug("Loaded backends: %s", ", ".join(LOADED_BACKENDS))


def build_api_app() -> Starlette:
    """JSON API and web preview routes served next to the MCP transport."""

    app = Starlette(routes=make_routes())
    register_routes(app)
    return app


__all__ = ["LOADED_BACKENDS", "MCP_SERVER", "build_api_app"]
