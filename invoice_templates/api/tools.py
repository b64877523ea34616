"""Tool registration for invoice-templates-mcp."""
from __future__ import annotations

import logging

from mcp.server.fastmcp import FastMCP

from invoice_templates.backends import templates


def register_tools(server: FastMCP) -> list[str]:
    """Register built-in backends on the MCP server."""

    loaded: list[str] = []
    try:
        templates.register(server)
        loaded.append("invoice_templates.backends.templates")
    except Exception:  # pragma: no cover - defensive
        logging.getLogger("invoice_templates.api.tools").exception(
            "backend.import_error", extra={"module": "templates"}
        )
    return loaded


__all__ = ["register_tools"]
