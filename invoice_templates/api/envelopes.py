"""Envelope helpers for HTTP/MCP responses."""
from __future__ import annotations


def envelope_ok(data: object) -> dict[str, object]:
    return {"ok": True, "data": data, "errors": []}


def envelope_error(*errors: object, data: object = None) -> dict[str, object]:
    return {"ok": False, "data": data, "errors": [str(error) for error in errors]}


__all__ = ["envelope_error", "envelope_ok"]
