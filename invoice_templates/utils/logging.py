"""Logging setup and write-attempt auditing."""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from .config import AUDIT_LOG_PATH

LOG_FORMAT = "%(levelname)s:%(name)s:%(message)s"

_AUDIT_LOGGER = logging.getLogger("invoice_templates.audit")


def configure_root(level: int = logging.INFO) -> None:
    """Install a single stream handler on the root logger, replacing any others."""

    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)


def record_write_attempt(tool: str, **details: Any) -> None:
    """Log a write-capable tool invocation and append it to ``MCP_AUDIT_LOG``."""

    _AUDIT_LOGGER.info("Write attempt via %s", tool, extra={"tool": tool, **details})
    if AUDIT_LOG_PATH is None:
        return

    entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "tool": tool,
        **details,
    }
    try:
        AUDIT_LOG_PATH.parent.mkdir(parents=True, exist_ok=True)
        with AUDIT_LOG_PATH.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(entry, sort_keys=True, default=str) + "\n")
    except OSError as exc:
        _AUDIT_LOGGER.warning("Could not write audit log %s: %s", AUDIT_LOG_PATH, exc)


__all__ = ["LOG_FORMAT", "configure_root", "record_write_attempt"]
