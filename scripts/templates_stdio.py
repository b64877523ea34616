#!/usr/bin/env python3
"""Helper to run the template server over stdio or SSE transports."""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Sequence

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from invoice_templates.app import MCP_SERVER, build_api_app  # noqa: E402
from invoice_templates.cli import build_parser, run as run_cli  # noqa: E402
from invoice_templates.utils.logging import configure_root  # noqa: E402

LOGGER = logging.getLogger("invoice_templates.scripts")


def _start_sse(host: str, port: int) -> None:
    """Launch the MCP SSE server with explicit host/port bindings."""

    MCP_SERVER.settings.host = host
    MCP_SERVER.settings.port = int(port)
    MCP_SERVER.run(transport="sse")


def _run_stdio() -> None:
    MCP_SERVER.run()


def main(argv: Sequence[str] | None = None) -> None:
    """Entry-point used for ad-hoc stdio/SSE workflows."""

    configure_root()
    parser = build_parser()
    args = parser.parse_args(argv)

    run_cli(
        args,
        logger=LOGGER,
        start_sse=_start_sse,
        run_stdio=_run_stdio,
        http_factory=build_api_app,
    )


if __name__ == "__main__":  # pragma: no cover - script entry point
    main()
