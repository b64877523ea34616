"""Entry point for python -m invoice_templates."""
from __future__ import annotations

import logging


def main() -> None:
    """Forward to invoice_templates.cli main entry point."""
    # Import here to avoid circular dependencies
    from invoice_templates.app import MCP_SERVER, build_api_app
    from invoice_templates.cli import build_parser, run
    from invoice_templates.utils.logging import configure_root

    configure_root()
    logger = logging.getLogger("invoice_templates.cli")

    def _start_sse(host: str, port: int) -> None:
        """Launch the MCP SSE server."""
        MCP_SERVER.settings.host = host
        MCP_SERVER.settings.port = int(port)
        MCP_SERVER.run(transport="sse")

    def _run_stdio() -> None:
        """Run stdio transport."""
        MCP_SERVER.run()

    parser = build_parser()
    args = parser.parse_args()

    run(
        args,
        logger=logger,
        start_sse=_start_sse,
        run_stdio=_run_stdio,
        http_factory=build_api_app,
    )


if __name__ == "__main__":
    main()
