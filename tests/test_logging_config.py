import argparse
import json
import logging
import tempfile
import unittest
import unittest.mock
from pathlib import Path

from invoice_templates.cli import build_parser, run
from invoice_templates.utils import logging as logging_utils
from invoice_templates.utils.logging import configure_root, record_write_attempt


class ConfigureRootTests(unittest.TestCase):
    def setUp(self) -> None:
        self.root_logger = logging.getLogger()
        self.original_handlers = list(self.root_logger.handlers)
        self.original_level = self.root_logger.level

    def tearDown(self) -> None:
        self.root_logger.handlers = self.original_handlers
        self.root_logger.setLevel(self.original_level)

    def test_configure_root_forces_reconfiguration(self) -> None:
        dummy_handler = logging.StreamHandler()
        dummy_handler.setFormatter(logging.Formatter("%(message)s"))

        self.root_logger.handlers = [dummy_handler]
        self.root_logger.setLevel(logging.WARNING)

        configure_root()

        self.assertNotIn(dummy_handler, self.root_logger.handlers)
        self.assertEqual(self.root_logger.level, logging.INFO)
        self.assertTrue(self.root_logger.handlers)
        formatter = self.root_logger.handlers[0].formatter
        self.assertIsNotNone(formatter)
        self.assertEqual(formatter._fmt, "%(levelname)s:%(name)s:%(message)s")

    def test_debug_flag_raises_logger_level(self) -> None:
        configure_root()
        cli_logger = logging.getLogger("invoice_templates.cli")
        cli_logger_level = cli_logger.level

        args = argparse.Namespace(
            transport="stdio",
            mcp_host="127.0.0.1",
            mcp_port=8099,
            http_host="127.0.0.1",
            http_port=8081,
            debug=True,
        )

        try:
            run(
                args,
                logger=cli_logger,
                start_sse=lambda host, port: None,
                run_stdio=lambda: None,
                http_factory=lambda: None,
            )
            self.assertEqual(cli_logger.getEffectiveLevel(), logging.DEBUG)
        finally:
            cli_logger.setLevel(cli_logger_level)

    def test_invalid_port_exits(self) -> None:
        args = build_parser().parse_args(["--transport", "stdio", "--http-port", "70000"])
        with self.assertRaises(SystemExit) as ctx:
            run(
                args,
                logger=logging.getLogger("invoice_templates.cli"),
                start_sse=lambda host, port: None,
                run_stdio=lambda: None,
                http_factory=lambda: None,
            )
        self.assertEqual(ctx.exception.code, 2)

    def test_sse_port_conflict_exits(self) -> None:
        args = build_parser().parse_args(["--mcp-port", "8099", "--http-port", "8099"])
        with self.assertRaises(SystemExit) as ctx:
            run(
                args,
                logger=logging.getLogger("invoice_templates.cli"),
                start_sse=lambda host, port: None,
                run_stdio=lambda: None,
                http_factory=lambda: None,
            )
        self.assertEqual(ctx.exception.code, 2)


class RecordWriteAttemptTests(unittest.TestCase):
    def test_audit_line_is_appended(self) -> None:
        with tempfile.TemporaryDirectory() as tempdir:
            audit_path = Path(tempdir) / "audit" / "writes.jsonl"
            with unittest.mock.patch.object(logging_utils, "AUDIT_LOG_PATH", audit_path):
                with self.assertLogs("invoice_templates.audit", level=logging.INFO):
                    record_write_attempt("set_default_template", template_id="a")

            lines = audit_path.read_text(encoding="utf-8").splitlines()
            self.assertEqual(len(lines), 1)
            entry = json.loads(lines[0])
            self.assertEqual(entry["tool"], "set_default_template")
            self.assertEqual(entry["template_id"], "a")

    def test_no_audit_file_without_path(self) -> None:
        with unittest.mock.patch.object(logging_utils, "AUDIT_LOG_PATH", None):
            with self.assertLogs("invoice_templates.audit", level=logging.INFO) as logs:
                record_write_attempt("delete_template", template_id="b")
        self.assertIn("delete_template", logs.output[0])


__all__ = ["ConfigureRootTests", "RecordWriteAttemptTests"]
