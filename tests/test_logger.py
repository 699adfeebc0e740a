"""
Tests for logging setup and structured log helpers.
"""

import json
import logging
import logging.handlers

import pytest

from tls_cert_audit.config import Config
from tls_cert_audit.logger import (
    CustomFormatter,
    StructuredFormatter,
    get_logger,
    log_dispatch_skipped,
    log_probe_error,
    log_probe_result,
    log_probe_start,
    setup_logging,
)
from tls_cert_audit.models import Status


@pytest.fixture
def restore_root_logger():
    """Keep setup_logging from leaking handlers into other tests."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def make_record(message="hello", **extra):
    record = logging.LogRecord(
        name="tls_cert_audit.scanner",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatters:
    """Test console and JSON formatters."""

    def test_custom_formatter_plain(self):
        """Test console format without colors."""
        line = CustomFormatter(use_color=False).format(make_record())

        assert "| INFO     |" in line
        assert "tls_cert_audit.scanner" in line
        assert line.endswith("| hello")
        assert "\033[" not in line

    def test_custom_formatter_color(self):
        """Test console format with colors."""
        line = CustomFormatter(use_color=True).format(make_record())
        assert "\033[32m" in line

    def test_structured_formatter_fields(self):
        """Test that probe fields are emitted as JSON keys."""
        record = make_record(
            site_name="Example", url="example.com", port=443, status=Status.WARNING, days_remaining=12
        )
        data = json.loads(StructuredFormatter().format(record))

        assert data["message"] == "hello"
        assert data["level"] == "INFO"
        assert data["site_name"] == "Example"
        assert data["port"] == 443
        assert data["status"] == "WARNING"
        assert data["days_remaining"] == 12
        assert "error_type" not in data


class TestSetupLogging:
    """Test log sink setup."""

    def test_console_only(self, restore_root_logger):
        """Test setup without a log file."""
        setup_logging(Config(logging={"level": "DEBUG"}))

        root = restore_root_logger
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, CustomFormatter)

    def test_with_log_file(self, restore_root_logger, tmp_path):
        """Test that a rotating JSON file handler is added."""
        log_file = tmp_path / "logs" / "audit.log"
        setup_logging(Config(logging={"level": "INFO", "file": str(log_file)}))

        root = restore_root_logger
        file_handlers = [
            h for h in root.handlers if isinstance(h, logging.handlers.RotatingFileHandler)
        ]
        assert len(file_handlers) == 1
        assert isinstance(file_handlers[0].formatter, StructuredFormatter)

        get_logger("test").info("written to file")
        file_handlers[0].flush()

        lines = log_file.read_text(encoding="utf-8").splitlines()
        messages = [json.loads(line)["message"] for line in lines]
        assert "written to file" in messages


class TestLogHelpers:
    """Test structured log helpers."""

    def test_get_logger_namespace(self):
        """Test logger naming."""
        assert get_logger("scanner").name == "tls_cert_audit.scanner"

    def test_log_probe_start(self, caplog):
        """Test the progress entry emitted before each probe."""
        logger = get_logger("scanner")
        with caplog.at_level(logging.INFO, logger="tls_cert_audit"):
            log_probe_start(logger, "Example", "example.com", 443)

        record = caplog.records[-1]
        assert record.site_name == "Example"
        assert record.url == "example.com"
        assert record.port == 443
        assert "example.com:443" in record.getMessage()

    def test_log_probe_result_levels(self, caplog, make_result):
        """Test that non-OK results are logged as warnings."""
        logger = get_logger("scanner")
        with caplog.at_level(logging.INFO, logger="tls_cert_audit"):
            log_probe_result(logger, make_result(status=Status.OK, days=90))
            log_probe_result(logger, make_result(status=Status.WARNING, days=20))

        assert [r.levelno for r in caplog.records[-2:]] == [logging.INFO, logging.WARNING]
        assert caplog.records[-1].days_remaining == 20

    def test_log_probe_error(self, caplog):
        """Test failed probe entries."""
        logger = get_logger("scanner")
        with caplog.at_level(logging.ERROR, logger="tls_cert_audit"):
            log_probe_error(logger, "Example", "example.com", 443, "refused", "ConnectionRefusedError")

        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert record.status is Status.ERROR
        assert record.error_type == "ConnectionRefusedError"

    def test_log_dispatch_skipped(self, caplog):
        """Test skip entries are informational."""
        logger = get_logger("webhook")
        with caplog.at_level(logging.INFO, logger="tls_cert_audit"):
            log_dispatch_skipped(logger, "Webhook", "disabled")

        record = caplog.records[-1]
        assert record.levelno == logging.INFO
        assert record.channel == "Webhook"
        assert "disabled" in record.getMessage()
