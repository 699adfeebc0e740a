"""
Standardized logging configuration for TLS Certificate Audit.
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime
from pathlib import Path

from tls_cert_audit.config import Config
from tls_cert_audit.models import CertificateProbeResult, Status

# Record attributes copied into structured log lines when present
STRUCTURED_FIELDS = (
    "site_name",
    "url",
    "port",
    "status",
    "days_remaining",
    "site_count",
    "error_count",
    "scan_duration",
    "error_type",
    "channel",
    "reason",
)


class CustomFormatter(logging.Formatter):
    """Custom formatter with colored output for console."""

    # Color codes
    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
        "RESET": "\033[0m",  # Reset
    }

    def __init__(self, use_color: bool = True) -> None:
        self.use_color = use_color
        super().__init__()

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with optional colors."""
        if self.use_color and record.levelname in self.COLORS:
            color = self.COLORS[record.levelname]
            reset = self.COLORS["RESET"]
            level_name = f"{color}{record.levelname:<8}{reset}"
        else:
            level_name = f"{record.levelname:<8}"

        timestamp = self.formatTime(record, "%Y-%m-%d %H:%M:%S")
        message = record.getMessage()

        if record.exc_info:
            if not message.endswith("\n"):
                message += "\n"
            message += self.formatException(record.exc_info)

        return f"{timestamp} | {level_name} | {record.name:<26} | {message}"


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for field in STRUCTURED_FIELDS:
            if hasattr(record, field):
                value = getattr(record, field)
                log_data[field] = str(value) if isinstance(value, Status) else value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False)


def setup_logging(config: Config) -> None:
    """
    Setup logging configuration.

    Console output goes to stderr so that the report on stdout stays clean.

    Args:
        config: Configuration object
    """
    level = getattr(logging, config.logging.level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)

    # Use colored formatter for console if output is a TTY
    use_color = hasattr(sys.stderr, "isatty") and sys.stderr.isatty()
    console_handler.setFormatter(CustomFormatter(use_color=use_color))
    root_logger.addHandler(console_handler)

    if config.logging.file:
        log_path = Path(config.logging.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        # Rotating file handler (10MB max, 5 backups)
        file_handler = logging.handlers.RotatingFileHandler(
            config.logging.file, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8"
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(file_handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    app_logger = logging.getLogger("tls_cert_audit")
    app_logger.info(f"Logging initialized - Level: {config.logging.level}")

    if config.logging.file:
        app_logger.info(f"Log file: {config.logging.file}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    return logging.getLogger(f"tls_cert_audit.{name}")


# Logging helpers for probe and dispatch operations
def log_scan_start(logger: logging.Logger, site_count: int) -> None:
    """Log scan start."""
    logger.info(f"Checking {site_count} site(s)", extra={"site_count": site_count})


def log_probe_start(logger: logging.Logger, site_name: str, url: str, port: int) -> None:
    """Log the start of a single probe."""
    logger.info(
        f"Checking {site_name} ({url}:{port})",
        extra={"site_name": site_name, "url": url, "port": port},
    )


def log_probe_result(logger: logging.Logger, result: CertificateProbeResult) -> None:
    """Log a classified certificate."""
    level = logging.INFO if result.status is Status.OK else logging.WARNING
    logger.log(
        level,
        f"{result.site_name} ({result.address}): {result.status}, "
        f"{result.days_remaining} day(s) remaining",
        extra={
            "site_name": result.site_name,
            "url": result.url,
            "port": result.port,
            "status": result.status,
            "days_remaining": result.days_remaining,
        },
    )


def log_probe_error(
    logger: logging.Logger, site_name: str, url: str, port: int, message: str, error_type: str
) -> None:
    """Log a failed probe."""
    logger.error(
        f"{url}:{port} - {message}",
        extra={
            "site_name": site_name,
            "url": url,
            "port": port,
            "status": Status.ERROR,
            "error_type": error_type,
        },
    )


def log_scan_complete(
    logger: logging.Logger, duration: float, site_count: int, error_count: int
) -> None:
    """Log scan completion."""
    logger.info(
        f"Checked all sites - Duration: {duration:.2f}s, Sites: {site_count}, Errors: {error_count}",
        extra={"scan_duration": duration, "site_count": site_count, "error_count": error_count},
    )


def log_dispatch_skipped(logger: logging.Logger, channel: str, reason: str) -> None:
    """Log a notification channel that had nothing to do."""
    logger.info(
        f"{channel} notification skipped: {reason}",
        extra={"channel": channel, "reason": reason},
    )
