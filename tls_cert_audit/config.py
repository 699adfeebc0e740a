"""
Configuration management for TLS Certificate Audit.
"""

import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from tls_cert_audit.clock import DEFAULT_FALLBACK_OFFSET_HOURS, DEFAULT_TIMEZONE
from tls_cert_audit.models import Status

DEFAULT_HTTPS_PORT = 443

logger = logging.getLogger(__name__)


class Site(BaseModel):
    """An endpoint whose certificate is audited."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(min_length=1)
    port: int = Field(default=0, ge=0, le=65535)
    name: str = ""

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Hostnames are used as-is; only surrounding whitespace is dropped."""
        v = v.strip()
        if not v:
            raise ValueError("url cannot be empty")
        return v

    def with_defaults(self) -> "Site":
        """Return a copy with port 443 and the url as name when those are unset."""
        return self.model_copy(
            update={
                "port": self.port or DEFAULT_HTTPS_PORT,
                "name": self.name or self.url,
            }
        )


class AlertSettings(BaseModel):
    """Day thresholds for WARNING and CRITICAL."""

    warning_days: int = Field(default=30, ge=0)
    critical_days: int = Field(default=7, ge=0)

    @model_validator(mode="after")
    def check_threshold_order(self) -> "AlertSettings":
        """Misordered thresholds are accepted but make WARNING unreachable."""
        if self.warning_days < self.critical_days:
            logger.warning(
                f"alert.warning_days ({self.warning_days}) is below alert.critical_days "
                f"({self.critical_days}); no certificate will be classified as WARNING"
            )
        return self


class SMTPSettings(BaseModel):
    """SMTP transport settings."""

    host: str = "localhost"
    port: int = Field(default=587, ge=1, le=65535)
    use_ssl: bool = False
    use_tls: bool = False
    username: str = ""
    password: str = ""
    timeout: Optional[float] = Field(default=30.0, gt=0)

    @property
    def has_credentials(self) -> bool:
        return bool(self.username and self.password)


class EmailSettings(BaseModel):
    """Email report settings."""

    enabled: bool = False
    smtp: SMTPSettings = Field(default_factory=SMTPSettings)
    sender: str = Field(default="", validation_alias=AliasChoices("from", "sender"))
    to: List[str] = Field(default_factory=list)
    subject: str = "SSL Certificate Expiry Report"

    @field_validator("to", mode="before")
    @classmethod
    def validate_recipients(cls, v: Any) -> Any:
        """Accept a single address as well as a list."""
        if isinstance(v, str):
            return [v]
        return v


class WebhookSettings(BaseModel):
    """Chat webhook notification settings."""

    enabled: bool = False
    url: str = Field(default="", validation_alias=AliasChoices("webhook_url", "url"))
    notify_on: List[Status] = Field(default_factory=list)
    username: str = "SSL Certificate Checker"
    timeout: Optional[float] = Field(default=30.0, gt=0)

    @field_validator("notify_on", mode="before")
    @classmethod
    def validate_notify_on(cls, v: Any) -> Any:
        """Status labels are case-insensitive."""
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        return [item.strip().upper() if isinstance(item, str) else item for item in v]


class LoggingSettings(BaseModel):
    """Log level and optional log file."""

    level: str = "INFO"
    file: Optional[str] = None

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("file")
    @classmethod
    def validate_file(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class Config(BaseModel):
    """Configuration model for TLS Certificate Audit."""

    sites: List[Site] = Field(default_factory=list)
    alert: AlertSettings = Field(default_factory=AlertSettings)
    email: EmailSettings = Field(default_factory=EmailSettings)
    webhook: WebhookSettings = Field(
        default_factory=WebhookSettings, validation_alias=AliasChoices("webhook", "discord")
    )
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    # Display timezone for reports and notifications
    timezone: str = Field(default=DEFAULT_TIMEZONE)
    timezone_fallback_offset_hours: int = Field(
        default=DEFAULT_FALLBACK_OFFSET_HOURS, ge=-12, le=14
    )

    # Probe settings
    workers: int = Field(default=4, ge=1, le=32)
    probe_timeout: float = Field(default=10.0, gt=0)

    # Operation modes
    dry_run: bool = Field(default=False)

    @field_validator("sites", mode="before")
    @classmethod
    def validate_sites(cls, v: Any) -> Any:
        """An empty ``sites:`` key in YAML loads as None."""
        return v or []

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("timezone cannot be empty")
        return v


def load_config(config_path: Optional[str] = None) -> Config:
    """
    Load configuration from file or environment variables.

    Args:
        config_path: Path to configuration file

    Returns:
        Config object

    Raises:
        FileNotFoundError: The configuration file does not exist
        yaml.YAMLError: The file is not valid YAML
        pydantic.ValidationError: The settings are invalid
    """
    config_data: Dict[str, Any] = {}

    # Load from file if provided
    if config_path:
        config_file = Path(config_path)
        if config_file.exists():
            with open(config_file, "r", encoding="utf-8") as f:
                config_data = yaml.safe_load(f) or {}
        else:
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

    if not isinstance(config_data, dict):
        raise ValueError(f"Configuration root must be a mapping, got {type(config_data).__name__}")

    # Accept the legacy section name for the webhook before overrides are merged
    if "discord" in config_data and "webhook" not in config_data:
        config_data["webhook"] = config_data.pop("discord")

    # Override with environment variables
    for path, value in _get_env_overrides().items():
        _set_nested(config_data, path, value)

    return Config(**config_data)


def _parse_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


def _parse_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _get_env_overrides() -> Dict[Tuple[str, ...], Any]:
    """Get configuration overrides from environment variables."""
    env_mapping: Dict[str, Tuple[Tuple[str, ...], Callable[[str], Any]]] = {
        "TLS_AUDIT_LOG_LEVEL": (("logging", "level"), str),
        "TLS_AUDIT_LOG_FILE": (("logging", "file"), str),
        "TLS_AUDIT_TIMEZONE": (("timezone",), str),
        "TLS_AUDIT_WORKERS": (("workers",), int),
        "TLS_AUDIT_PROBE_TIMEOUT": (("probe_timeout",), float),
        "TLS_AUDIT_WARNING_DAYS": (("alert", "warning_days"), int),
        "TLS_AUDIT_CRITICAL_DAYS": (("alert", "critical_days"), int),
        "TLS_AUDIT_DRY_RUN": (("dry_run",), _parse_bool),
        "TLS_AUDIT_EMAIL_ENABLED": (("email", "enabled"), _parse_bool),
        "TLS_AUDIT_EMAIL_TO": (("email", "to"), _parse_list),
        "TLS_AUDIT_SMTP_HOST": (("email", "smtp", "host"), str),
        "TLS_AUDIT_SMTP_PORT": (("email", "smtp", "port"), int),
        "TLS_AUDIT_SMTP_USERNAME": (("email", "smtp", "username"), str),
        "TLS_AUDIT_SMTP_PASSWORD": (("email", "smtp", "password"), str),
        "TLS_AUDIT_WEBHOOK_ENABLED": (("webhook", "enabled"), _parse_bool),
        "TLS_AUDIT_WEBHOOK_URL": (("webhook", "url"), str),
        "TLS_AUDIT_WEBHOOK_NOTIFY_ON": (("webhook", "notify_on"), _parse_list),
    }

    overrides: Dict[Tuple[str, ...], Any] = {}
    for env_var, (config_path, converter) in env_mapping.items():
        value = os.getenv(env_var)
        if value is not None:
            try:
                overrides[config_path] = converter(value)
            except (ValueError, TypeError) as e:
                # The password is never echoed back
                shown = "***" if "PASSWORD" in env_var else value
                logger.warning(f"Invalid value for {env_var}: {shown} - {e}")

    return overrides


def _set_nested(data: Dict[str, Any], path: Tuple[str, ...], value: Any) -> None:
    """Set ``data[path[0]][path[1]]... = value``, creating sections as needed."""
    section = data
    for key in path[:-1]:
        child = section.get(key)
        if not isinstance(child, dict):
            child = {}
            section[key] = child
        section = child

    leaf = path[-1]
    # The webhook URL can be spelled either way in the file
    if path == ("webhook", "url"):
        section.pop("webhook_url", None)
    section[leaf] = value


def create_example_config(output_path: str = "config.example.yaml") -> None:
    """Create an example configuration file."""
    example_config = {
        "sites": [
            {"url": "example.com", "port": 443, "name": "Example Site"},
            {"url": "www.python.org"},
        ],
        "alert": {"warning_days": 30, "critical_days": 7},
        "email": {
            "enabled": False,
            "smtp": {
                "host": "smtp.example.com",
                "port": 587,
                "use_ssl": False,
                "use_tls": True,
                "username": "",
                "password": "",
                "timeout": 30,
            },
            "from": "cert-audit@example.com",
            "to": ["admin@example.com"],
            "subject": "SSL Certificate Expiry Report",
        },
        "webhook": {
            "enabled": False,
            "webhook_url": "https://discord.com/api/webhooks/YOUR_WEBHOOK_ID/YOUR_WEBHOOK_TOKEN",
            "notify_on": ["WARNING", "CRITICAL", "ERROR"],
            "username": "SSL Certificate Checker",
            "timeout": 30,
        },
        "logging": {"level": "INFO", "file": ""},
        "timezone": DEFAULT_TIMEZONE,
        "timezone_fallback_offset_hours": DEFAULT_FALLBACK_OFFSET_HOURS,
        "workers": 4,
        "probe_timeout": 10,
        "dry_run": False,
    }

    with open(output_path, "w", encoding="utf-8") as f:
        yaml.dump(example_config, f, default_flow_style=False, sort_keys=False)
