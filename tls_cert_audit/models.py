"""
Result types shared by the scanner, report formatters and dispatchers.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class Status(str, Enum):
    """Validity status of a probed certificate."""

    OK = "OK"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"
    ERROR = "ERROR"

    @property
    def css_class(self) -> str:
        """CSS class used for the status cell of the HTML report."""
        return self.value.lower()

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class CertificateDetails:
    """Fields read from the leaf certificate presented by a server."""

    issuer: str
    subject: str
    not_before: datetime
    not_after: datetime


@dataclass(frozen=True)
class CertificateProbeResult:
    """
    Outcome of probing one site.

    Successful probes carry the certificate fields and the day count;
    failed probes carry only the identity and an error message.
    """

    site_name: str
    url: str
    port: int
    status: Status
    issuer: Optional[str] = None
    subject: Optional[str] = None
    not_before: Optional[datetime] = None
    not_after: Optional[datetime] = None
    days_remaining: Optional[int] = None
    error_message: Optional[str] = None

    def __post_init__(self) -> None:
        if self.is_error:
            if not self.error_message:
                raise ValueError("ERROR results require an error message")
            if self.days_remaining is not None or self.not_after is not None:
                raise ValueError("ERROR results cannot carry certificate fields")
        else:
            if self.error_message:
                raise ValueError(f"{self.status} results cannot carry an error message")
            if self.days_remaining is None or self.not_before is None or self.not_after is None:
                raise ValueError(f"{self.status} results require certificate fields")

    @classmethod
    def success(
        cls,
        site_name: str,
        url: str,
        port: int,
        details: CertificateDetails,
        days_remaining: int,
        status: Status,
    ) -> "CertificateProbeResult":
        """Build a result for a certificate that was read and classified."""
        return cls(
            site_name=site_name,
            url=url,
            port=port,
            status=status,
            issuer=details.issuer,
            subject=details.subject,
            not_before=details.not_before,
            not_after=details.not_after,
            days_remaining=days_remaining,
        )

    @classmethod
    def failure(
        cls, site_name: str, url: str, port: int, error_message: str
    ) -> "CertificateProbeResult":
        """Build an ERROR result."""
        return cls(
            site_name=site_name,
            url=url,
            port=port,
            status=Status.ERROR,
            error_message=error_message,
        )

    @property
    def is_error(self) -> bool:
        return self.status is Status.ERROR

    @property
    def address(self) -> str:
        """``url:port`` as shown in reports."""
        return f"{self.url}:{self.port}"
