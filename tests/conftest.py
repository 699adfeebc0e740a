"""
Shared fixtures for TLS Certificate Audit tests.
"""

from datetime import datetime, timedelta, timezone

import pytest

from tls_cert_audit.clock import Clock
from tls_cert_audit.models import CertificateDetails, CertificateProbeResult, Status

JST = timezone(timedelta(hours=9))
NOW = datetime(2026, 10, 17, 3, 0, 0, tzinfo=timezone.utc)


class FixedClock(Clock):
    """Clock frozen at a given instant."""

    def __init__(self, moment: datetime = NOW, display_tz=JST) -> None:
        super().__init__(display_tz)
        self.moment = moment

    def now(self) -> datetime:
        return self.moment


@pytest.fixture
def fixed_clock():
    """A clock frozen at NOW, displaying UTC+9."""
    return FixedClock()


@pytest.fixture
def checked_at():
    """NOW in the display timezone."""
    return NOW.astimezone(JST)


@pytest.fixture
def make_result():
    """Factory for probe results."""

    def factory(
        name: str = "Example Site",
        url: str = "example.com",
        port: int = 443,
        status: Status = Status.OK,
        days: int = 60,
        issuer: str = "Let's Encrypt",
        error: str = "failed to read certificate: connection to example.com:443 refused",
    ) -> CertificateProbeResult:
        if status is Status.ERROR:
            return CertificateProbeResult.failure(name, url, port, error)

        details = CertificateDetails(
            issuer=issuer,
            subject=url,
            not_before=NOW - timedelta(days=30),
            not_after=NOW + timedelta(days=days),
        )
        return CertificateProbeResult.success(name, url, port, details, days, status)

    return factory
