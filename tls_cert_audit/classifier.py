"""
Expiry classification rules.
"""

from datetime import datetime, timedelta

from tls_cert_audit.models import Status

ONE_DAY = timedelta(days=1)


def days_remaining(now: datetime, not_after: datetime) -> int:
    """
    Whole days between ``now`` and ``not_after``, rounded down.

    An expired certificate yields a negative count, e.g. -1 for one that
    expired less than a day ago.
    """
    return (not_after - now) // ONE_DAY


def classify_days(days: int, warning_days: int, critical_days: int) -> Status:
    """
    Map a day count to a status.

    Boundary values belong to the more severe status.
    """
    if days < 0:
        return Status.CRITICAL
    if days <= critical_days:
        return Status.CRITICAL
    if days <= warning_days:
        return Status.WARNING
    return Status.OK


def classify(now: datetime, not_after: datetime, warning_days: int, critical_days: int) -> Status:
    return classify_days(days_remaining(now, not_after), warning_days, critical_days)
