"""
Chat webhook notifications for TLS Certificate Audit.

The payload uses the embed format understood by Discord-compatible
webhooks: one embed per notified site.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

import httpx

from tls_cert_audit.config import WebhookSettings
from tls_cert_audit.logger import get_logger, log_dispatch_skipped
from tls_cert_audit.models import CertificateProbeResult, Status
from tls_cert_audit.reports import format_timestamp

# Value shipped in example configs; treated as "not configured"
PLACEHOLDER_WEBHOOK_URL = "https://discord.com/api/webhooks/YOUR_WEBHOOK_ID/YOUR_WEBHOOK_TOKEN"

STATUS_COLORS = {
    Status.OK: 0x00FF00,  # Green
    Status.WARNING: 0xFFA500,  # Orange
    Status.CRITICAL: 0xFF0000,  # Red
    Status.ERROR: 0x8B0000,  # Dark red
}
FALLBACK_COLOR = 0x808080  # Gray

CHANNEL = "Webhook"


class WebhookError(Exception):
    """The webhook request could not be completed."""


def status_color(status: Union[Status, str]) -> int:
    """Embed color for a status; anything that is not a known status is gray."""
    try:
        return STATUS_COLORS[Status(status)]
    except ValueError:
        return FALLBACK_COLOR


def select_for_notification(
    results: Iterable[CertificateProbeResult], notify_on: Sequence[Status]
) -> List[CertificateProbeResult]:
    """Results whose status is in ``notify_on``; an empty policy selects everything."""
    if not notify_on:
        return list(results)
    wanted = set(notify_on)
    return [result for result in results if result.status in wanted]


def build_embed(result: CertificateProbeResult, sent_at: datetime) -> Dict[str, Any]:
    """Build the embed describing one result."""
    fields = [
        {"name": "URL", "value": result.address, "inline": True},
        {"name": "Status", "value": str(result.status), "inline": True},
    ]
    if result.is_error:
        fields.append({"name": "Error", "value": result.error_message, "inline": False})
    else:
        fields.extend(
            [
                {"name": "Days Remaining", "value": f"{result.days_remaining} days", "inline": True},
                {"name": "Issuer", "value": result.issuer, "inline": False},
                {
                    "name": "Expires",
                    "value": format_timestamp(result.not_after, sent_at),
                    "inline": False,
                },
            ]
        )

    return {
        "title": result.site_name,
        "color": status_color(result.status),
        "fields": fields,
        "timestamp": sent_at.isoformat(timespec="seconds"),
    }


def build_payload(
    results: Sequence[CertificateProbeResult], sent_at: datetime, username: str
) -> Dict[str, Any]:
    """Build the JSON document posted to the webhook."""
    return {
        "username": username,
        "embeds": [build_embed(result, sent_at) for result in results],
    }


class WebhookDispatcher:
    """
    Posts selected results to a chat webhook.

    Delivery is best effort: transport failures raise WebhookError, while
    an HTTP error status from the far end is only logged.
    """

    def __init__(
        self,
        settings: WebhookSettings,
        logger: Optional[logging.Logger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.logger = logger or get_logger("webhook")
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        url = self.settings.url.strip()
        return bool(url) and url != PLACEHOLDER_WEBHOOK_URL

    async def send(self, results: Sequence[CertificateProbeResult], sent_at: datetime) -> bool:
        """
        Notify the webhook about the results selected by ``notify_on``.

        Args:
            results: Probe results in site order
            sent_at: Current time in the display timezone

        Returns:
            True if a request was posted, False if there was nothing to send

        Raises:
            WebhookError: The request could not be sent
        """
        if not self.settings.enabled:
            log_dispatch_skipped(self.logger, CHANNEL, "disabled")
            return False

        if not self.is_configured:
            log_dispatch_skipped(self.logger, CHANNEL, "webhook URL is not configured")
            return False

        selected = select_for_notification(results, self.settings.notify_on)
        if not selected:
            log_dispatch_skipped(self.logger, CHANNEL, "no results match notify_on")
            return False

        payload = build_payload(selected, sent_at, self.settings.username)

        try:
            async with httpx.AsyncClient(
                timeout=self.settings.timeout, transport=self._transport
            ) as client:
                response = await client.post(self.settings.url.strip(), json=payload)
        except httpx.HTTPError as e:
            raise WebhookError(f"failed to post webhook notification: {e}") from e

        if response.is_success:
            self.logger.info(f"Webhook notification sent for {len(selected)} site(s)")
        else:
            self.logger.warning(
                f"Webhook responded with HTTP {response.status_code}: {response.text[:200]}"
            )
        return True
