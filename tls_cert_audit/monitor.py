"""
Run orchestration: scan, report, dispatch, exit code.
"""

import asyncio
import logging
import sys
from datetime import datetime
from typing import Optional, Sequence, TextIO

from tls_cert_audit.clock import Clock, resolve_timezone
from tls_cert_audit.config import Config
from tls_cert_audit.logger import get_logger, log_dispatch_skipped
from tls_cert_audit.mailer import DeliveryError, EmailDispatcher
from tls_cert_audit.models import CertificateProbeResult, Status
from tls_cert_audit.prober import CertificateProber
from tls_cert_audit.reports import render_text_report
from tls_cert_audit.scanner import SiteScanner
from tls_cert_audit.webhook import WebhookDispatcher, WebhookError

EXIT_OK = 0
EXIT_ISSUES = 1


def exit_code_for(results: Sequence[CertificateProbeResult]) -> int:
    """0 when every certificate is OK, 1 otherwise."""
    if all(result.status is Status.OK for result in results):
        return EXIT_OK
    return EXIT_ISSUES


class CertificateAudit:
    """Main application class for TLS Certificate Audit."""

    def __init__(
        self,
        config: Config,
        clock: Optional[Clock] = None,
        scanner: Optional[SiteScanner] = None,
        mailer: Optional[EmailDispatcher] = None,
        webhook: Optional[WebhookDispatcher] = None,
        output: Optional[TextIO] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config
        self.logger = logger or get_logger("monitor")
        self.output = output or sys.stdout

        self.clock = clock or Clock(
            resolve_timezone(
                config.timezone, config.timezone_fallback_offset_hours, logger=self.logger
            )
        )
        self.scanner = scanner or SiteScanner(
            prober=CertificateProber(timeout=config.probe_timeout),
            alert=config.alert,
            clock=self.clock,
            workers=config.workers,
        )
        self.mailer = mailer or EmailDispatcher(config.email)
        self.webhook = webhook or WebhookDispatcher(config.webhook)

    async def run(self) -> int:
        """
        Perform one audit.

        Returns:
            Process exit code
        """
        self.logger.info("Starting TLS certificate audit")

        results = await self.scanner.scan(self.config.sites)
        checked_at = self.clock.display_now()

        print("\n" + render_text_report(results, checked_at), file=self.output)

        if self.config.dry_run:
            self.logger.info("Dry-run mode - notifications are not sent")
        else:
            await self._send_email(results, checked_at)
            await self._send_webhook(results)

        exit_code = exit_code_for(results)
        self.logger.info(f"TLS certificate audit finished - exit code {exit_code}")
        return exit_code

    async def _send_email(
        self, results: Sequence[CertificateProbeResult], checked_at: datetime
    ) -> None:
        if not self.config.email.enabled:
            log_dispatch_skipped(self.logger, "Email", "disabled")
            return

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self.mailer.send, results, checked_at)
        except DeliveryError as e:
            self.logger.error(f"Failed to send report email: {e}")

    async def _send_webhook(self, results: Sequence[CertificateProbeResult]) -> None:
        try:
            await self.webhook.send(results, self.clock.display_now())
        except WebhookError as e:
            self.logger.error(f"Webhook notification failed: {e}")
