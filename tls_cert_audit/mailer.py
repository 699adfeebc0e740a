"""
Email delivery of the certificate report.
"""

import logging
import smtplib
import ssl
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import format_datetime
from typing import Optional, Sequence

from tls_cert_audit.config import EmailSettings
from tls_cert_audit.logger import get_logger
from tls_cert_audit.models import CertificateProbeResult
from tls_cert_audit.reports import render_html_report, render_text_report


class DeliveryError(Exception):
    """The report email could not be delivered."""


class EmailDispatcher:
    """
    Sends the text and HTML reports as one multipart/alternative message.

    With ``smtp.use_ssl`` the connection is TLS from the start. Otherwise a
    plain connection is opened and upgraded with STARTTLS when the server
    offers it.
    """

    def __init__(self, settings: EmailSettings, logger: Optional[logging.Logger] = None):
        self.settings = settings
        self.logger = logger or get_logger("mailer")

    def build_message(
        self, results: Sequence[CertificateProbeResult], checked_at: datetime
    ) -> MIMEMultipart:
        """Build the report message with text and HTML alternatives."""
        message = MIMEMultipart("alternative")
        message["From"] = self.settings.sender
        message["To"] = ", ".join(self.settings.to)
        message["Subject"] = self.settings.subject
        message["Date"] = format_datetime(checked_at)

        message.attach(MIMEText(render_text_report(results, checked_at), "plain", "utf-8"))
        message.attach(MIMEText(render_html_report(results, checked_at), "html", "utf-8"))
        return message

    def send(self, results: Sequence[CertificateProbeResult], checked_at: datetime) -> None:
        """
        Deliver the report.

        Args:
            results: Probe results in site order
            checked_at: Time of the check, in the display timezone

        Raises:
            DeliveryError: Any stage of the SMTP exchange failed
        """
        if not self.settings.to:
            raise DeliveryError("no recipients configured")

        message = self.build_message(results, checked_at)
        smtp = self.settings.smtp

        if smtp.use_ssl:
            server = self._connect_ssl()
        else:
            server = self._connect_plain()

        try:
            self._deliver(server, message)
        finally:
            server.close()

        self.logger.info(f"Report email sent to {len(self.settings.to)} recipient(s)")

    def _connect_ssl(self) -> smtplib.SMTP:
        smtp = self.settings.smtp
        try:
            return smtplib.SMTP_SSL(
                smtp.host, smtp.port, context=ssl.create_default_context(), timeout=smtp.timeout
            )
        except (OSError, smtplib.SMTPException) as e:
            raise DeliveryError(f"SSL connection to {smtp.host}:{smtp.port} failed: {e}") from e

    def _connect_plain(self) -> smtplib.SMTP:
        smtp = self.settings.smtp
        try:
            server = smtplib.SMTP(smtp.host, smtp.port, timeout=smtp.timeout)
        except (OSError, smtplib.SMTPException) as e:
            raise DeliveryError(f"connection to {smtp.host}:{smtp.port} failed: {e}") from e

        try:
            server.ehlo()
            if server.has_extn("starttls"):
                server.starttls(context=ssl.create_default_context())
                server.ehlo()
            elif smtp.use_tls:
                self.logger.warning(
                    f"{smtp.host} does not offer STARTTLS, sending without encryption"
                )
        except (OSError, smtplib.SMTPException) as e:
            server.close()
            raise DeliveryError(f"STARTTLS negotiation with {smtp.host} failed: {e}") from e

        return server

    def _deliver(self, server: smtplib.SMTP, message: MIMEMultipart) -> None:
        """Authenticate if configured, then run MAIL/RCPT/DATA/QUIT."""
        smtp = self.settings.smtp

        if smtp.has_credentials:
            try:
                server.login(smtp.username, smtp.password)
            except (OSError, smtplib.SMTPException) as e:
                raise DeliveryError(f"authentication failed: {e}") from e

        try:
            refused = server.sendmail(self.settings.sender, self.settings.to, message.as_string())
        except smtplib.SMTPSenderRefused as e:
            raise DeliveryError(f"MAIL FROM rejected: {e}") from e
        except smtplib.SMTPRecipientsRefused as e:
            raise DeliveryError(f"RCPT TO rejected: {e}") from e
        except smtplib.SMTPDataError as e:
            raise DeliveryError(f"DATA command failed: {e}") from e
        except (OSError, smtplib.SMTPException) as e:
            raise DeliveryError(f"sending message failed: {e}") from e

        # sendmail only raises when every recipient is refused
        if refused:
            raise DeliveryError(f"RCPT TO rejected: {refused}")

        try:
            server.quit()
        except (OSError, smtplib.SMTPException) as e:
            raise DeliveryError(f"QUIT failed: {e}") from e
