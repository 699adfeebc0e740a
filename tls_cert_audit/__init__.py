"""
TLS Certificate Audit

Checks the TLS certificates of a list of sites, reports how long each
one stays valid, and sends the report by email and chat webhook.
"""

__version__ = "1.0.0"
__author__ = "TLS Certificate Audit Team"
__description__ = "TLS certificate expiry audit with email and webhook reports"

from tls_cert_audit.config import Config
from tls_cert_audit.models import CertificateProbeResult, Status
from tls_cert_audit.monitor import CertificateAudit
from tls_cert_audit.scanner import SiteScanner

__all__ = [
    "Config",
    "CertificateAudit",
    "CertificateProbeResult",
    "SiteScanner",
    "Status",
]
