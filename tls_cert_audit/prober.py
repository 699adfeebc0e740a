"""
TLS certificate prober for TLS Certificate Audit.
"""

import logging
import socket
import ssl
from typing import List, Optional

from cryptography import x509
from cryptography.x509.oid import NameOID

from tls_cert_audit.logger import get_logger
from tls_cert_audit.models import CertificateDetails

DEFAULT_PROBE_TIMEOUT = 10.0
UNKNOWN_ISSUER = "Unknown"


class ProbeError(Exception):
    """A site's certificate could not be read."""


class CertificateProber:
    """
    Reads the leaf certificate presented by a TLS server.

    Verification of the chain and hostname is left to the SSL context; a
    server that fails it is reported as a probe failure.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_PROBE_TIMEOUT,
        ssl_context: Optional[ssl.SSLContext] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.timeout = timeout
        self.ssl_context = ssl_context or ssl.create_default_context()
        self.logger = logger or get_logger("prober")

    def probe(self, host: str, port: int) -> CertificateDetails:
        """
        Connect to ``host:port`` and read the leaf certificate.

        Args:
            host: Hostname, also sent as the server name indicator
            port: TCP port

        Returns:
            Issuer, subject and validity period of the leaf certificate

        Raises:
            ProbeError: DNS, connection, handshake or parsing failure
        """
        der = self._fetch_leaf_der(host, port)
        if not der:
            raise ProbeError(f"no certificate presented by {host}:{port}")

        try:
            cert = x509.load_der_x509_certificate(der)
        except ValueError as e:
            raise ProbeError(f"could not parse certificate from {host}:{port}: {e}") from e

        return self._extract_certificate_details(cert)

    def _fetch_leaf_der(self, host: str, port: int) -> Optional[bytes]:
        """Perform the handshake and return the DER-encoded peer certificate."""
        try:
            with socket.create_connection((host, port), timeout=self.timeout) as sock:
                with self.ssl_context.wrap_socket(sock, server_hostname=host) as tls_sock:
                    self.logger.debug(
                        f"Handshake with {host}:{port} completed ({tls_sock.version()})"
                    )
                    return tls_sock.getpeercert(binary_form=True)
        except socket.gaierror as e:
            raise ProbeError(f"DNS resolution failed for {host}: {e}") from e
        except UnicodeError as e:
            raise ProbeError(f"DNS resolution failed for {host}: invalid hostname ({e})") from e
        except ssl.SSLCertVerificationError as e:
            reason = getattr(e, "verify_message", None) or str(e)
            raise ProbeError(f"certificate verification failed: {reason}") from e
        except ssl.SSLError as e:
            raise ProbeError(f"TLS handshake failed: {e}") from e
        except socket.timeout as e:
            raise ProbeError(
                f"connection to {host}:{port} timed out after {self.timeout:g}s"
            ) from e
        except ConnectionRefusedError as e:
            raise ProbeError(f"connection to {host}:{port} refused") from e
        except OSError as e:
            raise ProbeError(f"connection to {host}:{port} failed: {e}") from e

    def _extract_certificate_details(self, cert: x509.Certificate) -> CertificateDetails:
        """
        Extract the reported fields from a certificate object.

        Args:
            cert: Certificate object

        Returns:
            Certificate details
        """
        return CertificateDetails(
            issuer=self._get_issuer_name(cert),
            subject=self._get_common_name(cert),
            not_before=cert.not_valid_before_utc,
            not_after=cert.not_valid_after_utc,
        )

    def _get_common_name(self, cert: x509.Certificate) -> str:
        """Extract the subject common name, empty when absent."""
        names = _attribute_values(cert.subject, NameOID.COMMON_NAME)
        return names[0] if names else ""

    def _get_issuer_name(self, cert: x509.Certificate) -> str:
        """Issuer organizations, falling back to the issuer common name."""
        organizations = _attribute_values(cert.issuer, NameOID.ORGANIZATION_NAME)
        if organizations:
            issuer = ", ".join(organizations)
        else:
            common_names = _attribute_values(cert.issuer, NameOID.COMMON_NAME)
            issuer = common_names[0] if common_names else ""
        return issuer or UNKNOWN_ISSUER


def _attribute_values(name: x509.Name, oid: x509.ObjectIdentifier) -> List[str]:
    values = []
    for attribute in name.get_attributes_for_oid(oid):
        value = attribute.value
        values.append(value if isinstance(value, str) else value.decode("utf-8", "replace"))
    return values
