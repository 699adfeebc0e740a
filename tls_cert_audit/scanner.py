"""
Site scanner for TLS Certificate Audit.
"""

import asyncio
import logging
import time
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import List, Optional, Sequence

from tls_cert_audit.classifier import classify_days, days_remaining
from tls_cert_audit.clock import Clock
from tls_cert_audit.config import AlertSettings, Site
from tls_cert_audit.logger import (
    get_logger,
    log_probe_error,
    log_probe_result,
    log_probe_start,
    log_scan_complete,
    log_scan_start,
)
from tls_cert_audit.models import CertificateProbeResult
from tls_cert_audit.prober import CertificateProber, ProbeError


class SiteScanner:
    """
    Probes and classifies the certificate of every configured site.

    Sites are probed in a bounded worker pool; the returned batch always
    has one result per site, in the order the sites were given.
    """

    def __init__(
        self,
        prober: CertificateProber,
        alert: AlertSettings,
        clock: Clock,
        workers: int = 4,
        logger: Optional[logging.Logger] = None,
    ):
        self.prober = prober
        self.alert = alert
        self.clock = clock
        self.workers = workers
        self.logger = logger or get_logger("scanner")

    async def scan(self, sites: Sequence[Site]) -> List[CertificateProbeResult]:
        """
        Check every site.

        Args:
            sites: Configured sites

        Returns:
            One result per site, in input order
        """
        start_time = time.time()
        log_scan_start(self.logger, len(sites))

        semaphore = asyncio.Semaphore(self.workers)
        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            tasks = [self._scan_site(site, semaphore, executor) for site in sites]
            outcomes = await asyncio.gather(*tasks, return_exceptions=True)

        results = []
        for site, outcome in zip(sites, outcomes):
            if isinstance(outcome, CertificateProbeResult):
                results.append(outcome)
                continue

            # check_site only fails on bugs; keep the site in the batch anyway
            site = site.with_defaults()
            self.logger.error(
                f"Unexpected failure checking {site.name}: {outcome!r}", exc_info=outcome
            )
            results.append(
                CertificateProbeResult.failure(
                    site.name, site.url, site.port, f"unexpected error: {outcome}"
                )
            )

        error_count = sum(1 for result in results if result.is_error)
        log_scan_complete(self.logger, time.time() - start_time, len(results), error_count)
        return results

    async def _scan_site(
        self, site: Site, semaphore: asyncio.Semaphore, executor: Executor
    ) -> CertificateProbeResult:
        async with semaphore:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(executor, self.check_site, site)

    def check_site(self, site: Site) -> CertificateProbeResult:
        """
        Probe and classify a single site.

        Probe failures are returned as ERROR results, never raised.
        """
        site = site.with_defaults()
        log_probe_start(self.logger, site.name, site.url, site.port)

        try:
            details = self.prober.probe(site.url, site.port)
        except ProbeError as e:
            message = f"failed to read certificate: {e}"
            error_type = type(e.__cause__).__name__ if e.__cause__ else type(e).__name__
            log_probe_error(self.logger, site.name, site.url, site.port, message, error_type)
            return CertificateProbeResult.failure(site.name, site.url, site.port, message)

        days = days_remaining(self.clock.now(), details.not_after)
        status = classify_days(days, self.alert.warning_days, self.alert.critical_days)

        result = CertificateProbeResult.success(
            site_name=site.name,
            url=site.url,
            port=site.port,
            details=details,
            days_remaining=days,
            status=status,
        )
        log_probe_result(self.logger, result)
        return result
