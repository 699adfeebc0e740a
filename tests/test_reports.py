"""
Tests for text and HTML reports.
"""

import re

from tls_cert_audit.models import Status
from tls_cert_audit.reports import (
    HTML_COLUMNS,
    REPORT_TITLE,
    render_html_report,
    render_text_report,
)


class TestTextReport:
    """Test the plain-text report."""

    def test_header(self, checked_at):
        """Test the report banner for an empty batch."""
        report = render_text_report([], checked_at)

        assert report.splitlines() == [
            "=" * 80,
            REPORT_TITLE,
            "Checked at: 2026-10-17 12:00:00",
            "=" * 80,
            "",
        ]
        assert report.endswith("\n")

    def test_classified_block(self, checked_at, make_result):
        """Test the fields shown for a readable certificate."""
        result = make_result(name="Example", url="example.com", status=Status.OK, days=60)

        report = render_text_report([result], checked_at)
        block = report.splitlines()[5:]

        assert block == [
            "Site: Example",
            "URL: example.com:443",
            "Status: OK",
            "Issuer: Let's Encrypt",
            "Subject: example.com",
            "Valid from: 2026-09-17 12:00:00 UTC+09:00",
            "Valid until: 2026-12-16 12:00:00 UTC+09:00",
            "Days remaining: 60",
            "-" * 80,
        ]

    def test_error_block(self, checked_at, make_result):
        """Test that a failed probe shows its error instead of certificate fields."""
        result = make_result(name="Down", url="down.example", status=Status.ERROR, error="refused")

        block = render_text_report([result], checked_at).splitlines()[5:]

        assert block == [
            "Site: Down",
            "URL: down.example:443",
            "Status: ERROR",
            "Error: refused",
            "-" * 80,
        ]

    def test_one_block_per_result_in_order(self, checked_at, make_result):
        """Test mixed batches."""
        results = [
            make_result(name="First", status=Status.WARNING, days=20),
            make_result(name="Second", status=Status.ERROR),
            make_result(name="Third", status=Status.CRITICAL, days=-3),
        ]

        report = render_text_report(results, checked_at)

        sites = re.findall(r"^Site: (.+)$", report, re.MULTILINE)
        assert sites == ["First", "Second", "Third"]
        assert report.count("-" * 80) == 3
        assert "Days remaining: -3" in report

    def test_idempotent(self, checked_at, make_result):
        """Test that rendering twice gives the same text."""
        results = [make_result(), make_result(status=Status.ERROR)]
        assert render_text_report(results, checked_at) == render_text_report(results, checked_at)


class TestHtmlReport:
    """Test the HTML report."""

    def test_document_structure(self, checked_at):
        """Test the title, timestamp and column headers."""
        html = render_html_report([], checked_at)

        assert html.startswith("<html>")
        assert f"<title>{REPORT_TITLE}</title>" in html
        assert f"<h1>{REPORT_TITLE}</h1>" in html
        assert "<p>Checked at: 2026-10-17 12:00:00</p>" in html
        assert re.findall(r"<th>(.+?)</th>", html) == list(HTML_COLUMNS)
        assert "<style>" in html

    def test_status_classes(self, checked_at, make_result):
        """Test that each row's status cell carries the status class."""
        results = [
            make_result(status=Status.OK, days=90),
            make_result(status=Status.WARNING, days=20),
            make_result(status=Status.CRITICAL, days=3),
            make_result(status=Status.ERROR),
        ]

        html = render_html_report(results, checked_at)

        assert re.findall(r'<td class="(\w+)">(\w+)</td>', html) == [
            ("ok", "OK"),
            ("warning", "WARNING"),
            ("critical", "CRITICAL"),
            ("error", "ERROR"),
        ]

    def test_classified_row(self, checked_at, make_result):
        """Test the cells of a readable certificate."""
        html = render_html_report([make_result(status=Status.WARNING, days=20)], checked_at)

        assert "<td>Let&#x27;s Encrypt</td>" in html
        assert "<td>2026-11-06 UTC+09:00</td>" in html
        assert "<td>20 days</td>" in html

    def test_error_row_spans_certificate_columns(self, checked_at, make_result):
        """Test that an error message replaces issuer, expiry and days."""
        html = render_html_report([make_result(status=Status.ERROR, error="timed out")], checked_at)

        assert '<td colspan="3">timed out</td>' in html
        assert "days</td>" not in html

    def test_values_escaped(self, checked_at, make_result):
        """Test that site values cannot inject markup."""
        result = make_result(name="<script>alert(1)</script>", status=Status.ERROR, error="a & b")

        html = render_html_report([result], checked_at)

        assert "<script>" not in html
        assert "&lt;script&gt;" in html
        assert "a &amp; b" in html

    def test_self_contained(self, checked_at, make_result):
        """Test that the document loads no external resources."""
        html = render_html_report([make_result()], checked_at)

        assert "<link" not in html
        assert "src=" not in html
        assert "http" not in html

    def test_idempotent(self, checked_at, make_result):
        """Test that rendering twice gives the same document."""
        results = [make_result(), make_result(status=Status.ERROR)]
        assert render_html_report(results, checked_at) == render_html_report(results, checked_at)
