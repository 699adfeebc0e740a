"""
Text and HTML reports for a batch of probe results.

Both renderers are pure: the same results and ``checked_at`` always
produce the same string. Certificate instants are shown in the timezone
of ``checked_at``.
"""

from datetime import datetime
from html import escape
from typing import List, Sequence

from tls_cert_audit.models import CertificateProbeResult

REPORT_TITLE = "SSL Certificate Expiry Report"
LINE_WIDTH = 80
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
DATE_FORMAT = "%Y-%m-%d"

HTML_STYLE = """\
        body { font-family: Arial, sans-serif; margin: 20px; }
        h1 { color: #333; }
        table { border-collapse: collapse; width: 100%; margin-top: 20px; }
        th, td { border: 1px solid #ddd; padding: 12px; text-align: left; }
        th { background-color: #4CAF50; color: white; }
        tr:nth-child(even) { background-color: #f2f2f2; }
        .ok { color: green; font-weight: bold; }
        .warning { color: orange; font-weight: bold; }
        .critical { color: red; font-weight: bold; }
        .error { color: darkred; font-weight: bold; }"""

HTML_COLUMNS = ("Site", "URL", "Issuer", "Expiry", "Days Remaining", "Status")


def format_timestamp(moment: datetime, reference: datetime, fmt: str = TIMESTAMP_FORMAT) -> str:
    """Format ``moment`` in the timezone of ``reference`` with a zone suffix."""
    local = moment.astimezone(reference.tzinfo)
    return f"{local.strftime(fmt)} {local.strftime('%Z')}".rstrip()


def render_text_report(results: Sequence[CertificateProbeResult], checked_at: datetime) -> str:
    """
    Render the plain-text report printed to the console and sent by email.

    Args:
        results: Probe results in site order
        checked_at: Time of the check, in the display timezone

    Returns:
        Report text
    """
    lines: List[str] = [
        "=" * LINE_WIDTH,
        REPORT_TITLE,
        f"Checked at: {checked_at.strftime(TIMESTAMP_FORMAT)}",
        "=" * LINE_WIDTH,
        "",
    ]

    for result in results:
        lines.append(f"Site: {result.site_name}")
        lines.append(f"URL: {result.address}")
        lines.append(f"Status: {result.status}")

        if not result.is_error:
            lines.append(f"Issuer: {result.issuer}")
            lines.append(f"Subject: {result.subject}")
            lines.append(f"Valid from: {format_timestamp(result.not_before, checked_at)}")
            lines.append(f"Valid until: {format_timestamp(result.not_after, checked_at)}")
            lines.append(f"Days remaining: {result.days_remaining}")
        else:
            lines.append(f"Error: {result.error_message}")

        lines.append("-" * LINE_WIDTH)

    return "\n".join(lines) + "\n"


def render_html_report(results: Sequence[CertificateProbeResult], checked_at: datetime) -> str:
    """
    Render the self-contained HTML report used as the email body.

    Args:
        results: Probe results in site order
        checked_at: Time of the check, in the display timezone

    Returns:
        HTML document
    """
    header_cells = "\n".join(f"            <th>{column}</th>" for column in HTML_COLUMNS)
    parts = [
        "<html>",
        "<head>",
        '    <meta charset="UTF-8">',
        f"    <title>{REPORT_TITLE}</title>",
        "    <style>",
        HTML_STYLE,
        "    </style>",
        "</head>",
        "<body>",
        f"    <h1>{REPORT_TITLE}</h1>",
        f"    <p>Checked at: {checked_at.strftime(TIMESTAMP_FORMAT)}</p>",
        "    <table>",
        "        <tr>",
        header_cells,
        "        </tr>",
    ]

    for result in results:
        parts.append(_render_html_row(result, checked_at))

    parts.extend(["    </table>", "</body>", "</html>"])
    return "\n".join(parts) + "\n"


def _render_html_row(result: CertificateProbeResult, checked_at: datetime) -> str:
    if result.is_error:
        cells = [
            f"<td>{escape(result.site_name)}</td>",
            f"<td>{escape(result.address)}</td>",
            f'<td colspan="3">{escape(result.error_message or "")}</td>',
        ]
    else:
        expiry = format_timestamp(result.not_after, checked_at, DATE_FORMAT)
        cells = [
            f"<td>{escape(result.site_name)}</td>",
            f"<td>{escape(result.address)}</td>",
            f"<td>{escape(result.issuer or '')}</td>",
            f"<td>{escape(expiry)}</td>",
            f"<td>{result.days_remaining} days</td>",
        ]
    cells.append(f'<td class="{result.status.css_class}">{result.status}</td>')

    body = "\n".join(f"            {cell}" for cell in cells)
    return f"        <tr>\n{body}\n        </tr>"
