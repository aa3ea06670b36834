"""Protocol and port checks for a link and the page it appears on."""

from __future__ import annotations

from urllib.parse import parse_qsl

from phish_link_guard.domain.result import Issue
from phish_link_guard.domain.url.models import UrlRecord
from phish_link_guard.domain.url.parse import try_parse_url

DANGEROUS_PORTS = (21, 23, 25, 110, 143, 445, 3389)
LOCAL_HOSTS = ("localhost", "127.0.0.1")


def is_local_host(host: str) -> bool:
    return host in LOCAL_HOSTS or host.endswith(".local")


def check_transport(record: UrlRecord, *, page_url: str | None = None) -> list[Issue]:
    issues: list[Issue] = []
    if record.scheme == "http":
        if is_local_host(record.host):
            issues.append(
                Issue(type="insecure_protocol", severity="low", message="HTTP on localhost (acceptable for development)")
            )
        else:
            issues.append(Issue(type="insecure_protocol", severity="high", message="Insecure HTTP connection (not encrypted)"))

        page = try_parse_url(page_url) if page_url else None
        if page is not None and page.scheme == "https":
            issues.append(Issue(type="mixed_content", severity="high", message="HTTP resource on HTTPS page"))

    if record.port in DANGEROUS_PORTS:
        issues.append(
            Issue(
                type="dangerous_port",
                severity="high",
                message=f"Suspicious port {record.port} (commonly used for attacks)",
            )
        )

    ssl_flag = next((value for key, value in parse_qsl(record.query, keep_blank_values=True) if key == "ssl"), None)
    if ssl_flag == "false":
        issues.append(Issue(type="ssl_disabled", severity="high", message="SSL explicitly disabled in URL parameters"))
    return issues
