"""Structural and Unicode detectors that turn a URL record into issues."""

from __future__ import annotations

from dataclasses import dataclass, field
import re
from typing import Callable

from phish_link_guard.config.reference import ReferenceData
from phish_link_guard.domain.result import Issue, ThreatLevel
from phish_link_guard.domain.url.models import UrlRecord
from phish_link_guard.domain.url.parse import parse_url
from phish_link_guard.tools.intel.lookalike import find_typosquat_target, is_homograph

DANGEROUS_SCHEMES = ("javascript", "data", "blob", "file", "vbscript")
STANDARD_PORTS = (80, 443, 8080, 8443)
LONG_DOMAIN_THRESHOLD = 50

_IPV4_HOST = re.compile(r"^(?:\d{1,3}\.){3}\d{1,3}$")
_PERCENT_ESCAPE = re.compile(r"%[0-9A-Fa-f]{2}")

Detector = Callable[[UrlRecord, ReferenceData], "Issue | None"]


def detect_dangerous_scheme(record: UrlRecord, reference: ReferenceData) -> Issue | None:
    if record.scheme in DANGEROUS_SCHEMES:
        return Issue(
            type="dangerous_scheme",
            severity="high",
            message=f"URL uses dangerous protocol ({record.scheme}:)",
        )
    return None


def detect_username_in_url(record: UrlRecord, reference: ReferenceData) -> Issue | None:
    if record.userinfo:
        return Issue(type="username_in_url", severity="high", message="URL contains username (common phishing technique)")
    return None


def detect_subdomain_impersonation(record: UrlRecord, reference: ReferenceData) -> Issue | None:
    for brand in reference.impersonation_brands:
        if brand in record.host and not record.registrable_domain.startswith(brand):
            return Issue(
                type="subdomain_impersonation",
                severity="high",
                message=f"Popular brand '{brand}' appears outside its own domain (spoofing attempt)",
            )
    return None


def detect_path_spoofing(record: UrlRecord, reference: ReferenceData) -> Issue | None:
    path = record.path.lower()
    for domain in reference.path_spoofing_domains:
        if domain in path:
            return Issue(
                type="path_spoofing",
                severity="high",
                message=f"Trusted domain '{domain}' appears in URL path (deception technique)",
            )
    return None


def detect_double_encoding(record: UrlRecord, reference: ReferenceData) -> Issue | None:
    if "%25" in record.raw:
        return Issue(type="double_encoding", severity="high", message="URL contains double-encoded characters (obfuscation attempt)")
    return None


def detect_ip_address(record: UrlRecord, reference: ReferenceData) -> Issue | None:
    if _IPV4_HOST.match(record.host):
        return Issue(type="ip_address", severity="high", message="URL uses IP address instead of domain name")
    return None


def detect_suspicious_tld(record: UrlRecord, reference: ReferenceData) -> Issue | None:
    for tld in reference.suspicious_tlds:
        if record.registrable_domain.endswith(tld):
            return Issue(type="suspicious_tld", severity="medium", message=f"URL uses a suspicious top-level domain ({tld})")
    return None


def detect_punycode(record: UrlRecord, reference: ReferenceData) -> Issue | None:
    if "xn--" in record.host:
        return Issue(type="punycode", severity="medium", message="URL uses internationalized domain name (possible homograph attack)")
    return None


def detect_encoded_chars(record: UrlRecord, reference: ReferenceData) -> Issue | None:
    if _PERCENT_ESCAPE.search(record.raw):
        return Issue(type="encoded_chars", severity="medium", message="URL contains encoded characters")
    return None


def detect_non_standard_port(record: UrlRecord, reference: ReferenceData) -> Issue | None:
    if record.port is not None and record.port not in STANDARD_PORTS:
        return Issue(type="non_standard_port", severity="medium", message=f"URL uses non-standard port {record.port}")
    return None


def detect_insecure(record: UrlRecord, reference: ReferenceData) -> Issue | None:
    if record.scheme == "http":
        return Issue(type="insecure", severity="medium", message="URL uses insecure HTTP protocol")
    return None


def detect_multiple_dots(record: UrlRecord, reference: ReferenceData) -> Issue | None:
    if ".." in record.host:
        return Issue(type="multiple_dots", severity="low", message="URL has unusual dot patterns")
    return None


def detect_url_shortener(record: UrlRecord, reference: ReferenceData) -> Issue | None:
    if record.registrable_domain in reference.url_shorteners:
        return Issue(type="url_shortener", severity="low", message="URL is shortened (destination unknown)")
    return None


def detect_long_domain(record: UrlRecord, reference: ReferenceData) -> Issue | None:
    if len(record.host) > LONG_DOMAIN_THRESHOLD:
        return Issue(type="long_domain", severity="low", message="URL has an unusually long domain")
    return None


def detect_homograph(record: UrlRecord, reference: ReferenceData) -> Issue | None:
    if record.host and is_homograph(record.host, reference):
        return Issue(type="homograph", severity="high", message="URL contains lookalike characters")
    return None


def detect_typosquatting(record: UrlRecord, reference: ReferenceData) -> Issue | None:
    if not record.host:
        return None
    target = find_typosquat_target(record.host, record.registrable_domain, reference)
    if target:
        return Issue(type="typosquatting", severity="high", message=f"URL appears to mimic a popular domain ({target})")
    return None


DETECTORS: tuple[Detector, ...] = (
    detect_dangerous_scheme,
    detect_username_in_url,
    detect_subdomain_impersonation,
    detect_path_spoofing,
    detect_double_encoding,
    detect_ip_address,
    detect_suspicious_tld,
    detect_punycode,
    detect_encoded_chars,
    detect_non_standard_port,
    detect_insecure,
    detect_multiple_dots,
    detect_url_shortener,
    detect_long_domain,
    detect_homograph,
    detect_typosquatting,
)


def collect_issues(record: UrlRecord, reference: ReferenceData) -> list[Issue]:
    issues: list[Issue] = []
    for detector in DETECTORS:
        issue = detector(record, reference)
        if issue is not None:
            issues.append(issue)
    return issues


def is_legitimate(record: UrlRecord, reference: ReferenceData) -> bool:
    return any(
        record.registrable_domain == domain or record.host.endswith(f".{domain}")
        for domain in reference.legitimate_domains
    )


def threat_level_from_issues(issues: list[Issue] | tuple[Issue, ...], legitimate: bool) -> ThreatLevel:
    if legitimate:
        return "safe"
    high = sum(1 for issue in issues if issue.severity == "high")
    medium = sum(1 for issue in issues if issue.severity == "medium")
    if high >= 2 or (high >= 1 and medium >= 1):
        return "dangerous"
    if high >= 1 or medium >= 2:
        return "suspicious"
    if issues:
        return "suspicious"
    return "unknown"


@dataclass(frozen=True)
class UrlAnalysis:
    record: UrlRecord
    issues: list[Issue] = field(default_factory=list)
    is_legitimate: bool = False
    threat_level: ThreatLevel = "unknown"

    @property
    def high_severity_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "high")


def analyze_url(url: str, reference: ReferenceData) -> UrlAnalysis:
    """Parse and run every structural detector. Raises InvalidUrlError on malformed input."""

    record = parse_url(url)
    issues = collect_issues(record, reference)
    legitimate = is_legitimate(record, reference)
    return UrlAnalysis(
        record=record,
        issues=issues,
        is_legitimate=legitimate,
        threat_level=threat_level_from_issues(issues, legitimate),
    )
