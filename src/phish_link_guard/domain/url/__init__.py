"""URL parsing, detectors and models."""

from phish_link_guard.domain.url.detectors import (
    DETECTORS,
    UrlAnalysis,
    analyze_url,
    collect_issues,
    is_legitimate,
    threat_level_from_issues,
)
from phish_link_guard.domain.url.models import UrlRecord
from phish_link_guard.domain.url.parse import parse_url, registrable_domain, try_parse_url

__all__ = [
    "UrlRecord",
    "UrlAnalysis",
    "DETECTORS",
    "parse_url",
    "try_parse_url",
    "registrable_domain",
    "collect_issues",
    "is_legitimate",
    "threat_level_from_issues",
    "analyze_url",
]
