"""Weighted URL feature scoring and known phishing URL structures."""

from __future__ import annotations

from collections import Counter
import math
import re
from urllib.parse import parse_qsl

from pydantic import BaseModel, ConfigDict, Field

from phish_link_guard.domain.result import MlClassification, ThreatLevel
from phish_link_guard.domain.url.parse import try_parse_url

COMMON_TLDS = ("com", "org", "net", "edu", "gov")
FREE_RISKY_TLDS = ("tk", "ml", "ga", "cf", "gq", "top", "xyz")
URL_KEYWORDS = (
    "login",
    "signin",
    "account",
    "verify",
    "secure",
    "update",
    "confirm",
    "banking",
    "paypal",
    "amazon",
    "microsoft",
    "apple",
    "password",
    "suspended",
    "locked",
    "urgent",
    "alert",
)
MAX_BASE_SCORE = 100

_IPV4_FRAGMENT = re.compile(r"\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}")
_KNOWN_PATTERNS = (
    (
        "fake_login_risky_tld",
        re.compile(r"(login|signin).*\.(tk|ml|ga|cf|gq)", re.IGNORECASE),
        10,
        "Fake login page pattern",
    ),
    (
        "ip_host_auth_keyword",
        re.compile(r"\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}.*(login|account|verify)", re.IGNORECASE),
        15,
        "IP-based phishing page",
    ),
    (
        "brand_risky_tld",
        re.compile(r"(paypal|amazon|microsoft|apple|google).*\.(tk|ml|ga|xyz)", re.IGNORECASE),
        12,
        "Brand impersonation on suspicious TLD",
    ),
    (
        "multi_subdomain_brand",
        re.compile(r"[a-z0-9-]+\.[a-z0-9-]+\.[a-z0-9-]+\.(paypal|amazon|microsoft)", re.IGNORECASE),
        8,
        "Suspicious subdomain structure",
    ),
    (
        "data_collection_page",
        re.compile(r"(secure|verify|update).*\d{3,}", re.IGNORECASE),
        6,
        "Potential data collection page",
    ),
)


class FeatureVector(BaseModel):
    model_config = ConfigDict(frozen=True)

    url_length: int = 0
    domain_length: int = 0
    path_length: int = 0
    param_count: int = 0
    digit_count: int = 0
    special_char_count: int = 0
    uppercase_count: int = 0
    subdomain_count: int = 0
    has_dash: bool = False
    has_underscore: bool = False
    has_ip: bool = False
    has_port: bool = False
    has_at_symbol: bool = False
    is_https: bool = False
    tld: str = ""
    is_common_tld: bool = False
    entropy: float = 0.0
    suspicious_keywords: int = 0


class PatternMatch(BaseModel):
    model_config = ConfigDict(frozen=True)

    pattern_id: str
    score: int
    description: str


class Classification(BaseModel):
    model_config = ConfigDict(frozen=True)

    classification: MlClassification
    confidence: float
    threat_level: ThreatLevel


class PatternAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    features: FeatureVector | None = None
    base_score: int = 0
    pattern_score: int = 0
    patterns: tuple[PatternMatch, ...] = ()
    score: int = 0
    classification: Classification | None = Field(default=None)


def shannon_entropy(text: str) -> float:
    if not text:
        return 0.0
    total = len(text)
    return -sum((count / total) * math.log2(count / total) for count in Counter(text).values())


def count_url_keywords(url: str) -> int:
    lowered = (url or "").lower()
    return sum(1 for keyword in URL_KEYWORDS if keyword in lowered)


def extract_features(url: str) -> FeatureVector | None:
    record = try_parse_url(url)
    if record is None:
        return None
    raw = record.raw
    host = record.host
    tld = host.split(".")[-1] if host else ""
    return FeatureVector(
        url_length=len(raw),
        domain_length=len(host),
        path_length=len(record.path or "/"),
        param_count=len(parse_qsl(record.query, keep_blank_values=True)),
        digit_count=sum(1 for char in raw if char.isascii() and char.isdigit()),
        special_char_count=sum(1 for char in raw if not (char.isascii() and char.isalnum())),
        uppercase_count=sum(1 for char in raw if "A" <= char <= "Z"),
        subdomain_count=len(host.split(".")) - 2 if host else -1,
        has_dash="-" in host,
        has_underscore="_" in host,
        has_ip=bool(_IPV4_FRAGMENT.search(host)),
        has_port=record.port is not None,
        has_at_symbol="@" in raw,
        is_https=record.scheme == "https",
        tld=tld,
        is_common_tld=tld in COMMON_TLDS,
        entropy=shannon_entropy(host),
        suspicious_keywords=count_url_keywords(raw),
    )


def score_features(features: FeatureVector | None) -> int:
    if features is None:
        return 0
    score = 0
    if features.url_length > 75:
        score += 2
    if features.url_length > 100:
        score += 3
    if features.domain_length > 30:
        score += 2
    if features.digit_count > 8:
        score += 2
    if features.special_char_count > 10:
        score += 2
    if features.uppercase_count > features.domain_length * 0.5:
        score += 1
    if features.subdomain_count > 3:
        score += 3
    if features.has_dash:
        score += 1
    if features.has_underscore:
        score += 2
    if features.has_ip:
        score += 5
    if features.has_port:
        score += 2
    if features.has_at_symbol:
        score += 4
    if not features.is_https:
        score += 3
    if not features.is_common_tld:
        score += 2
    if features.tld in FREE_RISKY_TLDS:
        score += 3
    if features.entropy > 4.5:
        score += 2
    if features.entropy > 5:
        score += 3
    score += features.suspicious_keywords * 2
    return min(score, MAX_BASE_SCORE)


def match_patterns(url: str) -> list[PatternMatch]:
    return [
        PatternMatch(pattern_id=pattern_id, score=score, description=description)
        for pattern_id, regex, score, description in _KNOWN_PATTERNS
        if regex.search(url or "")
    ]


def classify(score: int) -> Classification:
    if score >= 15:
        return Classification(classification="phishing", confidence=min(score / 20, 1.0), threat_level="dangerous")
    if score >= 8:
        return Classification(classification="suspicious", confidence=score / 15, threat_level="suspicious")
    if score >= 4:
        return Classification(
            classification="potentially_suspicious",
            confidence=score / 10,
            threat_level="suspicious",
        )
    return Classification(classification="legitimate", confidence=1 - score / 10, threat_level="safe")


def analyze_patterns(url: str) -> PatternAnalysis:
    features = extract_features(url)
    if features is None:
        return PatternAnalysis()
    base_score = score_features(features)
    patterns = match_patterns(url)
    pattern_score = sum(match.score for match in patterns)
    total = base_score + pattern_score
    return PatternAnalysis(
        features=features,
        base_score=base_score,
        pattern_score=pattern_score,
        patterns=tuple(patterns),
        score=total,
        classification=classify(total),
    )
