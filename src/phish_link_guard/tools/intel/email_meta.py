"""Sender, subject and body signals for a single email."""

from __future__ import annotations

from functools import lru_cache
import re
from typing import Literal

from pydantic import BaseModel, Field

from phish_link_guard.config.reference import ReferenceData
from phish_link_guard.domain.result import Severity

_EMAIL_DOMAIN_PATTERN = re.compile(r"@([a-z0-9.-]+\.[a-z]{2,})", re.IGNORECASE)
_RANDOM_LABEL_PATTERN = re.compile(r"[a-z0-9]{15,}")
_CAPS_RUN_PATTERN = re.compile(r"[A-Z]{5,}")
_PUNCTUATION_RUN_PATTERN = re.compile(r"[!?]{3,}")
_LINK_PATTERN = re.compile(r"https?://", re.IGNORECASE)
_TIME_PRESSURE_PATTERN = re.compile(r"within \d+ (hour|day)s?", re.IGNORECASE)


@lru_cache(maxsize=512)
def _term_pattern(term: str) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(term)}\b")


def _matching_terms(text: str, terms: tuple[str, ...]) -> list[str]:
    return [term for term in terms if _term_pattern(term).search(text)]


class EmailMetadata(BaseModel):
    sender_email: str = ""
    display_name: str = ""
    reply_to: str = ""
    subject: str = ""
    body: str = ""


class EmailFinding(BaseModel):
    type: str
    severity: Severity
    message: str
    score: int = 0
    indicators: list[str] = Field(default_factory=list)


class EmailReport(BaseModel):
    findings: list[EmailFinding] = Field(default_factory=list)
    risk_score: int = 0
    risk_level: Literal["low", "medium", "high"] = "low"
    safe: bool = True
    message: str = "No suspicious indicators detected"


def extract_domain(raw: str) -> str:
    if not raw:
        return ""
    match = _EMAIL_DOMAIN_PATTERN.search(raw.lower())
    return match.group(1) if match else ""


def analyze_sender_domain(email: str, reference: ReferenceData) -> EmailFinding | None:
    domain = extract_domain(email)
    if not domain:
        return None
    tld = domain.rsplit(".", 1)[-1]
    if tld in reference.email.risky_sender_tlds:
        return EmailFinding(
            type="suspicious_domain",
            severity="high",
            message=f"Suspicious TLD (.{tld}) commonly used for phishing",
            score=5,
            indicators=["unusual_domain_extension"],
        )
    if _RANDOM_LABEL_PATTERN.search(domain):
        return EmailFinding(
            type="suspicious_domain",
            severity="medium",
            message="Domain contains unusually long random string",
            score=3,
            indicators=["possible_disposable_domain"],
        )
    if domain.count("-") > 2:
        return EmailFinding(
            type="suspicious_domain",
            severity="medium",
            message="Domain contains excessive hyphens",
            score=2,
            indicators=["unusual_domain_structure"],
        )
    return None


def analyze_subject(subject: str, reference: ReferenceData) -> EmailFinding | None:
    lowered = (subject or "").lower()
    urgency = _matching_terms(lowered, reference.email.urgency_keywords)
    financial = _matching_terms(lowered, reference.email.financial_keywords)
    keywords = urgency + financial
    score = 2 * len(urgency) + len(financial)
    if _CAPS_RUN_PATTERN.search(subject or ""):
        keywords.append("excessive_caps")
        score += 2
    if _PUNCTUATION_RUN_PATTERN.search(subject or ""):
        keywords.append("excessive_punctuation")
        score += 1
    if score <= 0:
        return None
    return EmailFinding(
        type="suspicious_subject",
        severity="high" if score >= 4 else "medium",
        message=f"Subject contains {len(keywords)} suspicious keywords",
        score=score,
        indicators=keywords,
    )


def analyze_body(body: str, reference: ReferenceData) -> EmailFinding | None:
    lowered = (body or "").lower()
    score = 0
    patterns: list[str] = []
    if len(_LINK_PATTERN.findall(body or "")) > 5:
        patterns.append("multiple_links")
        score += 2
    phrases = _matching_terms(lowered, reference.email.suspicious_phrases)
    patterns.extend(phrases)
    score += len(phrases)
    if _TIME_PRESSURE_PATTERN.search(body or ""):
        patterns.append("time_pressure")
        score += 2
    for term in _matching_terms(lowered, reference.email.personal_info_terms):
        patterns.append("requests_" + term.replace(" ", "_"))
        score += 3
    if score <= 0:
        return None
    return EmailFinding(
        type="suspicious_content",
        severity="high" if score >= 6 else "medium",
        message=f"Email content contains {len(patterns)} phishing indicators",
        score=score,
        indicators=patterns,
    )


def analyze_display_name(display_name: str, email: str, reference: ReferenceData) -> EmailFinding | None:
    lowered = (display_name or "").lower()
    if not lowered:
        return None
    domain = extract_domain(email)
    for brand in _matching_terms(lowered, reference.email.impersonated_brands):
        if brand not in domain:
            return EmailFinding(
                type="display_name_spoof",
                severity="high",
                message=f"Display name claims to be {brand} but domain is {domain or 'unknown'}",
                score=8,
                indicators=[brand],
            )
    if "@" in display_name and display_name.strip().lower() != (email or "").strip().lower():
        return EmailFinding(
            type="display_name_spoof",
            severity="medium",
            message="Display name contains different email address",
            score=4,
        )
    return None


def risk_level(score: int) -> Literal["low", "medium", "high"]:
    if score >= 10:
        return "high"
    if score >= 5:
        return "medium"
    return "low"


def analyze_email_metadata(metadata: EmailMetadata, reference: ReferenceData) -> EmailReport:
    findings: list[EmailFinding] = []

    sender_domain = extract_domain(metadata.sender_email)
    reply_to_domain = extract_domain(metadata.reply_to)
    if sender_domain and reply_to_domain and sender_domain != reply_to_domain:
        findings.append(
            EmailFinding(
                type="sender_mismatch",
                severity="high",
                message=f"Reply-To domain ({reply_to_domain}) differs from sender ({sender_domain})",
                score=8,
                indicators=["possible_email_spoofing"],
            )
        )

    for finding in (
        analyze_sender_domain(metadata.sender_email, reference),
        analyze_subject(metadata.subject, reference),
        analyze_body(metadata.body, reference),
        analyze_display_name(metadata.display_name, metadata.sender_email, reference),
    ):
        if finding is not None:
            findings.append(finding)

    score = sum(finding.score for finding in findings)
    if not findings:
        return EmailReport()
    level = risk_level(score)
    message = {
        "high": "HIGH RISK: Multiple phishing indicators detected",
        "medium": "CAUTION: Some suspicious characteristics detected",
        "low": "Minor concerns detected",
    }[level]
    return EmailReport(findings=findings, risk_score=score, risk_level=level, safe=score < 5, message=message)
