"""Social-engineering scoring for text around a link."""

from __future__ import annotations

import logging
from typing import Any

from phish_link_guard.config.reference import ReferenceData
from phish_link_guard.domain.result import Issue

logger = logging.getLogger(__name__)

KEYWORD_WEIGHT = 1
SPAM_WEIGHT = 3


def normalize_text(value: str) -> str:
    return " ".join((value or "").split()).strip().lower()


def context_hits(text: str, reference: ReferenceData) -> dict[str, Any]:
    lowered = normalize_text(text)
    categories: dict[str, list[str]] = {}
    seen: set[str] = set()
    for category, keywords in reference.phishing_keywords.items():
        for keyword in keywords:
            if keyword in seen or keyword not in lowered:
                continue
            seen.add(keyword)
            categories.setdefault(category, []).append(keyword)
    spam = [indicator for indicator in reference.spam_indicators if indicator in lowered]
    return {"keywords": categories, "spam_indicators": spam}


def score_context(text: str | None, reference: ReferenceData) -> int:
    """+1 per distinct phishing keyword and +3 per spam indicator found in text."""

    if not text:
        return 0
    hits = context_hits(text, reference)
    keyword_count = sum(len(items) for items in hits["keywords"].values())
    spam_count = len(hits["spam_indicators"])
    if spam_count:
        logger.info("spam indicators in context: %s", ", ".join(hits["spam_indicators"]))
    return keyword_count * KEYWORD_WEIGHT + spam_count * SPAM_WEIGHT


def context_issue(score: int) -> Issue | None:
    if score <= 0:
        return None
    if score >= 9:
        return Issue(type="suspicious_context", severity="high", message="SPAM: Multiple spam indicators detected in email")
    if score >= 5:
        return Issue(
            type="suspicious_context",
            severity="high",
            message="Link appears in highly suspicious context with spam indicators",
        )
    if score >= 3:
        return Issue(type="suspicious_context", severity="medium", message="Link appears in suspicious phishing context")
    return Issue(type="suspicious_context", severity="low", message="Link appears in suspicious context")
