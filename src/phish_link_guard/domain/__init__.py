"""Domain models for links, issues and verdicts."""

from phish_link_guard.domain.result import (
    AnalysisResult,
    CacheEntry,
    Issue,
    ReputationEntry,
    ReputationMatch,
    ScanStats,
    Scores,
    ThreatEvent,
)

__all__ = [
    "AnalysisResult",
    "CacheEntry",
    "Issue",
    "ReputationEntry",
    "ReputationMatch",
    "ScanStats",
    "Scores",
    "ThreatEvent",
]
