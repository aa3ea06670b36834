"""Verdict, issue and store record structures."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Severity = Literal["low", "medium", "high"]
ThreatLevel = Literal["safe", "suspicious", "dangerous", "unknown"]
MlClassification = Literal["phishing", "suspicious", "potentially_suspicious", "legitimate"]


class Issue(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    severity: Severity
    message: str = ""


class Scores(BaseModel):
    model_config = ConfigDict(frozen=True)

    base: int = 0
    pattern: int = 0
    context: int = 0
    ml: int = 0
    composite: int = 0


class AnalysisResult(BaseModel):
    """Outcome of analysing one link; never mutated once built."""

    model_config = ConfigDict(frozen=True)

    url: str
    domain: str = ""
    threat_level: ThreatLevel = "unknown"
    issues: tuple[Issue, ...] = ()
    scores: Scores = Field(default_factory=Scores)
    timestamp: float = 0.0
    is_legitimate: bool = False
    is_whitelisted: bool = False
    is_blacklisted: bool = False
    is_reputation_match: bool = False
    reputation_verified: bool = False
    ml_classification: MlClassification | None = None
    ml_confidence: float | None = None
    error: str | None = None

    def count(self, severity: Severity) -> int:
        return sum(1 for issue in self.issues if issue.severity == severity)


class CacheEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    result: AnalysisResult
    stored_at: float


class ReputationEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str = ""
    domain: str = ""
    verified: bool = False
    timestamp: float = 0.0


class ReputationMatch(BaseModel):
    model_config = ConfigDict(frozen=True)

    found: bool = False
    verified: bool = False
    timestamp: float | None = None
    source: str = ""
    match_type: Literal["exact", "domain", ""] = ""


class ThreatEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    domain: str = ""
    threat_level: ThreatLevel
    issue_count: int = 0


class ScanStats(BaseModel):
    links_scanned: int = 0
    threats_blocked: int = 0
    last_scan: float | None = None
