"""Final verdict aggregation and display formatting."""

from __future__ import annotations

from typing import Any, Iterable

from phish_link_guard.domain.result import AnalysisResult, Issue, ThreatLevel

SEVERITY_WEIGHTS = {"high": 3, "medium": 2, "low": 1}
CONTEXT_DANGEROUS_SCORE = 9
CONTEXT_SUSPICIOUS_SCORE = 5
LOOKALIKE_ISSUE_TYPES = ("typosquatting",)

_DISPLAY = {
    "safe": ("#28a745", "✓", "This link appears to be safe"),
    "suspicious": ("#ffc107", "⚠", "This link has suspicious characteristics"),
    "dangerous": ("#dc3545", "✕", "This link is likely a phishing attempt"),
}
_DISPLAY_UNKNOWN = ("#6c757d", "?", "This link could not be fully analyzed")


def composite_score(issues: Iterable[Issue], context_score: int) -> int:
    return sum(SEVERITY_WEIGHTS.get(issue.severity, 0) for issue in issues) + max(0, int(context_score))


def lookalike_rule_hits(issues: Iterable[Issue]) -> list[str]:
    """Issue types that force a dangerous verdict on their own."""

    return list(dict.fromkeys(issue.type for issue in issues if issue.type in LOOKALIKE_ISSUE_TYPES))


def final_threat_level(issues: list[Issue] | tuple[Issue, ...], context_score: int, *, legitimate: bool) -> ThreatLevel:
    if legitimate:
        return "safe"
    if context_score >= CONTEXT_DANGEROUS_SCORE:
        return "dangerous"
    if context_score >= CONTEXT_SUSPICIOUS_SCORE:
        return "suspicious"
    if lookalike_rule_hits(issues):
        return "dangerous"

    high = sum(1 for issue in issues if issue.severity == "high")
    medium = sum(1 for issue in issues if issue.severity == "medium")
    composite = composite_score(issues, context_score)
    if composite >= 5 or high >= 2:
        return "dangerous"
    if composite >= 2 or high >= 1 or medium >= 2:
        return "suspicious"
    if issues:
        return "suspicious"
    return "unknown"


def format_analysis(result: AnalysisResult) -> dict[str, Any]:
    color, icon, description = _DISPLAY.get(result.threat_level, _DISPLAY_UNKNOWN)
    payload = result.model_dump(mode="json")
    payload.update(
        {
            "color": color,
            "icon": icon,
            "description": description,
            "issue_count": len(result.issues),
            "high_severity_count": result.count("high"),
            "medium_severity_count": result.count("medium"),
        }
    )
    return payload
