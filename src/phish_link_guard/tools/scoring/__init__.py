"""Deterministic URL feature scoring."""

from phish_link_guard.tools.scoring.feedback import FeedbackLog, FeedbackRecord
from phish_link_guard.tools.scoring.patterns import (
    Classification,
    FeatureVector,
    PatternAnalysis,
    PatternMatch,
    analyze_patterns,
    classify,
    extract_features,
    match_patterns,
    score_features,
    shannon_entropy,
)

__all__ = [
    "Classification",
    "FeatureVector",
    "FeedbackLog",
    "FeedbackRecord",
    "PatternAnalysis",
    "PatternMatch",
    "analyze_patterns",
    "classify",
    "extract_features",
    "match_patterns",
    "score_features",
    "shannon_entropy",
]
