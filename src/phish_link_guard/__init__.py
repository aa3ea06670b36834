"""Phishing link heuristics, scoring and verdict aggregation."""

from phish_link_guard.orchestrator import ThreatAggregator, create_aggregator, format_analysis
from phish_link_guard.tools.intel.email_meta import EmailMetadata, analyze_email_metadata

__all__ = [
    "ThreatAggregator",
    "create_aggregator",
    "format_analysis",
    "EmailMetadata",
    "analyze_email_metadata",
]

__version__ = "0.1.0"
