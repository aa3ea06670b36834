"""Link analysis orchestration."""

from phish_link_guard.orchestrator.aggregator import ThreatAggregator
from phish_link_guard.orchestrator.build import create_aggregator
from phish_link_guard.orchestrator.verdict import composite_score, final_threat_level, format_analysis

__all__ = ["ThreatAggregator", "create_aggregator", "composite_score", "final_threat_level", "format_analysis"]
