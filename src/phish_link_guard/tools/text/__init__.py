"""Text analysis tools."""

from phish_link_guard.tools.text.context import context_hits, context_issue, normalize_text, score_context

__all__ = ["normalize_text", "context_hits", "score_context", "context_issue"]
