"""Bounded feedback log for the URL feature scorer."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
import time
from typing import Any, Callable

from phish_link_guard.domain.result import ThreatLevel
from phish_link_guard.tools.scoring.patterns import FeatureVector, analyze_patterns


@dataclass(frozen=True)
class FeedbackRecord:
    url: str
    actual_threat: ThreatLevel
    predicted_threat: ThreatLevel | None
    features: FeatureVector | None
    timestamp: float


class FeedbackLog:
    """Keeps the most recent labelled verdicts for offline re-weighting.

    Nothing is learned here: records are only collected and summarised.
    """

    def __init__(self, max_entries: int = 1000, *, clock: Callable[[], float] = time.time) -> None:
        self._records: deque[FeedbackRecord] = deque(maxlen=max(1, int(max_entries)))
        self._clock = clock

    def __len__(self) -> int:
        return len(self._records)

    def record(self, url: str, actual_threat: ThreatLevel) -> FeedbackRecord:
        analysis = analyze_patterns(url)
        entry = FeedbackRecord(
            url=url,
            actual_threat=actual_threat,
            predicted_threat=analysis.classification.threat_level if analysis.classification else None,
            features=analysis.features,
            timestamp=self._clock(),
        )
        self._records.append(entry)
        return entry

    def records(self) -> list[FeedbackRecord]:
        return list(self._records)

    def stats(self) -> dict[str, Any]:
        total = len(self._records)
        by_label = {"dangerous": 0, "suspicious": 0, "safe": 0}
        agreed = 0
        for entry in self._records:
            if entry.actual_threat in by_label:
                by_label[entry.actual_threat] += 1
            if entry.predicted_threat == entry.actual_threat:
                agreed += 1
        return {
            "total_samples": total,
            "phishing": by_label["dangerous"],
            "suspicious": by_label["suspicious"],
            "safe": by_label["safe"],
            "agreement": round(agreed / total, 3) if total else 0.0,
        }
