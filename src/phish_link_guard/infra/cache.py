"""Verdict cache with per-verdict retention."""

from __future__ import annotations

from dataclasses import dataclass
import time
from typing import Callable, Protocol

from phish_link_guard.domain.result import AnalysisResult, CacheEntry, ThreatLevel


class CacheStore(Protocol):
    def get(self, url: str) -> CacheEntry | None: ...

    def set(self, url: str, result: AnalysisResult) -> None: ...

    def evict_oldest(self, count: int) -> int: ...

    def clear(self) -> None: ...


@dataclass
class CachePolicy:
    ttl_safe_s: float = 86_400.0
    ttl_suspicious_s: float = 3_600.0
    ttl_dangerous_s: float = 604_800.0
    max_entries: int = 1000
    reverify_dangerous_s: float = 3_600.0
    reverify_suspicious_s: float = 21_600.0

    def ttl_for(self, level: ThreatLevel) -> float:
        if level == "safe":
            return self.ttl_safe_s
        if level == "dangerous":
            return self.ttl_dangerous_s
        return self.ttl_suspicious_s

    def reverify_window(self, level: ThreatLevel) -> float | None:
        if level == "dangerous":
            return self.reverify_dangerous_s
        if level == "suspicious":
            return self.reverify_suspicious_s
        return None

    def should_reuse(self, entry: CacheEntry, now: float) -> bool:
        """False when a risky verdict is old enough to be re-analyzed."""

        window = self.reverify_window(entry.result.threat_level)
        if window is None:
            return True
        return now - entry.stored_at <= window


class InMemoryCacheStore:
    def __init__(self, policy: CachePolicy | None = None, *, clock: Callable[[], float] = time.time) -> None:
        self.policy = policy or CachePolicy()
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, url: object) -> bool:
        return url in self._entries

    def get(self, url: str) -> CacheEntry | None:
        entry = self._entries.get(url)
        if entry is None:
            return None
        if self._clock() - entry.stored_at > self.policy.ttl_for(entry.result.threat_level):
            self._entries.pop(url, None)
            return None
        return entry

    def set(self, url: str, result: AnalysisResult) -> None:
        self._entries.pop(url, None)
        self._entries[url] = CacheEntry(result=result, stored_at=self._clock())
        overflow = len(self._entries) - self.policy.max_entries
        if overflow > 0:
            self.evict_oldest(overflow)

    def evict_oldest(self, count: int) -> int:
        if count <= 0:
            return 0
        oldest = sorted(self._entries.items(), key=lambda item: item[1].stored_at)[:count]
        for url, _entry in oldest:
            self._entries.pop(url, None)
        return len(oldest)

    def clear(self) -> None:
        self._entries.clear()
