"""Scan and block counters."""

from __future__ import annotations

import threading
import time
from typing import Callable

from phish_link_guard.domain.result import ScanStats


class StatsCounter:
    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._stats = ScanStats()

    def increment_scanned(self) -> None:
        with self._lock:
            self._stats = self._stats.model_copy(
                update={"links_scanned": self._stats.links_scanned + 1, "last_scan": self._clock()}
            )

    def increment_blocked(self) -> None:
        with self._lock:
            self._stats = self._stats.model_copy(update={"threats_blocked": self._stats.threats_blocked + 1})

    def snapshot(self) -> ScanStats:
        return self._stats

    def reset(self) -> None:
        with self._lock:
            self._stats = ScanStats()
