"""Known-phishing reputation store and the feed that fills it."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
import logging
import re
import threading
import time
from typing import Any, Callable, Iterable, Protocol

import requests

from phish_link_guard.core.errors import UpstreamUnavailableError
from phish_link_guard.domain.result import ReputationEntry, ReputationMatch
from phish_link_guard.domain.url.parse import try_parse_url

logger = logging.getLogger(__name__)

FEED_SOURCE = "PhishTank"
FALLBACK_SOURCE = "fallback"
MAX_FEED_URL_LENGTH = 2048
MAX_PAST_AGE_S = 10 * 365 * 24 * 3600
MAX_FUTURE_SKEW_S = 365 * 24 * 3600
STATE_HISTORY_LIMIT = 64
FALLBACK_DOMAINS = (
    "secure-login-verify.tk",
    "account-verify-secure.ml",
    "banking-secure-login.ga",
    "microsoft-support-alert.xyz",
    "apple-security-alert.top",
    "verify-account-now.club",
    "secure-update-required.work",
)

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_DOMAIN_PATTERN = re.compile(
    r"^[a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?(\.[a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?)*$",
    re.IGNORECASE,
)
_BLOCKED_SCHEMES = ("data", "javascript", "file", "vbscript")


class ReputationStore(Protocol):
    def lookup(self, url: str) -> ReputationMatch: ...

    def bulk_load(self, entries: Iterable[ReputationEntry], *, source: str = FEED_SOURCE) -> int: ...


def normalize_lookup_url(url: str) -> str:
    lowered = (url or "").strip().lower()
    return lowered[:-1] if lowered.endswith("/") else lowered


class InMemoryReputationStore:
    """Exact-URL and host index over the latest feed snapshot.

    A load builds fresh indexes and swaps them in whole, so lookups running
    during a refresh see either the previous or the new snapshot.
    """

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._by_url: dict[str, ReputationEntry] = {}
        self._by_domain: dict[str, list[ReputationEntry]] = {}
        self._source = ""
        self._loaded_at: float | None = None

    @property
    def count(self) -> int:
        return len(self._by_url)

    @property
    def source(self) -> str:
        return self._source

    @property
    def loaded_at(self) -> float | None:
        return self._loaded_at

    def bulk_load(self, entries: Iterable[ReputationEntry], *, source: str = FEED_SOURCE) -> int:
        by_url: dict[str, ReputationEntry] = {}
        by_domain: dict[str, list[ReputationEntry]] = {}
        for entry in entries:
            if entry.url:
                by_url[normalize_lookup_url(entry.url)] = entry
            if entry.domain:
                by_domain.setdefault(entry.domain.lower(), []).append(entry)
        self._by_url, self._by_domain = by_url, by_domain
        self._source = source
        self._loaded_at = self._clock()
        return len(by_url)

    def lookup(self, url: str) -> ReputationMatch:
        by_url, by_domain, source = self._by_url, self._by_domain, self._source
        exact = by_url.get(normalize_lookup_url(url))
        if exact is not None:
            return ReputationMatch(
                found=True,
                verified=exact.verified,
                timestamp=exact.timestamp,
                source=source,
                match_type="exact",
            )
        record = try_parse_url(url)
        entries = by_domain.get(record.host) if record is not None else None
        if entries:
            return ReputationMatch(
                found=True,
                verified=any(entry.verified for entry in entries),
                timestamp=entries[0].timestamp,
                source=source,
                match_type="domain",
            )
        return ReputationMatch()


def sanitize_feed_url(raw: Any) -> str | None:
    if not isinstance(raw, str) or not raw:
        return None
    trimmed = raw.strip()[:MAX_FEED_URL_LENGTH]
    if not trimmed.startswith(("http://", "https://")):
        return None
    if _CONTROL_CHARS.search(trimmed):
        return None
    record = try_parse_url(trimmed)
    if record is None or record.scheme in _BLOCKED_SCHEMES:
        return None
    return trimmed


def is_valid_domain(domain: str) -> bool:
    if not domain or not 3 <= len(domain) <= 253:
        return False
    return bool(_DOMAIN_PATTERN.match(domain))


def validate_timestamp(raw: Any, *, now: float) -> float:
    """Feed timestamps outside [now - 10y, now + 1y] fall back to now."""

    value: float | None = None
    if isinstance(raw, bool):
        value = None
    elif isinstance(raw, (int, float)):
        # Feeds publish epoch milliseconds; anything that large cannot be seconds.
        value = float(raw) / 1000 if raw > 1e11 else float(raw)
    elif isinstance(raw, str) and raw.strip():
        try:
            value = datetime.fromisoformat(raw.strip().replace("Z", "+00:00")).timestamp()
        except ValueError:
            value = None
    if value is None or not now - MAX_PAST_AGE_S <= value <= now + MAX_FUTURE_SKEW_S:
        return now
    return value


def parse_feed_entries(payload: Any, *, now: float, max_entries: int = 100_000) -> list[ReputationEntry]:
    if not isinstance(payload, list):
        raise UpstreamUnavailableError("feed payload is not a list")
    if not payload:
        raise UpstreamUnavailableError("feed payload is empty")
    if len(payload) > max_entries:
        logger.warning("feed payload has %d entries, truncating to %d", len(payload), max_entries)
        payload = payload[:max_entries]

    entries: list[ReputationEntry] = []
    skipped = 0
    for item in payload:
        if not isinstance(item, dict):
            skipped += 1
            continue
        url = sanitize_feed_url(item.get("url"))
        record = try_parse_url(url) if url else None
        if url is None or record is None or not is_valid_domain(record.host):
            skipped += 1
            continue
        entries.append(
            ReputationEntry(
                url=url,
                domain=record.host,
                verified=item.get("verified") in ("yes", True),
                timestamp=validate_timestamp(item.get("submission_time"), now=now),
            )
        )
    logger.info("feed parsed: %d valid entries, %d skipped", len(entries), skipped)
    if not entries:
        raise UpstreamUnavailableError("feed has no valid entries")
    return entries


def fallback_entries(*, now: float) -> list[ReputationEntry]:
    return [
        ReputationEntry(url=f"http://{domain}", domain=domain, verified=True, timestamp=now)
        for domain in FALLBACK_DOMAINS
    ]


def http_fetch_json(url: str, *, timeout_s: float) -> Any:
    try:
        response = requests.get(url, headers={"Accept": "application/json"}, timeout=timeout_s)
        response.raise_for_status()
        return response.json()
    except (requests.RequestException, ValueError) as exc:
        raise UpstreamUnavailableError(f"feed fetch failed: {exc}") from exc


class FeedState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    FALLEN_BACK = "fallen_back"


_TERMINAL_STATES = (FeedState.SUCCEEDED, FeedState.FALLEN_BACK)


@dataclass(frozen=True)
class FeedRefreshResult:
    state: FeedState
    source: str
    count: int
    attempts: int
    error: str = ""


@dataclass
class FeedPolicy:
    url: str | None = None
    timeout_s: float = 10.0
    max_retries: int = 2
    backoff_base_s: float = 1.0
    max_entries: int = 100_000
    stale_after_s: float = 86_400.0


@dataclass
class _RefreshRun:
    attempts: int = 0
    entries: list[ReputationEntry] = field(default_factory=list)
    error: str = ""


class ReputationFeed:
    """Refreshes a reputation store: IDLE -> FETCHING -> (RETRYING -> FETCHING)* -> SUCCEEDED | FALLEN_BACK."""

    def __init__(
        self,
        store: ReputationStore,
        *,
        policy: FeedPolicy | None = None,
        fetcher: Callable[[str, float], Any] | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.policy = policy or FeedPolicy()
        self._fetcher = fetcher or (lambda url, timeout_s: http_fetch_json(url, timeout_s=timeout_s))
        self._sleep = sleep
        self._clock = clock
        self._state = FeedState.IDLE
        self._history: deque[FeedState] = deque([FeedState.IDLE], maxlen=STATE_HISTORY_LIMIT)
        self._last_refresh_at: float | None = None
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._run = _RefreshRun()
        self._handlers: dict[FeedState, Callable[[], FeedState]] = {
            FeedState.FETCHING: self._fetching,
            FeedState.RETRYING: self._retrying,
        }

    @property
    def state(self) -> FeedState:
        return self._state

    @property
    def history(self) -> list[FeedState]:
        return list(self._history)

    def is_stale(self) -> bool:
        if self._last_refresh_at is None:
            return True
        return self._clock() - self._last_refresh_at > self.policy.stale_after_s

    def refresh(self) -> FeedRefreshResult:
        with self._lock:
            self._run = _RefreshRun()
            state = FeedState.FETCHING if self.policy.url else FeedState.FALLEN_BACK
            if state is FeedState.FALLEN_BACK:
                self._run.error = "no feed url configured"
            while state not in _TERMINAL_STATES:
                self._enter(state)
                state = self._handlers[state]()
            self._enter(state)
            return self._finish(state)

    def refresh_in_background(self) -> threading.Thread:
        """Start a refresh on a daemon thread unless one is already running."""

        if self._thread is not None and self._thread.is_alive():
            return self._thread
        self._thread = threading.Thread(target=self._refresh_logged, name="reputation-feed-refresh", daemon=True)
        self._thread.start()
        return self._thread

    def _refresh_logged(self) -> None:
        result = self.refresh()
        logger.info(
            "reputation feed refresh finished: state=%s source=%s count=%d attempts=%d",
            result.state.value,
            result.source,
            result.count,
            result.attempts,
        )

    def _enter(self, state: FeedState) -> None:
        self._state = state
        self._history.append(state)

    def _fetching(self) -> FeedState:
        self._run.attempts += 1
        try:
            payload = self._fetcher(str(self.policy.url), self.policy.timeout_s)
            self._run.entries = parse_feed_entries(
                payload,
                now=self._clock(),
                max_entries=self.policy.max_entries,
            )
        except UpstreamUnavailableError as exc:
            self._run.error = str(exc)
            logger.warning("reputation feed attempt %d failed: %s", self._run.attempts, exc)
            if self._run.attempts > self.policy.max_retries:
                return FeedState.FALLEN_BACK
            return FeedState.RETRYING
        return FeedState.SUCCEEDED

    def _retrying(self) -> FeedState:
        delay = self.policy.backoff_base_s * (2 ** (self._run.attempts - 1))
        logger.info("retrying reputation feed in %.1fs", delay)
        self._sleep(delay)
        return FeedState.FETCHING

    def _finish(self, state: FeedState) -> FeedRefreshResult:
        now = self._clock()
        if state is FeedState.SUCCEEDED:
            count = self.store.bulk_load(self._run.entries, source=FEED_SOURCE)
            source = FEED_SOURCE
        else:
            logger.warning("reputation feed unavailable, loading built-in fallback set: %s", self._run.error)
            count = self.store.bulk_load(fallback_entries(now=now), source=FALLBACK_SOURCE)
            source = FALLBACK_SOURCE
        self._last_refresh_at = now
        return FeedRefreshResult(
            state=state,
            source=source,
            count=count,
            attempts=self._run.attempts,
            error=self._run.error if state is FeedState.FALLEN_BACK else "",
        )
