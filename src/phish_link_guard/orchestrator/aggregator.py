"""Threat aggregator: cache, allow/deny lists, reputation and local heuristics."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
import logging
import time
from typing import Callable, Iterable

from phish_link_guard.config.reference import ReferenceData, load_reference_data
from phish_link_guard.config.settings import AppConfig
from phish_link_guard.core.errors import InvalidUrlError, StoreUnavailableError
from phish_link_guard.domain.result import (
    AnalysisResult,
    CacheEntry,
    Issue,
    ReputationMatch,
    Scores,
    ThreatEvent,
    ThreatLevel,
)
from phish_link_guard.domain.url.detectors import analyze_url, collect_issues, is_legitimate
from phish_link_guard.domain.url.models import UrlRecord
from phish_link_guard.domain.url.parse import parse_url
from phish_link_guard.infra.bounded import BoundedCaller
from phish_link_guard.infra.cache import CachePolicy, CacheStore, InMemoryCacheStore
from phish_link_guard.infra.lists import DomainListStore
from phish_link_guard.infra.notify import LoggingNotificationSink, NotificationSink
from phish_link_guard.infra.stats import StatsCounter
from phish_link_guard.orchestrator.verdict import (
    CONTEXT_SUSPICIOUS_SCORE,
    composite_score,
    final_threat_level,
)
from phish_link_guard.tools.intel.reputation import ReputationFeed, ReputationStore
from phish_link_guard.tools.intel.transport import check_transport
from phish_link_guard.tools.scoring.feedback import FeedbackLog
from phish_link_guard.tools.scoring.patterns import PatternAnalysis, analyze_patterns
from phish_link_guard.tools.text.context import context_issue, score_context

logger = logging.getLogger(__name__)

ML_HIGH_RISK_SCORE = 15
ML_HIGH_PATTERN_SCORE = 10


def cache_policy_from_config(config: AppConfig) -> CachePolicy:
    return CachePolicy(
        ttl_safe_s=config.cache_ttl_safe_s,
        ttl_suspicious_s=config.cache_ttl_suspicious_s,
        ttl_dangerous_s=config.cache_ttl_dangerous_s,
        max_entries=config.cache_max_entries,
        reverify_dangerous_s=config.reverify_dangerous_s,
        reverify_suspicious_s=config.reverify_suspicious_s,
    )


def ml_issues(analysis: PatternAnalysis) -> list[Issue]:
    if analysis.score <= 0:
        return []
    issues = [
        Issue(
            type="ml_pattern",
            severity="high" if match.score > ML_HIGH_PATTERN_SCORE else "medium",
            message=f"ML detected: {match.description}",
        )
        for match in analysis.patterns
    ]
    if analysis.score >= ML_HIGH_RISK_SCORE and analysis.classification is not None:
        confidence = analysis.classification.confidence * 100
        issues.append(
            Issue(
                type="ml_high_risk",
                severity="high",
                message=f"ML detected high-risk patterns (confidence: {confidence:.0f}%)",
            )
        )
    return issues


class ThreatAggregator:
    """Combines every signal for a link into one cached, immutable verdict.

    Public operations never raise: store failures degrade to the local
    heuristics and unexpected errors become an ``unknown`` verdict.
    """

    def __init__(
        self,
        *,
        config: AppConfig | None = None,
        reference: ReferenceData | None = None,
        cache: CacheStore | None = None,
        whitelist: DomainListStore | None = None,
        blacklist: DomainListStore | None = None,
        reputation: ReputationStore | None = None,
        feed: ReputationFeed | None = None,
        notifier: NotificationSink | None = None,
        stats: StatsCounter | None = None,
        feedback: FeedbackLog | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config or AppConfig()
        self.reference = reference or load_reference_data(self.config.reference_data_path)
        self.cache_policy = cache_policy_from_config(self.config)
        self.cache = cache if cache is not None else InMemoryCacheStore(self.cache_policy, clock=clock)
        self.whitelist = whitelist if whitelist is not None else DomainListStore(mode=self.config.list_match_mode)
        self.blacklist = blacklist if blacklist is not None else DomainListStore(mode=self.config.list_match_mode)
        self.reputation = reputation if reputation is not None else (feed.store if feed is not None else None)
        self.feed = feed
        self.notifier = notifier or LoggingNotificationSink()
        self.stats = stats or StatsCounter(clock=clock)
        self.feedback = feedback or FeedbackLog(self.config.feedback_log_size, clock=clock)
        self._clock = clock
        self._io = BoundedCaller(self.config.store_timeout_s)

    def __enter__(self) -> ThreatAggregator:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._io.shutdown()

    def analyze_link(self, url: str, context: str | None = None, *, page_url: str | None = None) -> AnalysisResult:
        try:
            return self._analyze(url, context, page_url)
        except InvalidUrlError as exc:
            logger.info("invalid url: %s", exc)
            return AnalysisResult(
                url=url,
                threat_level="unknown",
                issues=(Issue(type="invalid_url", severity="high", message="Invalid URL format"),),
                timestamp=self._clock(),
                error=str(exc),
            )
        except Exception as exc:
            logger.exception("analysis failed for %s", url)
            return AnalysisResult(
                url=url,
                threat_level="unknown",
                issues=(Issue(type="error", severity="low", message="Analysis failed"),),
                timestamp=self._clock(),
                error=str(exc),
            )

    def analyze_links(
        self,
        urls: Iterable[str],
        context: str | None = None,
        *,
        page_url: str | None = None,
    ) -> list[AnalysisResult]:
        items = list(urls)
        if len(items) <= 1 or self.config.batch_workers <= 1:
            return [self.analyze_link(url, context, page_url=page_url) for url in items]
        workers = min(self.config.batch_workers, len(items))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="analyze-link") as pool:
            return list(pool.map(lambda url: self.analyze_link(url, context, page_url=page_url), items))

    def record_feedback(self, url: str, actual_threat: ThreatLevel) -> None:
        self.feedback.record(url, actual_threat)

    def _analyze(self, url: str, context: str | None, page_url: str | None) -> AnalysisResult:
        now = self._clock()

        cached = self._cache_get(url)
        if cached is not None:
            if self.cache_policy.should_reuse(cached, now):
                return cached.result
            logger.debug("re-analyzing cached %s verdict for %s", cached.result.threat_level, url)

        record = parse_url(url)
        host = record.host

        if host and self._listed(self.whitelist, host, "whitelist"):
            if self._whitelist_still_safe(host):
                result = AnalysisResult(url=url, domain=host, threat_level="safe", is_whitelisted=True, timestamp=now)
                self._cache_set(url, result)
                return result
            logger.warning("whitelisted domain failed verification, removing trust: %s", host)
            self._evict_whitelisted(host)

        if host and self._listed(self.blacklist, host, "blacklist"):
            result = AnalysisResult(
                url=url,
                domain=host,
                threat_level="dangerous",
                issues=(Issue(type="blacklisted", severity="high", message="Domain is in your blacklist"),),
                is_blacklisted=True,
                timestamp=now,
            )
            self._cache_set(url, result)
            self.stats.increment_blocked()
            return result

        match = self._reputation_lookup(url)
        if match.found:
            source = match.source or "reputation feed"
            suffix = " - VERIFIED" if match.verified else ""
            result = AnalysisResult(
                url=url,
                domain=host,
                threat_level="dangerous",
                issues=(
                    Issue(
                        type="reputation_match",
                        severity="high",
                        message=f"Known phishing site (verified by {source}{suffix})",
                    ),
                ),
                is_reputation_match=True,
                reputation_verified=match.verified,
                timestamp=now,
            )
            self._cache_set(url, result)
            self.stats.increment_blocked()
            self._notify(result)
            return result

        result = self._full_analysis(record, context, page_url, now)
        self._cache_set(url, result)
        self.stats.increment_scanned()
        if result.threat_level == "dangerous":
            self.stats.increment_blocked()
            self._notify(result)
        elif result.threat_level == "suspicious" and result.scores.context >= CONTEXT_SUSPICIOUS_SCORE:
            self._notify(result)
        return result

    def _full_analysis(
        self,
        record: UrlRecord,
        context: str | None,
        page_url: str | None,
        now: float,
    ) -> AnalysisResult:
        if is_legitimate(record, self.reference):
            return AnalysisResult(
                url=record.raw,
                domain=record.host,
                threat_level="safe",
                is_legitimate=True,
                timestamp=now,
            )

        structural = collect_issues(record, self.reference)
        patterns = analyze_patterns(record.raw)
        issues = list(structural)
        issues.extend(ml_issues(patterns))
        issues.extend(check_transport(record, page_url=page_url))
        context_score = score_context(context if context else record.raw, self.reference)
        extra = context_issue(context_score)
        if extra is not None:
            issues.append(extra)

        classification = patterns.classification
        return AnalysisResult(
            url=record.raw,
            domain=record.host,
            threat_level=final_threat_level(issues, context_score, legitimate=False),
            issues=tuple(issues),
            scores=Scores(
                base=composite_score(structural, 0),
                pattern=patterns.pattern_score,
                context=context_score,
                ml=patterns.score,
                composite=composite_score(issues, context_score),
            ),
            timestamp=now,
            ml_classification=classification.classification if classification else None,
            ml_confidence=classification.confidence if classification else None,
        )

    def _cache_get(self, url: str) -> CacheEntry | None:
        try:
            return self._io.call("cache read", self.cache.get, url)
        except StoreUnavailableError as exc:
            logger.warning("cache unavailable, treating as miss: %s", exc)
            return None

    def _cache_set(self, url: str, result: AnalysisResult) -> None:
        try:
            self._io.call("cache write", self.cache.set, url, result)
        except StoreUnavailableError as exc:
            logger.warning("cache write skipped: %s", exc)

    def _listed(self, store: DomainListStore, host: str, name: str) -> bool:
        try:
            return self._io.call(f"{name} lookup", store.contains, host)
        except StoreUnavailableError as exc:
            logger.warning("%s unavailable, continuing: %s", name, exc)
            return False

    def _whitelist_still_safe(self, host: str) -> bool:
        try:
            analysis = analyze_url(f"https://{host}", self.reference)
        except InvalidUrlError:
            return False
        return analysis.high_severity_count == 0

    def _evict_whitelisted(self, host: str) -> None:
        try:
            for entry in self._io.call("whitelist lookup", self.whitelist.matching, host):
                self._io.call("whitelist remove", self.whitelist.remove, entry)
        except StoreUnavailableError as exc:
            logger.warning("could not evict %s from whitelist: %s", host, exc)

    def _reputation_lookup(self, url: str) -> ReputationMatch:
        if self.feed is not None and self.feed.is_stale():
            self.feed.refresh_in_background()
        if self.reputation is None:
            return ReputationMatch()
        try:
            return self._io.call("reputation lookup", self.reputation.lookup, url)
        except StoreUnavailableError as exc:
            logger.warning("reputation lookup unavailable, using local heuristics: %s", exc)
            return ReputationMatch()

    def _notify(self, result: AnalysisResult) -> None:
        event = ThreatEvent(
            url=result.url,
            domain=result.domain,
            threat_level=result.threat_level,
            issue_count=len(result.issues),
        )
        try:
            self.notifier.notify(event)
        except Exception:
            logger.exception("notification sink failed for %s", result.url)
