import threading

import pytest

from phish_link_guard.config.settings import AppConfig
from phish_link_guard.domain.result import ReputationEntry, ReputationMatch
from phish_link_guard.infra.lists import DomainListStore
from phish_link_guard.orchestrator import aggregator as aggregator_module
from phish_link_guard.tools.intel.reputation import FeedPolicy, InMemoryReputationStore, ReputationFeed

SPAM_CONTEXT = "Congratulations winner! Claim your prize and make money with bitcoin"


def _types(result):
    return [issue.type for issue in result.issues]


class _HangingStore:
    def __init__(self):
        self.release = threading.Event()

    def lookup(self, url):
        self.release.wait(2)
        return ReputationMatch(found=True, verified=True, source="slow")


class _BrokenStore:
    def lookup(self, url):
        raise RuntimeError("store offline")


class _BrokenCache:
    def get(self, url):
        raise RuntimeError("cache offline")

    def set(self, url, result):
        raise RuntimeError("cache offline")

    def evict_oldest(self, count):
        return 0

    def clear(self):
        return None


class _BrokenSink:
    def notify(self, event):
        raise RuntimeError("sink offline")


def test_legitimate_domain_is_safe_without_issues(make_aggregator, sink):
    agg = make_aggregator()
    result = agg.analyze_link("https://mail.google.com/mail/u/0/")
    assert result.threat_level == "safe"
    assert result.issues == ()
    assert result.is_legitimate is True
    assert result.domain == "mail.google.com"
    assert agg.stats.snapshot().links_scanned == 1
    assert sink.events == []


def test_typosquatted_domain_is_dangerous_and_notified(make_aggregator, sink):
    agg = make_aggregator()
    result = agg.analyze_link("https://gooogle.com")
    assert result.threat_level == "dangerous"
    assert "typosquatting" in _types(result)
    assert result.scores.base == 3
    assert [event.domain for event in sink.events] == ["gooogle.com"]
    assert agg.stats.snapshot().threats_blocked == 1


def test_homograph_brand_spelling_is_dangerous(make_aggregator):
    result = make_aggregator().analyze_link("https://pаypal.com/")
    assert result.threat_level == "dangerous"
    assert "homograph" in _types(result)
    assert "typosquatting" in _types(result)


def test_accented_host_without_brand_is_only_suspicious(make_aggregator, sink):
    result = make_aggregator().analyze_link("https://café.fr/")
    assert result.threat_level == "suspicious"
    assert _types(result) == ["homograph"]
    assert sink.events == []


@pytest.mark.parametrize("url", ["https://chess.com/", "https://phase.com/", "https://apply.com/", "https://stack.com/"])
def test_ordinary_words_near_brand_names_are_not_dangerous(make_aggregator, sink, url):
    agg = make_aggregator()
    result = agg.analyze_link(url)
    assert result.threat_level != "dangerous"
    assert "typosquatting" not in _types(result)
    assert sink.events == []
    assert agg.stats.snapshot().threats_blocked == 0


def test_ip_login_page_folds_in_pattern_scores(make_aggregator):
    result = make_aggregator().analyze_link("http://192.168.1.1/login")
    types = _types(result)
    assert "ip_address" in types
    assert "ml_pattern" in types
    assert "ml_high_risk" in types
    assert "insecure_protocol" in types
    assert result.scores.pattern == 15
    assert result.scores.ml == 27
    assert result.ml_classification == "phishing"
    assert result.threat_level == "dangerous"


def test_spam_context_forces_dangerous_without_structural_issues(make_aggregator, sink):
    result = make_aggregator().analyze_link("https://example.org/welcome", SPAM_CONTEXT)
    assert _types(result) == ["suspicious_context"]
    assert result.scores.context == 10
    assert result.threat_level == "dangerous"
    assert len(sink.events) == 1


def test_moderate_context_forces_suspicious_and_notifies(make_aggregator, sink):
    agg = make_aggregator()
    result = agg.analyze_link("https://example.org/welcome", "Make money with bitcoin")
    assert result.scores.context == 6
    assert result.threat_level == "suspicious"
    assert [event.threat_level for event in sink.events] == ["suspicious"]
    assert agg.stats.snapshot().threats_blocked == 0


def test_mixed_content_on_https_page(make_aggregator):
    result = make_aggregator().analyze_link("http://example.org/", page_url="https://mail.example.com/")
    assert "mixed_content" in _types(result)


def test_dangerous_verdict_is_reused_for_an_hour(make_aggregator, clock):
    agg = make_aggregator()
    first = agg.analyze_link("http://192.168.1.1")
    assert first.threat_level == "dangerous"

    clock.advance(30 * 60)
    assert agg.analyze_link("http://192.168.1.1") == first
    assert agg.stats.snapshot().links_scanned == 1

    clock.advance(31 * 60)
    again = agg.analyze_link("http://192.168.1.1")
    assert agg.stats.snapshot().links_scanned == 2
    assert again.timestamp == clock.now


def test_suspicious_verdict_expires_with_its_ttl(make_aggregator, clock):
    agg = make_aggregator()
    assert agg.analyze_link("https://bit.ly/abc").threat_level == "suspicious"
    clock.advance(30 * 60)
    agg.analyze_link("https://bit.ly/abc")
    assert agg.stats.snapshot().links_scanned == 1
    clock.advance(31 * 60)
    agg.analyze_link("https://bit.ly/abc")
    assert agg.stats.snapshot().links_scanned == 2


def test_analysis_is_idempotent_without_cache(make_aggregator):
    url = "http://paypal.com.secure-login.tk/verify?id=12345"
    assert make_aggregator().analyze_link(url) == make_aggregator().analyze_link(url)


def test_whitelisted_domain_is_safe(make_aggregator):
    agg = make_aggregator(whitelist=DomainListStore(["example.org"]))
    result = agg.analyze_link("https://example.org/page")
    assert result.threat_level == "safe"
    assert result.is_whitelisted is True
    assert agg.stats.snapshot().links_scanned == 0


def test_whitelist_entry_failing_verification_is_evicted(make_aggregator):
    whitelist = DomainListStore(["paypal.com.evil.tk"])
    agg = make_aggregator(whitelist=whitelist)
    result = agg.analyze_link("https://paypal.com.evil.tk/login")
    assert len(whitelist) == 0
    assert result.is_whitelisted is False
    assert result.threat_level == "dangerous"


def test_whitelist_match_mode(make_aggregator):
    substring = make_aggregator(whitelist=DomainListStore(["a.com"]))
    assert substring.analyze_link("https://notcompromised-a.com/").is_whitelisted is True
    suffix = make_aggregator(whitelist=DomainListStore(["a.com"], mode="suffix"))
    assert suffix.analyze_link("https://notcompromised-a.com/").is_whitelisted is False


def test_blacklisted_domain_is_dangerous(make_aggregator):
    agg = make_aggregator(blacklist=DomainListStore(["evil.example"]))
    result = agg.analyze_link("https://login.evil.example/x")
    assert result.threat_level == "dangerous"
    assert _types(result) == ["blacklisted"]
    assert result.is_blacklisted is True
    assert agg.stats.snapshot().threats_blocked == 1
    assert agg.stats.snapshot().links_scanned == 0


def test_reputation_match_is_dangerous(make_aggregator, sink):
    store = InMemoryReputationStore()
    store.bulk_load(
        [ReputationEntry(url="http://phish.example/login", domain="phish.example", verified=True, timestamp=1.0)],
        source="PhishTank",
    )
    result = make_aggregator(reputation=store).analyze_link("http://phish.example/login")
    assert result.threat_level == "dangerous"
    assert _types(result) == ["reputation_match"]
    assert result.issues[0].message == "Known phishing site (verified by PhishTank - VERIFIED)"
    assert result.is_reputation_match is True
    assert result.reputation_verified is True
    assert len(sink.events) == 1


def test_hanging_reputation_store_degrades_to_heuristics(make_aggregator):
    store = _HangingStore()
    agg = make_aggregator(config=AppConfig(store_timeout_s=0.05), reputation=store)
    try:
        result = agg.analyze_link("https://gooogle.com")
    finally:
        store.release.set()
    assert result.is_reputation_match is False
    assert result.threat_level == "dangerous"
    assert "typosquatting" in _types(result)


def test_failing_reputation_store_degrades_to_heuristics(make_aggregator):
    result = make_aggregator(reputation=_BrokenStore()).analyze_link("https://example.org/welcome")
    assert result.is_reputation_match is False
    assert result.error is None


def test_cache_failures_are_treated_as_misses(make_aggregator):
    result = make_aggregator(cache=_BrokenCache()).analyze_link("https://gooogle.com")
    assert result.threat_level == "dangerous"


def test_sink_failure_does_not_change_verdict(make_aggregator):
    result = make_aggregator(notifier=_BrokenSink()).analyze_link("https://gooogle.com")
    assert result.threat_level == "dangerous"


def test_invalid_url_is_unknown_and_not_cached(make_aggregator):
    agg = make_aggregator()
    result = agg.analyze_link("not a url")
    assert result.threat_level == "unknown"
    assert [(issue.type, issue.severity) for issue in result.issues] == [("invalid_url", "high")]
    assert result.error
    assert len(agg.cache) == 0


def test_unexpected_error_becomes_unknown_verdict(make_aggregator, monkeypatch):
    def _boom(url):
        raise RuntimeError("boom")

    monkeypatch.setattr(aggregator_module, "analyze_patterns", _boom)
    result = make_aggregator().analyze_link("https://example.org/welcome")
    assert result.threat_level == "unknown"
    assert [(issue.type, issue.severity) for issue in result.issues] == [("error", "low")]
    assert result.error == "boom"


def test_batch_analysis_preserves_input_order(make_aggregator):
    results = make_aggregator().analyze_links(["https://google.com", "http://192.168.1.1", "not a url"])
    assert [result.url for result in results] == ["https://google.com", "http://192.168.1.1", "not a url"]
    assert [result.threat_level for result in results] == ["safe", "dangerous", "unknown"]


def test_fallback_feed_entries_are_reputation_matches(make_aggregator):
    feed = ReputationFeed(InMemoryReputationStore(), policy=FeedPolicy(url=None))
    feed.refresh()
    result = make_aggregator(feed=feed).analyze_link("http://secure-login-verify.tk")
    assert result.is_reputation_match is True
    assert "fallback" in result.issues[0].message


def test_stale_feed_is_refreshed_in_background(make_aggregator, monkeypatch):
    feed = ReputationFeed(InMemoryReputationStore(), policy=FeedPolicy(url=None))
    calls = []
    monkeypatch.setattr(feed, "refresh_in_background", lambda: calls.append("refresh"))
    make_aggregator(feed=feed).analyze_link("https://example.org/")
    assert calls == ["refresh"]


def test_record_feedback_appends_to_log(make_aggregator):
    agg = make_aggregator()
    agg.record_feedback("http://192.168.1.1/login", "dangerous")
    assert len(agg.feedback) == 1
    assert agg.feedback.stats()["agreement"] == 1.0
