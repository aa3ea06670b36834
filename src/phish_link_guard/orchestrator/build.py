"""Build and wire a threat aggregator from configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from phish_link_guard.config.reference import load_reference_data
from phish_link_guard.config.settings import AppConfig, load_config
from phish_link_guard.infra.lists import DomainListStore
from phish_link_guard.orchestrator.aggregator import ThreatAggregator
from phish_link_guard.tools.intel.reputation import FeedPolicy, InMemoryReputationStore, ReputationFeed


def feed_policy_from_config(config: AppConfig) -> FeedPolicy:
    return FeedPolicy(
        url=config.feed_url,
        timeout_s=config.feed_timeout_s,
        max_retries=config.feed_max_retries,
        backoff_base_s=config.feed_backoff_base_s,
        max_entries=config.feed_max_entries,
        stale_after_s=config.feed_refresh_interval_s,
    )


def create_aggregator(
    config: AppConfig | None = None,
    *,
    config_path: str | Path | None = None,
    whitelist: Iterable[str] = (),
    blacklist: Iterable[str] = (),
    refresh_feed: bool = False,
) -> ThreatAggregator:
    active = config or load_config(config_path)
    store = InMemoryReputationStore()
    feed = ReputationFeed(store, policy=feed_policy_from_config(active))
    if refresh_feed:
        feed.refresh()
    return ThreatAggregator(
        config=active,
        reference=load_reference_data(active.reference_data_path),
        whitelist=DomainListStore(whitelist, mode=active.list_match_mode),
        blacklist=DomainListStore(blacklist, mode=active.list_match_mode),
        reputation=store,
        feed=feed,
    )
