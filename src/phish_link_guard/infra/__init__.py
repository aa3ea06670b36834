"""Stores and side-effect adapters used by the aggregator."""

from phish_link_guard.infra.bounded import BoundedCaller
from phish_link_guard.infra.cache import CachePolicy, CacheStore, InMemoryCacheStore
from phish_link_guard.infra.lists import DomainListStore, domains_match
from phish_link_guard.infra.notify import LoggingNotificationSink, NotificationSink
from phish_link_guard.infra.stats import StatsCounter

__all__ = [
    "BoundedCaller",
    "CachePolicy",
    "CacheStore",
    "InMemoryCacheStore",
    "DomainListStore",
    "domains_match",
    "LoggingNotificationSink",
    "NotificationSink",
    "StatsCounter",
]
