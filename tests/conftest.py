from __future__ import annotations

import os

import pytest

from phish_link_guard.config.reference import default_reference_data
from phish_link_guard.domain.result import ThreatEvent
from phish_link_guard.orchestrator.aggregator import ThreatAggregator

START_TIME = 1_700_000_000.0


class FakeClock:
    def __init__(self, start: float = START_TIME) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSink:
    def __init__(self) -> None:
        self.events: list[ThreatEvent] = []

    def notify(self, event: ThreatEvent) -> None:
        self.events.append(event)


@pytest.fixture(autouse=True)
def isolate_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("PHISH_LINK_GUARD_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def reference():
    return default_reference_data()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def make_aggregator(reference, clock, sink):
    created: list[ThreatAggregator] = []

    def _make(**kwargs) -> ThreatAggregator:
        kwargs.setdefault("reference", reference)
        kwargs.setdefault("clock", clock)
        kwargs.setdefault("notifier", sink)
        aggregator = ThreatAggregator(**kwargs)
        created.append(aggregator)
        return aggregator

    yield _make
    for aggregator in created:
        aggregator.close()
