"""Fire-and-forget threat notifications."""

from __future__ import annotations

import logging
from typing import Protocol

from phish_link_guard.domain.result import ThreatEvent

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    def notify(self, event: ThreatEvent) -> None: ...


class LoggingNotificationSink:
    def notify(self, event: ThreatEvent) -> None:
        logger.warning(
            "threat blocked: level=%s domain=%s issues=%d url=%s",
            event.threat_level,
            event.domain,
            event.issue_count,
            event.url,
        )
