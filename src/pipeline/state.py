"""
Notification throttle state.

One slot per site holding the time of the last successful delivery. Slots
start at a sentinel far in the past so the first candidate delivery for a site
is never throttled. State lives for one loop invocation and is not persisted.
"""

from __future__ import annotations

from typing import Dict

NEVER = float("-inf")


class NotificationState:
    """Last successful delivery time per site. Owned and touched by the loop thread only."""

    def __init__(self):
        self._last_report: Dict[str, float] = {}

    def last_report(self, site_name: str) -> float:
        return self._last_report.get(site_name, NEVER)

    def should_report(self, site_name: str, now: float, throttle_s: float) -> bool:
        return now - self.last_report(site_name) >= throttle_s

    def mark_delivered(self, site_name: str, now: float) -> None:
        self._last_report[site_name] = now
