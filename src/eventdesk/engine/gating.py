"""Tab gating by event status, with debounced lock notifications."""

import logging
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Optional
from uuid import UUID

from eventdesk.models import EventStatus, TabId
from eventdesk.observability.metrics import metrics

logger = logging.getLogger(__name__)

ALL_TABS: frozenset[TabId] = frozenset(TabId)
DRAFT_TABS: frozenset[TabId] = frozenset({TabId.OVERVIEW})


def reachable_tabs(status: EventStatus) -> frozenset[TabId]:
    """Return the tabs reachable for an event in ``status``.

    Drafts only expose the overview; every other status unlocks all tabs.
    """
    if EventStatus(status) == EventStatus.DRAFT:
        return DRAFT_TABS
    return ALL_TABS


def is_tab_reachable(status: EventStatus, tab: TabId) -> bool:
    return TabId(tab) in reachable_tabs(status)


@dataclass(frozen=True)
class TabDecision:
    """Outcome of a tab activation request.

    ``allowed=False`` is always returned for a locked tab. ``notify`` says
    whether the caller should surface the rejection to the user; it is False
    for repeats inside the debounce window.
    """

    tab: TabId
    allowed: bool
    notify: bool = False
    message: Optional[str] = None


class TabGate:
    """Rejects locked tabs and collapses repeated rejections.

    Repeated rejections for the same (event, tab) pair within
    ``debounce_seconds`` of the last notified one are reported with
    ``notify=False``.
    """

    def __init__(
        self,
        debounce_seconds: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.debounce_seconds = debounce_seconds
        self._clock = clock
        self._lock = Lock()
        self._last_notified: dict[tuple[UUID, TabId], float] = {}

    def request(self, event_id: UUID, status: EventStatus, tab: TabId) -> TabDecision:
        tab = TabId(tab)
        if is_tab_reachable(status, tab):
            return TabDecision(tab=tab, allowed=True)

        metrics.inc_counter("tab.rejected")
        message = (
            f"The {tab.value} tab is locked while the event is in "
            f"{EventStatus(status).value} status"
        )
        key = (event_id, tab)
        now = self._clock()
        with self._lock:
            self._prune(now)
            last = self._last_notified.get(key)
            if last is not None and now - last < self.debounce_seconds:
                metrics.inc_counter("tab.notification_suppressed")
                return TabDecision(tab=tab, allowed=False, notify=False, message=message)
            self._last_notified[key] = now

        logger.info(f"Locked tab requested: event={event_id} tab={tab.value}")
        return TabDecision(tab=tab, allowed=False, notify=True, message=message)

    def _prune(self, now: float) -> None:
        # Entries past the window can no longer suppress anything
        expired = [k for k, t in self._last_notified.items() if now - t >= self.debounce_seconds]
        for k in expired:
            del self._last_notified[k]

    def reset(self) -> None:
        with self._lock:
            self._last_notified.clear()
