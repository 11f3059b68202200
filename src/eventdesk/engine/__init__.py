"""EventDesk engine - status transitions, tab gating, sharing and assignments."""

from eventdesk.engine.core import EventDeskEngine
from eventdesk.engine.errors import (
    EventDeskError,
    NotFound,
    RemovalBlocked,
    StorageFailure,
    Unauthorized,
    ValidationFailed,
)
from eventdesk.engine.gating import TabDecision, TabGate, reachable_tabs
from eventdesk.engine.tracker import RemovalCheck

__all__ = [
    "EventDeskEngine",
    "EventDeskError",
    "NotFound",
    "RemovalBlocked",
    "RemovalCheck",
    "StorageFailure",
    "TabDecision",
    "TabGate",
    "Unauthorized",
    "ValidationFailed",
    "reachable_tabs",
]
