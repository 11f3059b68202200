"""Observability helpers for EventDesk."""

from eventdesk.observability.metrics import metrics

__all__ = ["metrics"]
