"""EventDesk REST API."""

from eventdesk.api.router import router

__all__ = ["router"]
