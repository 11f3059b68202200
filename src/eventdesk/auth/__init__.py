"""EventDesk request authentication."""

from eventdesk.auth.context import AuthContext

__all__ = ["AuthContext"]
