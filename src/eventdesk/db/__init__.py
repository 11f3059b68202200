"""EventDesk database layer."""

from eventdesk.db.base import Base, close_db, init_db
from eventdesk.db.tables import (
    ContractorTable,
    DocumentTable,
    EventTable,
    RosterMemberTable,
    StatusHistoryTable,
    TaskTable,
)

__all__ = [
    "Base",
    "close_db",
    "init_db",
    "ContractorTable",
    "DocumentTable",
    "EventTable",
    "RosterMemberTable",
    "StatusHistoryTable",
    "TaskTable",
]
