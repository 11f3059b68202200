"""EventDesk engine errors."""

from typing import TYPE_CHECKING, Optional

from eventdesk.models.enums import RemovalReason

if TYPE_CHECKING:
    from eventdesk.models.artifact import Task


class EventDeskError(Exception):
    """Base error for EventDesk operations."""

    def __init__(self, message: str, code: str = "EVENTDESK_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class Unauthorized(EventDeskError):
    """Actor lacks permission for the requested mutation."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, "UNAUTHORIZED")


class ValidationFailed(EventDeskError):
    """Malformed input."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, "VALIDATION_FAILED")
        self.field = field


class NotFound(EventDeskError):
    """Referenced event, roster entry or artifact does not exist."""

    def __init__(self, entity: str, entity_id: object):
        super().__init__(f"{entity} not found: {entity_id}", "NOT_FOUND")
        self.entity = entity
        self.entity_id = entity_id


class RemovalBlocked(EventDeskError):
    """Roster removal refused: creator, or outstanding task assignments."""

    def __init__(
        self,
        member_id: object,
        reason: RemovalReason,
        blocking_tasks: Optional[list["Task"]] = None,
    ):
        if reason == RemovalReason.IS_CREATOR:
            message = f"Roster member {member_id} is the event creator and cannot be removed"
        else:
            count = len(blocking_tasks or [])
            message = (
                f"Roster member {member_id} has {count} outstanding task assignment(s); "
                "confirm removal with override"
            )
        super().__init__(message, "REMOVAL_BLOCKED")
        self.member_id = member_id
        self.reason = reason
        self.blocking_tasks = list(blocking_tasks or [])


class StorageFailure(EventDeskError):
    """Opaque wrapper around a storage-layer error. Nothing was applied."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        super().__init__(f"Storage failure during {operation}", "STORAGE_FAILURE")
        self.operation = operation
        self.cause = cause
