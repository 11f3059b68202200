"""EventDesk enumerations."""

from enum import Enum


class EventStatus(str, Enum):
    """Event lifecycle status."""

    DRAFT = "draft"
    PLANNING = "planning"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def terminal_states(cls) -> set["EventStatus"]:
        """Return states with no further forward progress."""
        return {cls.COMPLETED, cls.CANCELLED}

    def is_terminal(self) -> bool:
        """Check if status is terminal."""
        return self in self.terminal_states()


class TabId(str, Enum):
    """Functional areas of an event workspace."""

    OVERVIEW = "overview"
    TEAM = "team"
    CONTRACTORS = "contractors"
    TASKS = "tasks"
    DOCUMENTS = "documents"
    NOTIFICATIONS = "notifications"
    PROGRESS = "progress"


class TaskStatus(str, Enum):
    """Task status. Any status may move to any other."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SharingMode(str, Enum):
    """Mode of one sharing axis."""

    ALL = "all"
    SELECTED = "selected"
    NONE = "none"


class RosterKind(str, Enum):
    """Which side of the roster an id belongs to."""

    TEAM = "team"
    CONTRACTOR = "contractor"


class MemberStatus(str, Enum):
    """Team member onboarding status (informational)."""

    INVITED = "invited"
    ACTIVE = "active"
    ONBOARDING = "onboarding"


class ContractorStatus(str, Enum):
    """Contractor engagement status (informational)."""

    HIRED = "hired"
    INTERESTED = "interested"
    DECLINED = "declined"
    PENDING = "pending"


class ArtifactKind(str, Enum):
    """Kinds of shared artifacts."""

    DOCUMENT = "document"
    TASK = "task"


class RemovalReason(str, Enum):
    """Why a roster removal is blocked."""

    IS_CREATOR = "is_creator"
    ASSIGNED_TASKS = "assigned_tasks"
