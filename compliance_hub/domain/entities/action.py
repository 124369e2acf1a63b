"""Remedial action entity and its kanban status rules."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from compliance_hub.domain.clock import isoformat, utcnow


class ActionStatus(str, Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @classmethod
    def parse(cls, value: "str | ActionStatus") -> "ActionStatus":
        """Accept ``in-progress``, ``In Progress`` and ``canceled`` style spellings."""
        if isinstance(value, ActionStatus):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Action status must be a string, got {type(value).__name__}")
        normalized = value.strip().upper().replace("-", "_").replace(" ", "_")
        if normalized == "CANCELED":
            normalized = "CANCELLED"
        return cls(normalized)


class ActionSeverity(str, Enum):
    IMMEDIATE = "IMMEDIATE"
    URGENT = "URGENT"
    PRIORITY = "PRIORITY"
    ROUTINE = "ROUTINE"
    ADVISORY = "ADVISORY"


FORWARD_PATH: tuple[ActionStatus, ...] = (
    ActionStatus.OPEN,
    ActionStatus.IN_PROGRESS,
    ActionStatus.SCHEDULED,
    ActionStatus.COMPLETED,
)

TERMINAL_STATUSES = frozenset({ActionStatus.COMPLETED, ActionStatus.CANCELLED})


def next_status(status: ActionStatus) -> ActionStatus | None:
    """The single forward step offered on the board, or None for terminal cards."""
    if status.is_terminal:
        return None
    return FORWARD_PATH[FORWARD_PATH.index(status) + 1]


def allowed_transitions(status: ActionStatus) -> frozenset[ActionStatus]:
    if status.is_terminal:
        return frozenset()
    return frozenset({next_status(status), ActionStatus.CANCELLED})


def can_advance(current: ActionStatus, target: ActionStatus) -> bool:
    """Forward moves that may skip steps, or cancellation, from a live status."""
    if current.is_terminal or current == target:
        return False
    if target == ActionStatus.CANCELLED:
        return True
    return FORWARD_PATH.index(target) > FORWARD_PATH.index(current)


@dataclass
class RemedialAction:
    """A piece of remedial work raised against a compliance finding."""

    organisation_id: str
    description: str
    code: str | None = None
    severity: ActionSeverity = ActionSeverity.ROUTINE
    status: ActionStatus = ActionStatus.OPEN
    resolved_at: datetime | None = None
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def next_status(self) -> ActionStatus | None:
        return next_status(self.status)

    def move_to(self, status: ActionStatus) -> None:
        """Apply an already validated status change."""
        self.status = status
        self.updated_at = utcnow()
        if status == ActionStatus.COMPLETED:
            self.resolved_at = self.updated_at

    def to_dict(self) -> dict:
        nxt = self.next_status
        return {
            "id": str(self.id),
            "organisation_id": self.organisation_id,
            "code": self.code,
            "description": self.description,
            "severity": self.severity.value,
            "status": self.status.value,
            "next_status": nxt.value if nxt else None,
            "resolved_at": isoformat(self.resolved_at),
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
