"""Remedial action domain exceptions."""

from .base import ConflictError, NotFoundError


class ActionNotFoundError(NotFoundError):
    """Raised when a remedial action cannot be found."""

    def __init__(self, action_id: str):
        super().__init__("Remedial action", action_id, code="ACTION_NOT_FOUND")
        self.action_id = action_id


class InvalidActionTransitionError(ConflictError):
    """Raised when a status change is outside the allowed board moves."""

    def __init__(self, action_id: str, current: str, target: str):
        super().__init__(
            message=f"Cannot move action {action_id} from {current} to {target}",
            code="INVALID_ACTION_TRANSITION",
        )
        self.action_id = action_id
        self.current = current
        self.target = target
