"""Inbound webhook domain exceptions."""

from .base import ConflictError, NotFoundError


class IncomingLogNotFoundError(NotFoundError):
    """Raised when an incoming webhook log entry cannot be found."""

    def __init__(self, log_id: str):
        super().__init__("Incoming webhook log", log_id, code="INCOMING_WEBHOOK_NOT_FOUND")
        self.log_id = log_id


class IncomingLogAlreadyProcessedError(ConflictError):
    """Raised when replaying an entry that was already processed."""

    def __init__(self, log_id: str):
        super().__init__(
            message=f"Incoming webhook {log_id} was already processed",
            code="INCOMING_WEBHOOK_ALREADY_PROCESSED",
        )
        self.log_id = log_id
