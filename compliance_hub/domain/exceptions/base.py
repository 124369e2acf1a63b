"""Base domain exceptions."""


class DomainException(Exception):
    """
    Base exception for all domain-level errors.

    Domain exceptions represent business rule violations or
    domain-specific error conditions.
    """

    def __init__(self, message: str, code: str = "DOMAIN_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)


class ValidationError(DomainException):
    """Raised when input is malformed or violates an entity invariant."""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        super().__init__(message=message, code=code)


class NotFoundError(DomainException):
    """Raised when a referenced record does not exist."""

    def __init__(self, kind: str, identifier: str, code: str = "NOT_FOUND"):
        super().__init__(
            message=f"{kind} not found: {identifier}",
            code=code,
        )
        self.identifier = identifier


class ConflictError(DomainException):
    """Raised when an operation is not allowed in the record's current state."""

    def __init__(self, message: str, code: str = "CONFLICT"):
        super().__init__(message=message, code=code)
