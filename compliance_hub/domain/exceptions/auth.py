"""Authentication and authorization exceptions."""

from .base import DomainException, NotFoundError


class AuthError(DomainException):
    """Raised when credentials are missing, unknown, revoked or expired."""

    def __init__(self, message: str = "Invalid or missing API key"):
        super().__init__(message=message, code="UNAUTHORIZED")


class PermissionDeniedError(DomainException):
    """Raised when the caller's role lacks a required capability."""

    def __init__(self, capability: str):
        super().__init__(
            message=f"Missing capability: {capability}",
            code="FORBIDDEN",
        )
        self.capability = capability


class ApiKeyNotFoundError(NotFoundError):
    """Raised when an API key cannot be found."""

    def __init__(self, key_id: str):
        super().__init__("API key", key_id, code="API_KEY_NOT_FOUND")
        self.key_id = key_id
