"""Error handling middleware and exception handlers."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import structlog

from compliance_hub.domain.exceptions import (
    AuthError,
    ConflictError,
    DeliveryFailure,
    DomainException,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from .request_context import REQUEST_ID_HEADER, request_id_of

logger = structlog.get_logger(__name__)


def _error_response(request: Request, status_code: int, code: str, message: str) -> JSONResponse:
    request_id = request_id_of(request)
    return JSONResponse(
        status_code=status_code,
        content={
            "error": code,
            "message": message,
            "request_id": request_id,
        },
        headers={REQUEST_ID_HEADER: request_id} if request_id else None,
    )


def error_handler_middleware(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI app.

    Maps domain exception categories to HTTP responses. Handlers are
    resolved by class hierarchy, so the specific categories win over the
    ``DomainException`` fallback.
    """

    @app.exception_handler(ValidationError)
    async def validation_error_handler(
        request: Request,
        exc: ValidationError,
    ) -> JSONResponse:
        return _error_response(request, 400, exc.code, exc.message)

    @app.exception_handler(NotFoundError)
    async def not_found_handler(
        request: Request,
        exc: NotFoundError,
    ) -> JSONResponse:
        return _error_response(request, 404, exc.code, exc.message)

    @app.exception_handler(ConflictError)
    async def conflict_handler(
        request: Request,
        exc: ConflictError,
    ) -> JSONResponse:
        """Handle operations not allowed in the record's current state."""
        logger.info(
            "request_conflict",
            request_id=request_id_of(request),
            code=exc.code,
            message=exc.message,
        )
        return _error_response(request, 409, exc.code, exc.message)

    @app.exception_handler(AuthError)
    async def auth_error_handler(
        request: Request,
        exc: AuthError,
    ) -> JSONResponse:
        logger.warning("request_unauthenticated", request_id=request_id_of(request), path=request.url.path)
        return _error_response(request, 401, exc.code, exc.message)

    @app.exception_handler(PermissionDeniedError)
    async def permission_denied_handler(
        request: Request,
        exc: PermissionDeniedError,
    ) -> JSONResponse:
        logger.warning(
            "request_forbidden",
            request_id=request_id_of(request),
            capability=exc.capability,
        )
        return _error_response(request, 403, exc.code, exc.message)

    @app.exception_handler(DeliveryFailure)
    async def delivery_failure_handler(
        request: Request,
        exc: DeliveryFailure,
    ) -> JSONResponse:
        """Handle a failed call to a subscriber endpoint."""
        logger.error(
            "webhook_delivery_error",
            request_id=request_id_of(request),
            message=exc.message,
            status_code=exc.status_code,
        )
        return _error_response(request, 502, exc.code, exc.message)

    @app.exception_handler(DomainException)
    async def domain_exception_handler(
        request: Request,
        exc: DomainException,
    ) -> JSONResponse:
        """Handle generic domain exceptions."""
        logger.warning(
            "domain_exception",
            request_id=request_id_of(request),
            code=exc.code,
            message=exc.message,
        )
        return _error_response(request, 400, exc.code, exc.message)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """
        Handle unexpected exceptions.

        Runs outside the request middleware, so the id is read from
        ``request.state``.
        """
        logger.exception(
            "unhandled_exception",
            request_id=request_id_of(request),
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return _error_response(request, 500, "INTERNAL_ERROR", "An unexpected error occurred.")
