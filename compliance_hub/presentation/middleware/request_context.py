"""Per-request correlation id."""

import re
import uuid
from contextvars import ContextVar
from typing import Optional

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

REQUEST_ID_HEADER = "X-Request-ID"

# Caller-supplied ids end up in logs and error bodies
_ACCEPTED_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")

_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def get_request_id() -> Optional[str]:
    return _request_id.get()


def request_id_of(request: Request) -> Optional[str]:
    """Id of the request, also available after the middleware has returned."""
    return getattr(request.state, "request_id", None) or get_request_id()


def resolve_request_id(header_value: Optional[str]) -> str:
    """Reuse a well-formed incoming id, otherwise mint a new one."""
    if header_value and _ACCEPTED_ID.match(header_value):
        return header_value
    return uuid.uuid4().hex


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Attaches a correlation id to the request.

    The id is bound into structlog's contextvars, so every log line of the
    request carries it, and it is echoed in the ``X-Request-ID`` response
    header and in error bodies.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        token = _request_id.set(request_id)

        with structlog.contextvars.bound_contextvars(request_id=request_id):
            try:
                response = await call_next(request)
            finally:
                _request_id.reset(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
