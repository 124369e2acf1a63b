"""Access logging and HTTP metrics."""

import time
from typing import Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from compliance_hub.core.metrics import record_http_request

logger = structlog.get_logger(__name__)

# Polled by probes and scrapers; logged at debug only
QUIET_PATHS = frozenset({"/metrics", "/api/health"})


def route_label(request: Request) -> str:
    """Route template such as ``/api/admin/webhooks/{endpoint_id}``, or the raw path when unrouted."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs one line per request and records its status and latency."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        client = request.client.host if request.client else None

        try:
            response = await call_next(request)
        except Exception:
            elapsed = time.perf_counter() - started
            record_http_request(request.method, route_label(request), 500, elapsed)
            logger.exception(
                "request_failed",
                method=request.method,
                path=request.url.path,
                client=client,
                duration_ms=round(elapsed * 1000, 2),
            )
            raise

        elapsed = time.perf_counter() - started
        record_http_request(request.method, route_label(request), response.status_code, elapsed)

        log = logger.debug if request.url.path in QUIET_PATHS else logger.info
        log(
            "request_completed",
            method=request.method,
            path=request.url.path,
            query=str(request.query_params) or None,
            client=client,
            status_code=response.status_code,
            duration_ms=round(elapsed * 1000, 2),
        )

        return response
