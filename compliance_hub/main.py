"""
Compliance Hub application.

Notifies external systems about compliance events, tracks every delivery
attempt, and logs inbound calls from integrated systems such as the
housing management system.

Run with ``compliance-hub`` or ``uvicorn compliance_hub.main:app``.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
import uvicorn
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from compliance_hub import __version__
from compliance_hub.core.config import get_settings
from compliance_hub.core.context import AppContext
from compliance_hub.core.logging import setup_logging
from compliance_hub.core.metrics import get_metrics, get_metrics_content_type
from compliance_hub.presentation.api import api_router
from compliance_hub.presentation.middleware import (
    LoggingMiddleware,
    RequestContextMiddleware,
    error_handler_middleware,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the AppContext on startup and tear it down on shutdown."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)

    context = AppContext(settings)
    await context.startup()
    app.state.context = context
    logger.info("application_started", version=__version__, app_name=settings.app_name)

    try:
        yield
    finally:
        await context.shutdown()
        logger.info("application_stopped")


def create_app() -> FastAPI:
    settings = get_settings()

    application = FastAPI(
        title=settings.app_name,
        description="Outbound webhook delivery and inbound integration log for compliance events.",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Added last so it runs first and the request id is bound before logging
    application.add_middleware(LoggingMiddleware)
    application.add_middleware(RequestContextMiddleware)

    error_handler_middleware(application)
    application.include_router(api_router)

    @application.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        return Response(content=get_metrics(), media_type=get_metrics_content_type())

    @application.get("/", include_in_schema=False)
    async def root() -> RedirectResponse:
        return RedirectResponse(url="/api/docs")

    return application


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "compliance_hub.main:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
    )
