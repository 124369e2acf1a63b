"""Liveness and dependency health."""

from typing import Annotated, Literal

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError

from compliance_hub import __version__
from compliance_hub.core.context import AppContext
from compliance_hub.core.dependencies import get_app_context

logger = structlog.get_logger(__name__)

health_router = APIRouter()


class HealthResponse(BaseModel):
    status: Literal["healthy", "degraded"]
    version: str
    database: Literal["ok", "unavailable"]
    dispatcher_running: bool = Field(
        ...,
        description="Whether the background delivery loop is active in this process",
    )


async def _database_status(context: AppContext) -> str:
    try:
        await context.database.ping()
    except (SQLAlchemyError, RuntimeError, OSError) as e:
        logger.warning("health_database_unavailable", error=str(e))
        return "unavailable"
    return "ok"


@health_router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Reports the service version, database reachability and dispatcher state. No API key needed.",
)
async def health_check(
    context: Annotated[AppContext, Depends(get_app_context)],
) -> HealthResponse:
    database = await _database_status(context)
    return HealthResponse(
        status="healthy" if database == "ok" else "degraded",
        version=__version__,
        database=database,
        dispatcher_running=context.dispatcher.running,
    )
