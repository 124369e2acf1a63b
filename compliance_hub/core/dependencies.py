"""Dependency injection for FastAPI."""

import hmac
from typing import Annotated, AsyncGenerator, Callable

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from compliance_hub.core.config import Settings, get_settings
from compliance_hub.core.context import AppContext
from compliance_hub.domain.entities import Capability, Principal, Role
from compliance_hub.domain.exceptions import AuthError, PermissionDeniedError
from compliance_hub.domain.interfaces import WebhookSender
from compliance_hub.infrastructure.repositories import (
    PostgresApiKeyRepository,
    PostgresIncomingWebhookRepository,
    PostgresRemedialActionRepository,
    PostgresWebhookDeliveryRepository,
    PostgresWebhookEndpointRepository,
    PostgresWebhookEventRepository,
)
from compliance_hub.infrastructure.workers import WebhookDispatcher
from compliance_hub.service.delivery import DeliverySettings
from compliance_hub.application.services import (
    ApiKeyService,
    DeliveryTracker,
    EndpointRegistry,
    EventLog,
    HmsIntegration,
    IncomingWebhookService,
    RemedialActionService,
)

API_KEY_HEADER = "X-API-Key"


def get_app_context(request: Request) -> AppContext:
    return request.app.state.context


async def get_db_session(
    context: Annotated[AppContext, Depends(get_app_context)],
) -> AsyncGenerator[AsyncSession, None]:
    """Yield one transactional session per request."""
    async with context.database.session() as session:
        yield session


# Repository dependencies
async def get_endpoint_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> PostgresWebhookEndpointRepository:
    return PostgresWebhookEndpointRepository(session)


async def get_event_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> PostgresWebhookEventRepository:
    return PostgresWebhookEventRepository(session)


async def get_delivery_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> PostgresWebhookDeliveryRepository:
    return PostgresWebhookDeliveryRepository(session)


async def get_incoming_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> PostgresIncomingWebhookRepository:
    return PostgresIncomingWebhookRepository(session)


async def get_action_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> PostgresRemedialActionRepository:
    return PostgresRemedialActionRepository(session)


async def get_api_key_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> PostgresApiKeyRepository:
    return PostgresApiKeyRepository(session)


# Long-lived resources owned by the AppContext
def get_webhook_sender(
    context: Annotated[AppContext, Depends(get_app_context)],
) -> WebhookSender:
    return context.sender


def get_delivery_policy(
    context: Annotated[AppContext, Depends(get_app_context)],
) -> DeliverySettings:
    return context.delivery_settings


def get_dispatcher(
    context: Annotated[AppContext, Depends(get_app_context)],
) -> WebhookDispatcher:
    return context.dispatcher


# Service dependencies
async def get_event_log(
    event_repo: Annotated[PostgresWebhookEventRepository, Depends(get_event_repository)],
) -> EventLog:
    return EventLog(event_repository=event_repo)


async def get_delivery_tracker(
    context: Annotated[AppContext, Depends(get_app_context)],
    endpoint_repo: Annotated[PostgresWebhookEndpointRepository, Depends(get_endpoint_repository)],
    event_repo: Annotated[PostgresWebhookEventRepository, Depends(get_event_repository)],
    delivery_repo: Annotated[PostgresWebhookDeliveryRepository, Depends(get_delivery_repository)],
) -> DeliveryTracker:
    """Get a DeliveryTracker sharing the request's session."""
    return DeliveryTracker(
        endpoint_repository=endpoint_repo,
        event_repository=event_repo,
        delivery_repository=delivery_repo,
        settings=context.delivery_settings,
    )


async def get_endpoint_registry(
    endpoint_repo: Annotated[PostgresWebhookEndpointRepository, Depends(get_endpoint_repository)],
    sender: Annotated[WebhookSender, Depends(get_webhook_sender)],
    tracker: Annotated[DeliveryTracker, Depends(get_delivery_tracker)],
) -> EndpointRegistry:
    return EndpointRegistry(endpoint_repository=endpoint_repo, sender=sender, delivery_tracker=tracker)


async def get_action_service(
    action_repo: Annotated[PostgresRemedialActionRepository, Depends(get_action_repository)],
    event_log: Annotated[EventLog, Depends(get_event_log)],
) -> RemedialActionService:
    return RemedialActionService(action_repository=action_repo, event_log=event_log)


async def get_api_key_service(
    api_key_repo: Annotated[PostgresApiKeyRepository, Depends(get_api_key_repository)],
) -> ApiKeyService:
    return ApiKeyService(api_key_repository=api_key_repo)


# Authentication
async def get_principal(
    settings: Annotated[Settings, Depends(get_settings)],
    api_key_service: Annotated[ApiKeyService, Depends(get_api_key_service)],
    x_api_key: Annotated[str | None, Header(alias=API_KEY_HEADER)] = None,
) -> Principal:
    """
    Resolve the caller from the ``X-API-Key`` header.

    The configured admin token acts as SUPER_ADMIN of the default
    organisation; anything else must be an issued, usable API key.
    """
    if not x_api_key:
        raise AuthError(f"Missing {API_KEY_HEADER} header")

    if settings.admin_api_token and hmac.compare_digest(
        x_api_key.encode("utf-8"),
        settings.admin_api_token.encode("utf-8"),
    ):
        return Principal(
            organisation_id=settings.default_organisation_id,
            role=Role.SUPER_ADMIN,
        )

    return await api_key_service.authenticate(x_api_key)


def require(capability: Capability) -> Callable:
    """Build a dependency that only lets through principals holding ``capability``."""

    async def dependency(
        principal: Annotated[Principal, Depends(get_principal)],
    ) -> Principal:
        if not principal.can(capability):
            raise PermissionDeniedError(capability.value)
        return principal

    return dependency


async def get_incoming_service(
    incoming_repo: Annotated[PostgresIncomingWebhookRepository, Depends(get_incoming_repository)],
    action_service: Annotated[RemedialActionService, Depends(get_action_service)],
    principal: Annotated[Principal, Depends(get_principal)],
) -> IncomingWebhookService:
    """Get an IncomingWebhookService whose HMS handlers act in the caller's organisation."""
    hms = HmsIntegration(action_service, organisation_id=principal.organisation_id)
    return IncomingWebhookService(incoming_repository=incoming_repo, handlers=hms.handlers())
