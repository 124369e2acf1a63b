"""Per-application resources: database, HTTP sender and dispatcher."""

import structlog

from compliance_hub.core.config import Settings
from compliance_hub.domain.interfaces import WebhookSender
from compliance_hub.infrastructure.clients import HttpWebhookSender
from compliance_hub.infrastructure.database import DatabaseSessionManager
from compliance_hub.infrastructure.workers import WebhookDispatcher
from compliance_hub.service.delivery import DeliverySettings, get_delivery_settings

logger = structlog.get_logger(__name__)


class AppContext:
    """
    Owns every long-lived resource of one application instance.

    Created in the lifespan handler and stored on ``app.state.context``;
    request dependencies read it from there instead of module globals.
    """

    def __init__(
        self,
        settings: Settings,
        delivery_settings: DeliverySettings | None = None,
        sender: WebhookSender | None = None,
    ):
        self.settings = settings
        self.delivery_settings = delivery_settings or get_delivery_settings()
        self.database = DatabaseSessionManager(settings)
        self.sender = sender or HttpWebhookSender(settings=self.delivery_settings)
        self.dispatcher = WebhookDispatcher(
            session_factory=self.database.session,
            sender=self.sender,
            settings=self.delivery_settings,
            poll_interval_seconds=settings.dispatcher_poll_interval_seconds,
            batch_size=settings.dispatcher_batch_size,
            max_concurrency=settings.dispatcher_max_concurrency,
        )

    async def startup(self) -> None:
        self.database.init()
        if self.settings.db_auto_create:
            await self.database.create_all()
        if self.settings.dispatcher_enabled:
            self.dispatcher.start()

        logger.info(
            "app_context_started",
            dispatcher_enabled=self.settings.dispatcher_enabled,
        )

    async def shutdown(self) -> None:
        await self.dispatcher.stop()
        await self.sender.aclose()
        await self.database.close()

        logger.info("app_context_stopped")
