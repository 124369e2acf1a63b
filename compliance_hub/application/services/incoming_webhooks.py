"""Incoming webhook service - logs inbound calls and runs their handlers."""

from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple
from uuid import UUID

import structlog

from compliance_hub.core.metrics import record_incoming_webhook
from compliance_hub.domain.entities import IncomingWebhookLog
from compliance_hub.domain.exceptions import (
    DomainException,
    IncomingLogAlreadyProcessedError,
    IncomingLogNotFoundError,
)
from compliance_hub.domain.interfaces import IncomingWebhookRepository

logger = structlog.get_logger(__name__)

IncomingHandler = Callable[[Dict[str, Any]], Awaitable[None]]
HandlerKey = Tuple[str, Optional[str]]

REDACTED = "[redacted]"
SENSITIVE_HEADERS = frozenset({
    "authorization",
    "proxy-authorization",
    "x-api-key",
    "cookie",
    "set-cookie",
})


def normalize_source(source: str) -> str:
    return source.strip().upper()


def redact_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    """Copy request headers, hiding credentials before they are stored."""
    return {
        name.lower(): (REDACTED if name.lower() in SENSITIVE_HEADERS else value)
        for name, value in headers.items()
    }


class IncomingWebhookService:
    """
    Application service for inbound webhooks.

    ``ingest`` always persists the call. Processing runs afterwards: a
    failure is written to the entry's ``error_message`` and leaves it
    unprocessed so an operator can replay it.

    Handlers are keyed by ``(SOURCE, event_type)``; a ``(SOURCE, None)``
    handler catches every event type of that source.
    """

    def __init__(
        self,
        incoming_repository: IncomingWebhookRepository,
        handlers: Mapping[HandlerKey, IncomingHandler] | None = None,
    ):
        self._incoming_repo = incoming_repository
        self._handlers = dict(handlers or {})

    async def ingest(
        self,
        source: str,
        payload: Dict[str, Any],
        headers: Mapping[str, str] | None = None,
        event_type: str | None = None,
    ) -> IncomingWebhookLog:
        """Persist an inbound call. Never fails because of the payload's content."""
        log_entry = IncomingWebhookLog(
            source=normalize_source(source),
            event_type=event_type,
            payload=payload if isinstance(payload, dict) else {"body": payload},
            headers=redact_headers(headers or {}),
        )
        await self._incoming_repo.save(log_entry)

        record_incoming_webhook(log_entry.source, "received")
        logger.info(
            "incoming_webhook_received",
            log_id=str(log_entry.id),
            source=log_entry.source,
            event_type=event_type,
        )

        return log_entry

    async def mark_processed(self, log_id: UUID) -> IncomingWebhookLog:
        log_entry = await self.get(log_id)
        log_entry.mark_processed()
        await self._incoming_repo.update(log_entry)

        record_incoming_webhook(log_entry.source, "processed")
        logger.info("incoming_webhook_processed", log_id=str(log_entry.id))

        return log_entry

    async def mark_failed(self, log_id: UUID, error_message: str) -> IncomingWebhookLog:
        log_entry = await self.get(log_id)
        log_entry.mark_failed(error_message)
        await self._incoming_repo.update(log_entry)

        record_incoming_webhook(log_entry.source, "failed")
        logger.warning(
            "incoming_webhook_failed",
            log_id=str(log_entry.id),
            source=log_entry.source,
            error=error_message,
        )

        return log_entry

    async def process(self, log_id: UUID) -> IncomingWebhookLog:
        """
        Run the registered handler for an entry.

        The handler runs inside a savepoint. If it raises, its writes are
        rolled back and the error is written to the entry, which stays
        unprocessed and replayable.

        Returns:
            The entry with its updated processing status
        """
        log_entry = await self.get(log_id)
        handler = self._resolve(log_entry.source, log_entry.event_type)

        if handler is None:
            return await self.mark_failed(
                log_id,
                f"No handler registered for {log_entry.source}/{log_entry.event_type or '*'}",
            )

        try:
            async with self._incoming_repo.savepoint():
                await handler(log_entry.payload)
        except DomainException as e:
            return await self.mark_failed(log_id, e.message)
        except Exception as e:
            logger.exception(
                "incoming_webhook_handler_error",
                log_id=str(log_id),
                source=log_entry.source,
                event_type=log_entry.event_type,
            )
            return await self.mark_failed(log_id, f"{type(e).__name__}: {e}")

        return await self.mark_processed(log_id)

    async def replay(self, log_id: UUID) -> IncomingWebhookLog:
        """
        Re-run processing of an unprocessed entry.

        Raises:
            IncomingLogAlreadyProcessedError: If the entry was processed
        """
        log_entry = await self.get(log_id)
        if log_entry.processed:
            raise IncomingLogAlreadyProcessedError(str(log_id))

        logger.info("incoming_webhook_replay", log_id=str(log_id), source=log_entry.source)
        return await self.process(log_id)

    def has_handler(self, source: str, event_type: str | None) -> bool:
        return self._resolve(normalize_source(source), event_type) is not None

    async def get(self, log_id: UUID) -> IncomingWebhookLog:
        log_entry = await self._incoming_repo.get_by_id(log_id)
        if log_entry is None:
            raise IncomingLogNotFoundError(str(log_id))
        return log_entry

    async def list(
        self,
        limit: int = 100,
        source: str | None = None,
        processed: bool | None = None,
    ) -> List[IncomingWebhookLog]:
        return await self._incoming_repo.list_recent(
            limit=limit,
            source=normalize_source(source) if source else None,
            processed=processed,
        )

    def _resolve(self, source: str, event_type: str | None) -> IncomingHandler | None:
        return self._handlers.get((source, event_type)) or self._handlers.get((source, None))
