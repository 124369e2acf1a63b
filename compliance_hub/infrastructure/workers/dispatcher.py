"""Polling worker that fans out events and sends due deliveries."""

import asyncio
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from compliance_hub.application.services import DeliveryTracker
from compliance_hub.core.metrics import dispatch_batch_size
from compliance_hub.domain.entities import (
    DeliveryOutcome,
    DeliveryStatus,
    WebhookDelivery,
    WebhookEndpoint,
    WebhookEvent,
)
from compliance_hub.domain.interfaces import WebhookSender
from compliance_hub.infrastructure.repositories import (
    PostgresWebhookDeliveryRepository,
    PostgresWebhookEndpointRepository,
    PostgresWebhookEventRepository,
)
from compliance_hub.service.delivery import DeliverySettings, delivery_settings

logger = structlog.get_logger(__name__)

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


@dataclass
class DispatchReport:
    """What one dispatch cycle did."""

    events_fanned_out: int = 0
    deliveries_scheduled: int = 0
    deliveries_attempted: int = 0
    sent: int = 0
    retrying: int = 0
    failed: int = 0

    def to_dict(self) -> dict:
        return {
            "events_fanned_out": self.events_fanned_out,
            "deliveries_scheduled": self.deliveries_scheduled,
            "deliveries_attempted": self.deliveries_attempted,
            "sent": self.sent,
            "retrying": self.retrying,
            "failed": self.failed,
        }


class WebhookDispatcher:
    """
    Runs the outbound delivery loop.

    Each cycle fans out unprocessed events, then selects due deliveries
    with row locks (rows locked by another worker are skipped), sends them
    concurrently and records every outcome in the same transaction, so
    two workers never update the same delivery.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        sender: WebhookSender,
        settings: DeliverySettings = delivery_settings,
        poll_interval_seconds: float = 5.0,
        batch_size: int = 50,
        max_concurrency: int = 10,
    ):
        self._session_factory = session_factory
        self._sender = sender
        self._settings = settings
        self._poll_interval = poll_interval_seconds
        self._batch_size = batch_size
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._task: asyncio.Task | None = None
        self._stopping: asyncio.Event | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the polling loop on the running event loop."""
        if self.running:
            return
        self._stopping = asyncio.Event()
        self._task = asyncio.create_task(self._run_loop(), name="webhook-dispatcher")
        logger.info("webhook_dispatcher_started", poll_interval=self._poll_interval)

    async def stop(self) -> None:
        """Stop the loop after the current cycle finishes."""
        if self._task is None:
            return
        self._stopping.set()
        await self._task
        self._task = None
        logger.info("webhook_dispatcher_stopped")

    async def run_once(self) -> DispatchReport:
        """Run one fan-out + dispatch cycle."""
        report = DispatchReport()
        await self._fan_out(report)
        await self._dispatch(report)

        dispatch_batch_size.set(report.deliveries_attempted)
        if report.events_fanned_out or report.deliveries_attempted:
            logger.info("webhook_dispatch_cycle", **report.to_dict())

        return report

    async def _run_loop(self) -> None:
        while not self._stopping.is_set():
            try:
                await self.run_once()
            except Exception:
                # A bad cycle must not kill the worker; the next poll retries
                logger.exception("webhook_dispatch_cycle_failed")

            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self._poll_interval)
            except asyncio.TimeoutError:
                pass

    def _tracker(self, session: AsyncSession) -> DeliveryTracker:
        return DeliveryTracker(
            endpoint_repository=PostgresWebhookEndpointRepository(session),
            event_repository=PostgresWebhookEventRepository(session),
            delivery_repository=PostgresWebhookDeliveryRepository(session),
            settings=self._settings,
        )

    async def _fan_out(self, report: DispatchReport) -> None:
        async with self._session_factory() as session:
            tracker = self._tracker(session)
            events = await PostgresWebhookEventRepository(session).list_unprocessed(
                limit=self._batch_size
            )
            for event in events:
                created = await tracker.schedule_deliveries(event.id)
                report.events_fanned_out += 1
                report.deliveries_scheduled += len(created)

    async def _dispatch(self, report: DispatchReport) -> None:
        async with self._session_factory() as session:
            tracker = self._tracker(session)
            due = await tracker.due(limit=self._batch_size)
            if not due:
                return

            jobs = await self._load_jobs(session, due)
            outcomes = await asyncio.gather(
                *(self._send(delivery, endpoint, event) for delivery, endpoint, event in jobs)
            )

            # Recording stays sequential: one session is not safe for concurrent use
            for (delivery, _, _), outcome in zip(jobs, outcomes):
                updated = await tracker.record_attempt(delivery.id, outcome)
                report.deliveries_attempted += 1
                if updated.status == DeliveryStatus.SENT:
                    report.sent += 1
                elif updated.status == DeliveryStatus.RETRYING:
                    report.retrying += 1
                else:
                    report.failed += 1

    async def _load_jobs(
        self,
        session: AsyncSession,
        due: List[WebhookDelivery],
    ) -> List[Tuple[WebhookDelivery, WebhookEndpoint, WebhookEvent]]:
        endpoint_repo = PostgresWebhookEndpointRepository(session)
        event_repo = PostgresWebhookEventRepository(session)
        endpoints: Dict[UUID, WebhookEndpoint] = {}
        events: Dict[UUID, WebhookEvent] = {}

        jobs = []
        for delivery in due:
            if delivery.webhook_endpoint_id not in endpoints:
                endpoints[delivery.webhook_endpoint_id] = await endpoint_repo.get_by_id(
                    delivery.webhook_endpoint_id
                )
            if delivery.event_id not in events:
                events[delivery.event_id] = await event_repo.get_by_id(delivery.event_id)

            endpoint = endpoints[delivery.webhook_endpoint_id]
            event = events[delivery.event_id]
            if endpoint is None or event is None:
                logger.warning("webhook_delivery_orphaned", delivery_id=str(delivery.id))
                continue
            jobs.append((delivery, endpoint, event))

        return jobs

    async def _send(
        self,
        delivery: WebhookDelivery,
        endpoint: WebhookEndpoint,
        event: WebhookEvent,
    ) -> DeliveryOutcome:
        async with self._semaphore:
            return await self._sender.send(
                endpoint,
                event,
                delivery_id=delivery.id,
                attempt=delivery.attempt_count + 1,
            )
