"""Handlers for inbound webhooks from the housing management system (HMS)."""

from typing import Any, Dict
from uuid import UUID

import structlog

from compliance_hub.domain.entities import ActionStatus
from compliance_hub.domain.exceptions import ValidationError
from .incoming_webhooks import HandlerKey, IncomingHandler
from .remedial_actions import RemedialActionService

logger = structlog.get_logger(__name__)

HMS_SOURCE = "HMS"
ACTION_UPDATE = "action_update"
WORK_ORDER_UPDATE = "work_order_update"

WORK_ORDER_STATUS_MAP = {
    "scheduled": ActionStatus.SCHEDULED,
    "in_progress": ActionStatus.IN_PROGRESS,
    "completed": ActionStatus.COMPLETED,
    "cancelled": ActionStatus.CANCELLED,
}


def _action_id(payload: Dict[str, Any]) -> UUID:
    raw = payload.get("actionId")
    if not raw:
        raise ValidationError("actionId is required")
    try:
        return UUID(str(raw))
    except ValueError:
        raise ValidationError(f"actionId is not a valid id: {raw}")


class HmsIntegration:
    """
    Applies HMS updates to remedial actions.

    Updates go through ``RemedialActionService.advance`` so an external
    system can jump forward but never reopen or move a finished action.
    """

    def __init__(self, action_service: RemedialActionService, organisation_id: str | None = None):
        self._action_service = action_service
        self._organisation_id = organisation_id

    def handlers(self) -> Dict[HandlerKey, IncomingHandler]:
        return {
            (HMS_SOURCE, ACTION_UPDATE): self.action_update,
            (HMS_SOURCE, WORK_ORDER_UPDATE): self.work_order_update,
        }

    async def action_update(self, payload: Dict[str, Any]) -> None:
        action_id = _action_id(payload)
        status = payload.get("status")
        if not status:
            raise ValidationError("status is required")
        if not isinstance(status, str):
            raise ValidationError(f"status must be a string, got {type(status).__name__}")

        action = await self._action_service.advance(
            action_id,
            status,
            organisation_id=self._organisation_id,
        )
        logger.info("hms_action_updated", action_id=str(action.id), status=action.status.value)

    async def work_order_update(self, payload: Dict[str, Any]) -> None:
        action_id = _action_id(payload)
        raw_status = str(payload.get("status") or "").strip().lower()
        status = WORK_ORDER_STATUS_MAP.get(raw_status)
        if status is None:
            raise ValidationError(f"Unsupported work order status: {raw_status or None}")

        action = await self._action_service.advance(
            action_id,
            status,
            organisation_id=self._organisation_id,
        )
        logger.info(
            "hms_work_order_applied",
            action_id=str(action.id),
            work_order_id=payload.get("workOrderId"),
            status=action.status.value,
        )
