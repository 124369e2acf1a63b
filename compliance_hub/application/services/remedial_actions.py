"""Remedial action service - kanban status changes that emit domain events."""

from typing import List
from uuid import UUID

import structlog

from compliance_hub.core.metrics import record_action_transition
from compliance_hub.domain.entities import (
    ActionStatus,
    RemedialAction,
    allowed_transitions,
    can_advance,
)
from compliance_hub.domain.exceptions import (
    ActionNotFoundError,
    InvalidActionTransitionError,
    ValidationError,
)
from compliance_hub.domain.interfaces import RemedialActionRepository
from compliance_hub.application.dto import CreateActionRequest, RecordEventRequest
from .event_log import EventLog

logger = structlog.get_logger(__name__)

ENTITY_TYPE = "remedial_action"


class RemedialActionService:
    """
    Application service for remedial actions.

    Board moves (``transition``) go one step along
    OPEN -> IN_PROGRESS -> SCHEDULED -> COMPLETED, or to CANCELLED from any
    live status. Integrations use ``advance``, which may skip forward steps.
    COMPLETED and CANCELLED are terminal either way.
    """

    def __init__(self, action_repository: RemedialActionRepository, event_log: EventLog):
        self._action_repo = action_repository
        self._event_log = event_log

    async def create(self, request: CreateActionRequest) -> RemedialAction:
        errors = request.validate()
        if errors:
            raise ValidationError("; ".join(errors))

        action = RemedialAction(
            organisation_id=request.organisation_id,
            description=request.description.strip(),
            code=request.code,
            severity=request.severity,
        )
        await self._action_repo.save(action)
        await self._emit("action.created", action)

        logger.info(
            "action_created",
            action_id=str(action.id),
            organisation_id=action.organisation_id,
            severity=action.severity.value,
        )

        return action

    async def transition(
        self,
        action_id: UUID,
        status: ActionStatus | str,
        organisation_id: str | None = None,
    ) -> RemedialAction:
        """
        Make one board move.

        Raises:
            ValidationError: If the status is not a known value
            InvalidActionTransitionError: If the move is not allowed
        """
        target = self._parse_status(status)
        action = await self.get(action_id, organisation_id)

        if target not in allowed_transitions(action.status):
            raise InvalidActionTransitionError(str(action.id), action.status.value, target.value)

        return await self._apply(action, target)

    async def advance(
        self,
        action_id: UUID,
        status: ActionStatus | str,
        organisation_id: str | None = None,
    ) -> RemedialAction:
        """Move forward, possibly skipping steps, or cancel."""
        target = self._parse_status(status)
        action = await self.get(action_id, organisation_id)

        if not can_advance(action.status, target):
            raise InvalidActionTransitionError(str(action.id), action.status.value, target.value)

        return await self._apply(action, target)

    async def get(self, action_id: UUID, organisation_id: str | None = None) -> RemedialAction:
        action = await self._action_repo.get_by_id(action_id)

        if action is None or (
            organisation_id is not None and action.organisation_id != organisation_id
        ):
            raise ActionNotFoundError(str(action_id))

        return action

    async def list(
        self,
        organisation_id: str,
        status: ActionStatus | None = None,
        limit: int = 100,
    ) -> List[RemedialAction]:
        return await self._action_repo.list_by_organisation(
            organisation_id,
            status=status,
            limit=limit,
        )

    async def _apply(self, action: RemedialAction, target: ActionStatus) -> RemedialAction:
        previous = action.status
        action.move_to(target)
        await self._action_repo.update(action)

        if target == ActionStatus.COMPLETED:
            event_type = "action.completed"
        elif target == ActionStatus.CANCELLED:
            event_type = "action.cancelled"
        else:
            event_type = "action.updated"
        await self._emit(event_type, action, previous_status=previous.value)

        record_action_transition(target.value)
        logger.info(
            "action_status_changed",
            action_id=str(action.id),
            from_status=previous.value,
            to_status=target.value,
        )

        return action

    async def _emit(self, event_type: str, action: RemedialAction, **extra) -> None:
        payload = action.to_dict()
        payload.update(extra)
        await self._event_log.record(
            RecordEventRequest(
                organisation_id=action.organisation_id,
                event_type=event_type,
                entity_type=ENTITY_TYPE,
                entity_id=str(action.id),
                payload=payload,
            )
        )

    @staticmethod
    def _parse_status(status: ActionStatus | str) -> ActionStatus:
        try:
            return ActionStatus.parse(status)
        except ValueError:
            raise ValidationError(f"Unknown action status: {status}")
