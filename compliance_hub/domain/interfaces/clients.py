"""External client interfaces."""

from abc import ABC, abstractmethod
from uuid import UUID

from compliance_hub.domain.entities import DeliveryOutcome, WebhookEndpoint, WebhookEvent


class WebhookSender(ABC):
    """
    Abstract client that performs one outbound webhook attempt.

    Retry scheduling is not the sender's job: it makes a single request
    and reports what happened.
    """

    @abstractmethod
    async def send(
        self,
        endpoint: WebhookEndpoint,
        event: WebhookEvent,
        delivery_id: UUID,
        attempt: int = 1,
    ) -> DeliveryOutcome:
        """
        POST one event to one endpoint.

        Args:
            endpoint: Destination, auth settings and timeout
            event: The event being delivered
            delivery_id: Identifier echoed in the X-Webhook-Delivery header
            attempt: 1-based attempt number

        Returns:
            A DeliveryOutcome. Network errors, timeouts and non-2xx
            responses are reported as failed outcomes, never raised.
        """
        ...

    async def aclose(self) -> None:
        """Release connections held by the sender."""
        return None
