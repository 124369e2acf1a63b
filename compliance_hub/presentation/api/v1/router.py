from fastapi import APIRouter

from .actions import actions_router
from .api_keys import api_keys_router
from .deliveries import deliveries_router
from .dispatcher import dispatcher_router
from .events import events_router
from .health import health_router
from .incoming import incoming_router
from .integrations import integrations_router
from .webhooks import webhooks_router

router = APIRouter()

router.include_router(health_router, tags=["Health"])
router.include_router(webhooks_router, tags=["Webhook Endpoints"])
router.include_router(events_router, tags=["Webhook Events"])
router.include_router(deliveries_router, tags=["Webhook Deliveries"])
router.include_router(dispatcher_router, tags=["Webhook Dispatcher"])
router.include_router(incoming_router, tags=["Incoming Webhooks"])
router.include_router(integrations_router, tags=["Integrations"])
router.include_router(actions_router, tags=["Remedial Actions"])
router.include_router(api_keys_router, tags=["API Keys"])
