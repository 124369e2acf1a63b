"""
Fixtures for integration tests.

Provides:
- In-memory database shared by services, the dispatcher and the API
- Recording HTTP transport standing in for subscriber endpoints
- Scripted sender for dispatcher tests
- Test client for the FastAPI app with an AppContext bound to the test database
"""

from typing import AsyncGenerator, List

import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from compliance_hub.main import app
from compliance_hub.core.config import Settings, get_settings
from compliance_hub.core.context import AppContext
from compliance_hub.domain.entities import DeliveryOutcome, WebhookEndpoint, WebhookEvent
from compliance_hub.domain.interfaces import WebhookSender
from compliance_hub.infrastructure.clients import HttpWebhookSender
from compliance_hub.infrastructure.database import Base, DatabaseSessionManager
from compliance_hub.service.delivery import DeliverySettings

TEST_ADMIN_TOKEN = "test-admin-token"
TEST_ORG = "org-test"


# =============================================================================
# Mock Subscribers
# =============================================================================

class RecordingTransport:
    """httpx transport that records requests and answers with a fixed response."""

    def __init__(self, status_code: int = 200, body: str = "ok"):
        self.status_code = status_code
        self.body = body
        self.error: Exception | None = None
        self.requests: List[httpx.Request] = []
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, text=self.body)


class ScriptedSender(WebhookSender):
    """Sender that replays queued outcomes and records every call."""

    def __init__(self, outcomes: List[DeliveryOutcome] | None = None):
        self.outcomes = list(outcomes or [])
        self.calls = []

    async def send(
        self,
        endpoint: WebhookEndpoint,
        event: WebhookEvent,
        delivery_id,
        attempt: int = 1,
    ) -> DeliveryOutcome:
        self.calls.append({
            "endpoint_id": endpoint.id,
            "event_type": event.event_type,
            "delivery_id": delivery_id,
            "attempt": attempt,
        })
        if self.outcomes:
            return self.outcomes.pop(0)
        return DeliveryOutcome.succeeded(status_code=200, response_body="ok", duration_ms=5)


# =============================================================================
# Settings
# =============================================================================

@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        database_url="sqlite+aiosqlite:///:memory:",
        admin_api_token=TEST_ADMIN_TOKEN,
        default_organisation_id=TEST_ORG,
        dispatcher_enabled=False,
        db_auto_create=False,
    )


@pytest.fixture
def delivery_settings() -> DeliverySettings:
    return DeliverySettings(_env_file=None)


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def test_engine():
    """Create an in-memory SQLite async engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def database(test_engine, test_settings) -> DatabaseSessionManager:
    """Session manager bound to the test engine; ``session()`` commits on exit."""
    manager = DatabaseSessionManager(test_settings)
    manager.bind(test_engine)
    return manager


@pytest_asyncio.fixture
async def test_session(database: DatabaseSessionManager) -> AsyncGenerator[AsyncSession, None]:
    """A single transactional session for service-level tests."""
    async with database.session() as session:
        yield session


# =============================================================================
# Sender Fixtures
# =============================================================================

@pytest.fixture
def subscriber() -> RecordingTransport:
    return RecordingTransport()


@pytest_asyncio.fixture
async def http_sender(
    subscriber: RecordingTransport,
    delivery_settings: DeliverySettings,
) -> AsyncGenerator[HttpWebhookSender, None]:
    sender = HttpWebhookSender(settings=delivery_settings, transport=subscriber.transport)
    yield sender
    await sender.aclose()


@pytest.fixture
def scripted_sender() -> ScriptedSender:
    return ScriptedSender()


# =============================================================================
# App Client Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def app_context(
    test_engine,
    test_settings: Settings,
    delivery_settings: DeliverySettings,
    http_sender: HttpWebhookSender,
) -> AppContext:
    """AppContext wired to the test engine and the recording subscriber."""
    context = AppContext(test_settings, delivery_settings, sender=http_sender)
    context.database.bind(test_engine)
    return context


@pytest_asyncio.fixture
async def client(
    app_context: AppContext,
    test_settings: Settings,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client for the app.

    ASGITransport does not run the lifespan handler, so the AppContext is
    attached to ``app.state`` here.
    """
    app.state.context = app_context
    app.dependency_overrides[get_settings] = lambda: test_settings

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# =============================================================================
# Helper Fixtures
# =============================================================================

@pytest.fixture
def admin_headers() -> dict:
    return {"X-API-Key": TEST_ADMIN_TOKEN}


@pytest.fixture
def endpoint_request() -> dict:
    """Request body for registering an endpoint."""
    return {
        "name": "HMS production",
        "url": "https://hms.example.org/hooks/compliance",
        "events": ["action.created", "action.completed"],
        "auth_type": "HMAC_SHA256",
        "auth_value": "whsec_test",
        "retry_count": 3,
        "timeout_ms": 5000,
    }
