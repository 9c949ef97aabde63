"""
Shared fixtures for integration tests.

All integration tests in this project:
1. Use async tests with @pytest.mark.asyncio
2. Use the `client` fixture (AsyncClient over ASGITransport)
3. Prefix all routes with /api/v1/

Each test gets fresh storage, broadcaster and assistant instances wired in
through FastAPI dependency overrides; the Integrations client is mocked.

Example:
    @pytest.mark.asyncio
    async def test_something(client):
        response = await client.post("/api/v1/logs/ingest", json={...})
        assert response.status_code == 200
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.assistant.service import LogAssistantService
from app.broadcast.broadcaster import LogBroadcaster
from app.dependencies import get_log_assistant, get_log_broadcaster, get_log_storage
from app.log.models import LogEntryInput, LogLevel
from app.log.storage import InMemoryLogStorage
from app.main import app

@pytest.fixture
def storage():
    return InMemoryLogStorage()


@pytest.fixture
def broadcaster():
    return LogBroadcaster()


@pytest.fixture
def assistant(mock_integrations_client, test_settings):
    return LogAssistantService(mock_integrations_client, test_settings)


@pytest_asyncio.fixture(scope="function")
async def client(storage, broadcaster, assistant):
    """
    Async HTTP client bound to the app with per-test dependencies.

    Overrides are cleared after the test so state never leaks between tests.
    """

    async def override_storage():
        return storage

    async def override_broadcaster():
        return broadcaster

    async def override_assistant():
        return assistant

    app.dependency_overrides[get_log_storage] = override_storage
    app.dependency_overrides[get_log_broadcaster] = override_broadcaster
    app.dependency_overrides[get_log_assistant] = override_assistant

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def seeded_storage(storage):
    """Storage pre-filled with a small mixed batch for org-test."""
    await storage.insert_entries(
        "org-test",
        "stream-1",
        [
            LogEntryInput(
                message="Token validation failed for session abc123",
                level=LogLevel.ERROR,
                service_id="auth",
            ),
            LogEntryInput(
                message="Token validation failed for session xyz789",
                level=LogLevel.ERROR,
                service_id="auth",
            ),
            LogEntryInput(message="Request handled", service_id="api"),
        ],
    )
    return storage
