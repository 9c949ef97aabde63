"""
Pytest configuration and shared fixtures for the logging intelligence tests.
"""

import os

# Set required environment variables BEFORE importing app modules
os.environ.setdefault("LOG_LEVEL", "INFO")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("INTEGRATIONS_SERVICE_URL", "http://integrations.test")
os.environ.setdefault("EXTERNAL_API_RETRY_MIN_WAIT", "0")
os.environ.setdefault("EXTERNAL_API_RETRY_MAX_WAIT", "0")

import itertools
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.config import Settings
from app.integrations.client import IntegrationsClient
from app.integrations.schemas import IntegrationsStatus, NormalizedLLMResponse
from app.log.models import LogEntry, LogLevel

BASE_TIME = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)
TEST_ORG_ID = "org-test"
TEST_STREAM_ID = "stream-1"


@pytest.fixture
def test_settings():
    """Settings isolated from any local .env file."""
    return Settings(
        _env_file=None,
        ENVIRONMENT="test",
        INTEGRATIONS_SERVICE_URL="http://integrations.test",
        EXTERNAL_API_RETRY_ATTEMPTS=3,
        EXTERNAL_API_RETRY_MIN_WAIT=0,
        EXTERNAL_API_RETRY_MAX_WAIT=0,
    )


@pytest.fixture
def make_entry():
    """
    Factory for LogEntry objects.

    Entries get sequential ids and timestamps one second apart unless
    overridden.
    """
    counter = itertools.count(1)

    def _make(
        message: str,
        level: LogLevel = LogLevel.INFO,
        service_id="api",
        org_id: str = TEST_ORG_ID,
        stream_id: str = TEST_STREAM_ID,
        **kwargs,
    ) -> LogEntry:
        n = next(counter)
        kwargs.setdefault("id", f"log-{n}")
        kwargs.setdefault("timestamp", BASE_TIME + timedelta(seconds=n))
        return LogEntry(
            message=message,
            level=level,
            service_id=service_id,
            org_id=org_id,
            stream_id=stream_id,
            **kwargs,
        )

    return _make


@pytest.fixture
def mock_integrations_client():
    """IntegrationsClient double; no network access."""
    client = MagicMock(spec=IntegrationsClient)
    client.chat_completion = AsyncMock(
        return_value=NormalizedLLMResponse(content="{}", model="gpt-4o-mini")
    )
    client.get_status = AsyncMock(
        return_value=IntegrationsStatus(available=True, providers=[])
    )
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def llm_reply():
    """Build the completion the Integrations service would return."""

    def _reply(content: str) -> NormalizedLLMResponse:
        return NormalizedLLMResponse(
            provider="openai",
            model="gpt-4o-mini",
            content=content,
            usage={"promptTokens": 10, "completionTokens": 5, "totalTokens": 15},
        )

    return _reply
