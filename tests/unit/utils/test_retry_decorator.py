"""
Unit tests for the Integrations retry policy.
"""

import httpx
import pytest

from app.utils.retry_decorator import is_retryable_error, retry_external_api


def _status_error(status_code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "http://integrations.test/api/integrations/execute")
    response = httpx.Response(status_code, request=request)
    return httpx.HTTPStatusError("error", request=request, response=response)


def test_connection_failures_retryable():
    assert is_retryable_error(httpx.ConnectError("refused")) is True
    assert is_retryable_error(httpx.ConnectTimeout("no route")) is True


@pytest.mark.parametrize("status_code", [400, 401, 408, 429, 500, 502, 503])
def test_http_statuses_not_retryable(status_code):
    assert is_retryable_error(_status_error(status_code)) is False


def test_errors_after_request_sent_not_retryable():
    assert is_retryable_error(httpx.ReadTimeout("slow")) is False
    assert is_retryable_error(httpx.RemoteProtocolError("dropped")) is False
    assert is_retryable_error(httpx.ReadError("reset")) is False


def test_other_exceptions_not_retryable():
    assert is_retryable_error(ValueError("bad json")) is False


@pytest.mark.asyncio
async def test_gives_up_after_configured_attempts(test_settings):
    attempts = 0

    with pytest.raises(httpx.ConnectError):
        async for attempt in retry_external_api("integrations", config=test_settings):
            with attempt:
                attempts += 1
                raise httpx.ConnectError("refused")

    assert attempts == test_settings.EXTERNAL_API_RETRY_ATTEMPTS


@pytest.mark.asyncio
async def test_read_timeout_raised_immediately(test_settings):
    attempts = 0

    with pytest.raises(httpx.ReadTimeout):
        async for attempt in retry_external_api("integrations", config=test_settings):
            with attempt:
                attempts += 1
                raise httpx.ReadTimeout("slow")

    assert attempts == 1
