"""
Retry policy for calls to the Integrations service, built on tenacity.

Completions are not idempotent, so only failures where the request never
reached the server (connection refused, connect timeout) are retried, with
exponential backoff. Anything that may have been processed upstream, such
as read timeouts or HTTP error statuses, fails on the first attempt. Attempt
counts and wait bounds come from the EXTERNAL_API_RETRY_* settings.
"""

import logging
from typing import Optional

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from ..core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

CONNECTION_ERRORS = (
    httpx.ConnectError,
    httpx.ConnectTimeout,
)


def is_retryable_error(exception: BaseException) -> bool:
    """
    Decide whether a failed request is safe to send again.

    Args:
        exception: Exception raised by the request

    Returns:
        True only when the connection could not be established
    """
    return isinstance(exception, CONNECTION_ERRORS)


def retry_external_api(
    service_name: str = "integrations",
    config: Optional[Settings] = None,
    attempts: Optional[int] = None,
) -> AsyncRetrying:
    """
    Build an AsyncRetrying for one logical call.

    Usage:
        async for attempt in retry_external_api("integrations"):
            with attempt:
                response = await client.post(url, json=body)

    The final failure is re-raised unchanged so callers can map it.
    """
    cfg = config or default_settings
    logger.debug(f"[{service_name}] Building retry policy")
    return AsyncRetrying(
        stop=stop_after_attempt(attempts or cfg.EXTERNAL_API_RETRY_ATTEMPTS),
        wait=wait_exponential(
            multiplier=cfg.EXTERNAL_API_RETRY_MULTIPLIER,
            min=cfg.EXTERNAL_API_RETRY_MIN_WAIT,
            max=cfg.EXTERNAL_API_RETRY_MAX_WAIT,
        ),
        retry=retry_if_exception(is_retryable_error),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
