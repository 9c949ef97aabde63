"""
HTTP client for the Integrations service.

The Integrations service fronts the LLM providers. Every completion is a
POST to /api/integrations/execute carrying the caller's bearer token; the
service answers with a normalized envelope regardless of provider.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from app.core.config import Settings
from app.utils.retry_decorator import retry_external_api

from .schemas import (
    ChatMessage,
    ExecuteResponse,
    IntegrationsStatus,
    NormalizedLLMResponse,
    ProviderStatus,
)

logger = logging.getLogger(__name__)

CHAT_COMPLETIONS_OPERATION = "chat.completions"
NETWORK_ERROR_REQUEST_ID = "network_error"


class IntegrationsError(Exception):
    """A completion could not be obtained from the Integrations service."""

    def __init__(self, message: str, request_id: Optional[str] = None):
        super().__init__(message)
        self.request_id = request_id


class IntegrationsClient:
    """
    Thin async wrapper over the Integrations service API.

    One httpx.AsyncClient is shared for the lifetime of the client; call
    aclose() on shutdown.
    """

    def __init__(
        self,
        config: Settings,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config
        self.base_url = config.INTEGRATIONS_SERVICE_URL.rstrip("/")
        self._client = http_client or httpx.AsyncClient(
            timeout=config.HTTP_REQUEST_TIMEOUT_SECONDS
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(
        self, auth_token: Optional[str] = None, org_id: Optional[str] = None
    ) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "X-Service-Id": self.config.INTEGRATIONS_SERVICE_ID,
        }
        if auth_token:
            headers["Authorization"] = f"Bearer {auth_token}"
        if org_id:
            headers["X-Org-Id"] = org_id
        return headers

    async def _post_with_retry(
        self, url: str, body: Dict[str, Any], headers: Dict[str, str]
    ) -> httpx.Response:
        async for attempt in retry_external_api("integrations", config=self.config):
            with attempt:
                return await self._client.post(url, json=body, headers=headers)

    async def execute_chat(
        self,
        auth_token: str,
        messages: List[ChatMessage],
        provider: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        org_id: Optional[str] = None,
    ) -> ExecuteResponse:
        """
        Run a chat completion through the Integrations service.

        Never raises for transport or HTTP failures: those come back as an
        ExecuteResponse with success=False.
        """
        url = f"{self.base_url}/api/integrations/execute"
        body = {
            "provider": provider or self.config.LLM_PROVIDER,
            "operation": CHAT_COMPLETIONS_OPERATION,
            "params": {
                "messages": [m.model_dump(mode="json") for m in messages],
                "model": model,
                "temperature": temperature,
                "maxTokens": max_tokens,
            },
        }

        try:
            response = await self._post_with_retry(
                url, body, self._headers(auth_token, org_id)
            )
        except httpx.HTTPError as e:
            logger.warning(f"Failed to reach Integrations service: {e}")
            return ExecuteResponse(
                success=False,
                error=f"Failed to reach Integrations service: {e}",
                request_id=NETWORK_ERROR_REQUEST_ID,
            )

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        if not response.is_success and not payload.get("requestId"):
            return ExecuteResponse(
                success=False,
                error=payload.get("error")
                or payload.get("message")
                or f"HTTP {response.status_code}",
            )

        try:
            return ExecuteResponse.model_validate(payload)
        except ValidationError as e:
            logger.warning(f"Malformed response from Integrations service: {e}")
            return ExecuteResponse(
                success=False,
                error="Malformed response from Integrations service",
                request_id=payload.get("requestId") or "unknown",
            )

    async def chat_completion(
        self,
        auth_token: str,
        messages: List[ChatMessage],
        org_id: Optional[str] = None,
    ) -> NormalizedLLMResponse:
        """
        Completion with the configured provider, model and sampling settings.

        Raises:
            IntegrationsError: If the service reports failure or returns no content
        """
        result = await self.execute_chat(
            auth_token,
            messages,
            provider=self.config.LLM_PROVIDER,
            model=self.config.LLM_MODEL,
            temperature=self.config.LLM_TEMPERATURE,
            max_tokens=self.config.LLM_MAX_TOKENS,
            org_id=org_id,
        )
        if not result.success or result.data is None:
            raise IntegrationsError(
                result.error or result.message or "LLM call failed",
                request_id=result.request_id,
            )
        if not result.data.content:
            raise IntegrationsError("Empty LLM response", request_id=result.request_id)
        return result.data

    async def get_status(self) -> IntegrationsStatus:
        """Reachability of the Integrations service and its provider configuration."""
        url = f"{self.base_url}/api/integrations/status"
        try:
            response = await self._client.get(url, headers=self._headers())
        except httpx.HTTPError as e:
            logger.warning(f"Integrations status check failed: {e}")
            return IntegrationsStatus(available=False)

        if not response.is_success:
            logger.warning(
                f"Integrations status check returned HTTP {response.status_code}"
            )
            return IntegrationsStatus(available=False)

        try:
            data = response.json()
            providers = [
                ProviderStatus.model_validate(p) for p in data.get("providers") or []
            ]
        except (ValueError, AttributeError, ValidationError) as e:
            logger.warning(f"Unreadable integrations status payload: {e}")
            return IntegrationsStatus(available=False)

        return IntegrationsStatus(available=True, providers=providers)
