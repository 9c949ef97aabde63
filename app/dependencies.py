"""
Process-wide singletons and FastAPI dependencies.

The storage, broadcaster and assistant are built once at import time and
shared by every request; routes receive them through Depends so tests can
override them on the app.
"""

from typing import Optional

from fastapi import Header, HTTPException, status

from app.assistant.service import LogAssistantService
from app.broadcast.broadcaster import LogBroadcaster
from app.core.config import settings
from app.integrations.client import IntegrationsClient
from app.log.storage import InMemoryLogStorage, LogStorage

log_storage = InMemoryLogStorage()
log_broadcaster = LogBroadcaster()
integrations_client = IntegrationsClient(settings)
log_assistant = LogAssistantService(integrations_client, settings)


async def get_log_storage() -> LogStorage:
    return log_storage


async def get_log_broadcaster() -> LogBroadcaster:
    return log_broadcaster


async def get_log_assistant() -> LogAssistantService:
    return log_assistant


async def get_org_id(
    x_org_id: Optional[str] = Header(None, alias="X-Org-Id"),
) -> str:
    """Tenant context for the request; every route is scoped to one org."""
    if not x_org_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing organization context",
        )
    return x_org_id


async def get_bearer_token(
    authorization: Optional[str] = Header(None),
) -> Optional[str]:
    """Caller's bearer token, forwarded to the Integrations service as-is."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
