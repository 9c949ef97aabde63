"""
Client for the Integrations service, the gateway to LLM providers.
"""

from app.integrations.client import IntegrationsClient, IntegrationsError
from app.integrations.schemas import ChatMessage, ChatRole, ExecuteResponse

__all__ = [
    "IntegrationsClient",
    "IntegrationsError",
    "ChatMessage",
    "ChatRole",
    "ExecuteResponse",
]
