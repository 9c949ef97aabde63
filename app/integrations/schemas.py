"""
Pydantic schemas for the Integrations service wire format.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    role: ChatRole
    content: str


class TokenUsage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prompt_tokens: int = Field(default=0, alias="promptTokens")
    completion_tokens: int = Field(default=0, alias="completionTokens")
    total_tokens: int = Field(default=0, alias="totalTokens")


class NormalizedLLMResponse(BaseModel):
    """Provider-agnostic completion returned by the Integrations service."""

    model_config = ConfigDict(populate_by_name=True)

    provider: Optional[str] = None
    model: Optional[str] = None
    content: str = ""
    usage: TokenUsage = Field(default_factory=TokenUsage)
    finish_reason: Optional[str] = Field(default=None, alias="finishReason")
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ExecuteResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    data: Optional[NormalizedLLMResponse] = None
    error: Optional[str] = None
    message: Optional[str] = None
    request_id: str = Field(default="unknown", alias="requestId")
    duration_ms: float = Field(default=0, alias="durationMs")


class ProviderStatus(BaseModel):
    name: str
    configured: bool = False


class IntegrationsStatus(BaseModel):
    available: bool
    providers: List[ProviderStatus] = Field(default_factory=list)

    @property
    def has_configured_provider(self) -> bool:
        return any(p.configured for p in self.providers)
