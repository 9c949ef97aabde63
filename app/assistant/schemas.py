"""
Pydantic schemas for the log assistant.

These schemas cover:
- Results returned by the assistant (summaries, analyses, groups, investigations)
- API request bodies carrying storage query constraints
"""

from enum import Enum
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from app.log.models import LogEntry, LogLevel, UtcDatetime


class InsightSeverity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class InsightCategory(str, Enum):
    ERROR = "error"
    PERFORMANCE = "performance"
    PATTERN = "pattern"
    ANOMALY = "anomaly"
    HEALTH = "health"


class Insight(BaseModel):
    """A single actionable observation with enough context to drive a follow-up query."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    text: str
    severity: InsightSeverity = InsightSeverity.INFO
    category: InsightCategory = InsightCategory.HEALTH
    search_hint: Optional[str] = Field(default=None, alias="searchHint")
    services: Optional[List[str]] = None
    count: Optional[int] = None


class AssistantSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    summary: str
    insights: List[Insight] = Field(default_factory=list)
    error_count: int = Field(default=0, alias="errorCount")
    warn_count: int = Field(default=0, alias="warnCount")
    patterns: Optional[List[str]] = None


class ErrorAnalysis(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    summary: str
    error_messages: List[str] = Field(default_factory=list, alias="errorMessages")
    possible_causes: List[str] = Field(default_factory=list, alias="possibleCauses")
    suggested_actions: List[str] = Field(
        default_factory=list, alias="suggestedActions"
    )


class LogGroup(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    pattern: str
    count: int
    log_ids: List[str] = Field(default_factory=list, alias="logIds")


class LogGroupsResponse(BaseModel):
    groups: List[LogGroup]


class InvestigationResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    insight: str
    explanation: str
    related_logs: List[LogEntry] = Field(default_factory=list, alias="relatedLogs")
    suggested_actions: Optional[List[str]] = Field(
        default=None, alias="suggestedActions"
    )


class AssistantConfigResponse(BaseModel):
    configured: bool
    capabilities: List[str]


# =============================================================================
# Request bodies
# =============================================================================


class AssistantQueryRequest(BaseModel):
    """Query constraints mirroring the log explorer, or explicit log ids."""

    model_config = ConfigDict(populate_by_name=True)

    log_ids: Optional[List[str]] = Field(
        default=None, alias="logIds", description="Explicit entries to use"
    )
    start_time: Optional[UtcDatetime] = Field(default=None, alias="startTime")
    end_time: Optional[UtcDatetime] = Field(default=None, alias="endTime")
    stream_ids: Optional[List[str]] = Field(default=None, alias="streamIds")
    level: Optional[Union[LogLevel, Literal["all"]]] = Field(
        default=None, description="Level filter; 'all' disables it"
    )
    search: Optional[str] = None
    limit: int = Field(default=200, ge=1)


class GroupRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    log_ids: Optional[List[str]] = Field(default=None, alias="logIds")
    start_time: Optional[UtcDatetime] = Field(default=None, alias="startTime")
    end_time: Optional[UtcDatetime] = Field(default=None, alias="endTime")
    limit: int = Field(default=500, ge=1)


class InvestigateRequest(AssistantQueryRequest):
    insight: Optional[Insight] = None
