"""
Data models for log entries and log queries
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC so stored and queried times stay comparable."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]


class LogLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"

    @property
    def ordinal(self) -> int:
        """Position on the fixed scale debug < info < warn < error (= fatal)."""
        return LEVEL_ORDINALS[self]

    @property
    def is_error(self) -> bool:
        return self in (LogLevel.ERROR, LogLevel.FATAL)


LEVEL_ORDINALS = {
    LogLevel.DEBUG: 0,
    LogLevel.INFO: 1,
    LogLevel.WARN: 2,
    LogLevel.ERROR: 3,
    LogLevel.FATAL: 3,
}


class LogEntry(BaseModel):
    """Single structured log entry, already scoped to one organization"""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(description="Log entry ID")
    stream_id: str = Field(alias="streamId", description="Owning log stream ID")
    org_id: str = Field(alias="orgId", description="Owning organization ID")
    service_id: Optional[str] = Field(
        default=None, alias="serviceId", description="Emitting service"
    )
    env: Optional[str] = Field(default=None, description="Deployment environment")
    timestamp: UtcDatetime = Field(description="Time the entry was emitted")
    level: LogLevel = Field(description="Severity level")
    message: str = Field(description="Log message")
    metadata: Optional[Dict[str, Any]] = Field(
        default=None, description="Free-form structured metadata"
    )
    source: Optional[str] = Field(default=None, description="Stream display name")
    tags: Optional[Dict[str, str]] = Field(default=None, description="Entry tags")
    trace_id: Optional[str] = Field(default=None, alias="traceId")
    span_id: Optional[str] = Field(default=None, alias="spanId")


class LogEntryInput(BaseModel):
    """Log entry as submitted for ingestion (ids and scope are assigned server-side)"""

    model_config = ConfigDict(populate_by_name=True)

    timestamp: Optional[UtcDatetime] = Field(
        default=None, description="Emission time (defaults to ingestion time)"
    )
    level: LogLevel = Field(default=LogLevel.INFO, description="Severity level")
    message: str = Field(description="Log message")
    service_id: Optional[str] = Field(default=None, alias="serviceId")
    env: Optional[str] = Field(default=None)
    metadata: Optional[Dict[str, Any]] = Field(default=None)
    tags: Optional[Dict[str, str]] = Field(default=None)
    trace_id: Optional[str] = Field(default=None, alias="traceId")
    span_id: Optional[str] = Field(default=None, alias="spanId")


class LogIngestBatch(BaseModel):
    """Batch of entries for a single stream"""

    model_config = ConfigDict(populate_by_name=True)

    stream_id: str = Field(alias="streamId", description="Target log stream ID")
    entries: List[LogEntryInput] = Field(description="Entries to ingest")


class LogIngestResponse(BaseModel):
    """Response for a log ingestion request"""

    model_config = ConfigDict(populate_by_name=True)

    ingested: int = Field(description="Number of entries stored")
    delivered_to: int = Field(
        alias="deliveredTo", description="Live subscribers the batch was written to"
    )


class LogQueryParams(BaseModel):
    """Constraints accepted by the storage collaborator"""

    model_config = ConfigDict(populate_by_name=True)

    start_time: Optional[UtcDatetime] = Field(default=None, alias="startTime")
    end_time: Optional[UtcDatetime] = Field(default=None, alias="endTime")
    stream_ids: Optional[List[str]] = Field(default=None, alias="streamIds")
    level: Optional[LogLevel] = Field(
        default=None, description="Only entries at exactly this level"
    )
    search: Optional[str] = Field(
        default=None, description="Case-insensitive message substring"
    )
    limit: int = Field(default=100, ge=1, description="Max number of entries")
