"""
FastAPI router for log assistant endpoints
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.config import settings
from app.dependencies import (
    get_bearer_token,
    get_log_assistant,
    get_log_storage,
    get_org_id,
)
from app.log.models import LogEntry, LogLevel, LogQueryParams
from app.log.storage import LogStorage

from .schemas import (
    AssistantConfigResponse,
    AssistantQueryRequest,
    AssistantSummary,
    ErrorAnalysis,
    GroupRequest,
    InvestigateRequest,
    InvestigationResult,
    LogGroupsResponse,
)
from .service import CAPABILITIES, LogAssistantService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assistant", tags=["assistant"])


def _level_filter(level) -> Optional[LogLevel]:
    return None if level in (None, "all") else level


async def _entries_by_ids(
    storage: LogStorage, org_id: str, log_ids: List[str]
) -> List[LogEntry]:
    """Resolve explicit log ids by scanning the most recent entries."""
    wanted = set(log_ids)
    recent = await storage.query_entries(
        org_id, LogQueryParams(limit=settings.ASSISTANT_LEGACY_ID_LIMIT)
    )
    return [e for e in recent if e.id in wanted]


@router.get("/config", response_model=AssistantConfigResponse)
async def get_assistant_config(
    assistant: LogAssistantService = Depends(get_log_assistant),
) -> AssistantConfigResponse:
    """Whether LLM enhancement is available and which operations exist"""
    configured = await assistant.is_configured()
    return AssistantConfigResponse(configured=configured, capabilities=CAPABILITIES)


@router.post("/summarize", response_model=AssistantSummary)
async def summarize_logs(
    request: AssistantQueryRequest,
    org_id: str = Depends(get_org_id),
    auth_token: Optional[str] = Depends(get_bearer_token),
    storage: LogStorage = Depends(get_log_storage),
    assistant: LogAssistantService = Depends(get_log_assistant),
) -> AssistantSummary:
    """Summarize the entries matching the explorer's current query"""
    try:
        if request.log_ids:
            entries = await _entries_by_ids(storage, org_id, request.log_ids)
        else:
            entries = await storage.query_entries(
                org_id,
                LogQueryParams(
                    start_time=request.start_time,
                    end_time=request.end_time,
                    stream_ids=request.stream_ids,
                    level=_level_filter(request.level),
                    search=request.search,
                    limit=min(request.limit, settings.ASSISTANT_SUMMARIZE_MAX_LIMIT),
                ),
            )
    except Exception as e:
        logger.error(f"Failed to load logs for summary: {e}")
        raise HTTPException(status_code=500, detail="Failed to summarize logs")

    return await assistant.summarize_logs(entries, auth_token, org_id=org_id)


@router.post("/analyze", response_model=ErrorAnalysis)
async def analyze_errors(
    request: AssistantQueryRequest,
    org_id: str = Depends(get_org_id),
    auth_token: Optional[str] = Depends(get_bearer_token),
    storage: LogStorage = Depends(get_log_storage),
    assistant: LogAssistantService = Depends(get_log_assistant),
) -> ErrorAnalysis:
    """Diagnose error entries; the level filter is always 'error'"""
    try:
        if request.log_ids:
            entries = await _entries_by_ids(storage, org_id, request.log_ids)
        else:
            entries = await storage.query_entries(
                org_id,
                LogQueryParams(
                    start_time=request.start_time,
                    end_time=request.end_time,
                    stream_ids=request.stream_ids,
                    level=LogLevel.ERROR,
                    search=request.search,
                    limit=min(request.limit, settings.ASSISTANT_ANALYZE_MAX_LIMIT),
                ),
            )
    except Exception as e:
        logger.error(f"Failed to load logs for error analysis: {e}")
        raise HTTPException(status_code=500, detail="Failed to analyze logs")

    return await assistant.analyze_errors(entries, auth_token, org_id=org_id)


@router.post("/group", response_model=LogGroupsResponse)
async def group_logs(
    request: GroupRequest,
    org_id: str = Depends(get_org_id),
    storage: LogStorage = Depends(get_log_storage),
    assistant: LogAssistantService = Depends(get_log_assistant),
) -> LogGroupsResponse:
    """Cluster entries into repeated-message groups"""
    try:
        if request.log_ids:
            entries = await _entries_by_ids(storage, org_id, request.log_ids)
        else:
            entries = await storage.query_entries(
                org_id,
                LogQueryParams(
                    start_time=request.start_time,
                    end_time=request.end_time,
                    limit=min(request.limit, settings.ASSISTANT_BROADER_LIMIT),
                ),
            )
    except Exception as e:
        logger.error(f"Failed to load logs for grouping: {e}")
        raise HTTPException(status_code=500, detail="Failed to group logs")

    return LogGroupsResponse(groups=assistant.group_related_logs(entries))


@router.post("/investigate", response_model=InvestigationResult)
async def investigate_insight(
    request: InvestigateRequest,
    org_id: str = Depends(get_org_id),
    auth_token: Optional[str] = Depends(get_bearer_token),
    storage: LogStorage = Depends(get_log_storage),
    assistant: LogAssistantService = Depends(get_log_assistant),
) -> InvestigationResult:
    """Drill into one insight with its related log entries"""
    if request.insight is None or not request.insight.text:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Insight is required"
        )

    try:
        scoped = await storage.query_entries(
            org_id,
            LogQueryParams(
                start_time=request.start_time,
                end_time=request.end_time,
                stream_ids=request.stream_ids,
                level=_level_filter(request.level),
                search=request.search,
                limit=min(request.limit, settings.ASSISTANT_INVESTIGATE_MAX_LIMIT),
            ),
        )
        broader = await storage.query_entries(
            org_id,
            LogQueryParams(
                start_time=request.start_time,
                end_time=request.end_time,
                limit=settings.ASSISTANT_BROADER_LIMIT,
            ),
        )
    except Exception as e:
        logger.error(f"Failed to load logs for investigation: {e}")
        raise HTTPException(status_code=500, detail="Failed to investigate insight")

    return await assistant.investigate(
        request.insight, scoped, broader, auth_token, org_id=org_id
    )
