"""
FastAPI router for logs endpoints
"""

import logging
from typing import AsyncIterator, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse

from ..broadcast.broadcaster import (
    LogBroadcaster,
    QueueSink,
    SubscriberFilters,
    connected_frame,
)
from ..core.config import settings
from ..dependencies import get_log_broadcaster, get_log_storage, get_org_id
from .models import LogIngestBatch, LogIngestResponse, LogLevel
from .storage import LogStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/logs", tags=["logs"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}


def parse_stream_ids(stream_ids: Optional[str]) -> Optional[List[str]]:
    """Split a comma-separated streamIds query value."""
    if not stream_ids:
        return None
    ids = [s.strip() for s in stream_ids.split(",") if s.strip()]
    return ids or None


async def log_event_stream(
    broadcaster: LogBroadcaster, sink: QueueSink, client_id: str
) -> AsyncIterator[str]:
    """
    SSE body for one subscriber: the connected frame, then whatever the
    broadcaster writes to the sink. Unregisters when the client goes away.
    """
    try:
        yield connected_frame(client_id, broadcaster.client_count())
        async for frame in sink:
            yield frame
    finally:
        sink.close()
        broadcaster.unregister(client_id)


@router.post("/ingest", response_model=LogIngestResponse)
async def ingest_logs(
    batch: LogIngestBatch,
    org_id: str = Depends(get_org_id),
    storage: LogStorage = Depends(get_log_storage),
    broadcaster: LogBroadcaster = Depends(get_log_broadcaster),
) -> LogIngestResponse:
    """Store a batch of entries and push it to live subscribers"""
    try:
        stored = await storage.insert_entries(org_id, batch.stream_id, batch.entries)
    except Exception as e:
        logger.error(f"Failed to ingest logs: {e}")
        raise HTTPException(status_code=500, detail="Failed to ingest logs")

    delivered = broadcaster.broadcast(stored)
    return LogIngestResponse(ingested=len(stored), delivered_to=delivered)


@router.get("/stream")
async def stream_logs(
    stream_ids: Optional[str] = Query(
        None, alias="streamIds", description="Comma-separated stream IDs"
    ),
    level: Optional[LogLevel] = Query(None, description="Minimum level to deliver"),
    org_id: str = Depends(get_org_id),
    broadcaster: LogBroadcaster = Depends(get_log_broadcaster),
) -> StreamingResponse:
    """
    Stream newly ingested entries via Server-Sent Events (SSE).

    Events:
    - connected: Registration succeeded, reports the active client count
    - logs: JSON array of entries matching this subscriber's filters
    - heartbeat comments keep idle connections open
    """
    sink = QueueSink(max_size=settings.BROADCAST_QUEUE_MAX_SIZE)
    client_id = broadcaster.register(
        sink,
        org_id,
        SubscriberFilters(stream_ids=parse_stream_ids(stream_ids), min_level=level),
    )

    return StreamingResponse(
        log_event_stream(broadcaster, sink, client_id),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
