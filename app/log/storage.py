"""
Storage collaborator for log entries.

The assistant and the broadcaster never talk to a database directly. They
receive entries from a LogStorage that has already applied tenant scoping.
InMemoryLogStorage is the implementation used for local development and tests.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List

from .models import LogEntry, LogEntryInput, LogQueryParams

logger = logging.getLogger(__name__)


class LogStorage(ABC):
    """Tenant-scoped access to stored log entries."""

    @abstractmethod
    async def query_entries(
        self, org_id: str, params: LogQueryParams
    ) -> List[LogEntry]:
        """
        Return entries for one organization, newest first.

        Args:
            org_id: Organization the caller is scoped to
            params: Time range, stream, level, search and limit constraints

        Returns:
            At most params.limit entries, all with entry.org_id == org_id
        """

    @abstractmethod
    async def insert_entries(
        self, org_id: str, stream_id: str, entries: List[LogEntryInput]
    ) -> List[LogEntry]:
        """Store a batch for one stream and return the stored entries."""


class InMemoryLogStorage(LogStorage):
    """Dict-backed storage; entries live for the lifetime of the process."""

    def __init__(self):
        self._entries: Dict[str, LogEntry] = {}

    async def query_entries(
        self, org_id: str, params: LogQueryParams
    ) -> List[LogEntry]:
        entries = [e for e in self._entries.values() if e.org_id == org_id]

        if params.stream_ids:
            entries = [e for e in entries if e.stream_id in params.stream_ids]

        if params.level:
            entries = [e for e in entries if e.level == params.level]

        if params.search:
            needle = params.search.lower()
            entries = [e for e in entries if needle in e.message.lower()]

        if params.start_time:
            entries = [e for e in entries if e.timestamp >= params.start_time]
        if params.end_time:
            entries = [e for e in entries if e.timestamp <= params.end_time]

        entries.sort(key=lambda e: e.timestamp, reverse=True)
        return entries[: params.limit]

    async def insert_entries(
        self, org_id: str, stream_id: str, entries: List[LogEntryInput]
    ) -> List[LogEntry]:
        stored: List[LogEntry] = []
        for item in entries:
            entry = LogEntry(
                id=str(uuid.uuid4()),
                stream_id=stream_id,
                org_id=org_id,
                service_id=item.service_id,
                env=item.env,
                timestamp=item.timestamp or datetime.now(timezone.utc),
                level=item.level,
                message=item.message,
                metadata=item.metadata,
                tags=item.tags,
                trace_id=item.trace_id,
                span_id=item.span_id,
            )
            self._entries[entry.id] = entry
            stored.append(entry)

        logger.debug(
            f"Stored {len(stored)} log entries for stream {stream_id} (org: {org_id})"
        )
        return stored

    def __len__(self) -> int:
        return len(self._entries)
