"""
Fan-out of newly ingested log entries to SSE subscribers.

Delivery is best-effort and at-most-once: a subscriber only sees batches
broadcast while it is registered, and a failed write drops the subscriber
without affecting anyone else or the ingesting caller.
"""

import asyncio
import itertools
import json
import logging
import threading
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, List, Optional, Protocol, Sequence

from app.log.models import LogEntry, LogLevel

logger = logging.getLogger(__name__)

HEARTBEAT_FRAME = ":heartbeat\n\n"
STREAM_CLOSED = None


class LogSink(Protocol):
    def write(self, frame: str) -> bool:
        """Write one SSE frame; return False if the subscriber is gone."""


def format_event(event: str, data) -> str:
    return f"event: {event}\ndata: {json.dumps(data, default=str)}\n\n"


def logs_frame(entries: Sequence[LogEntry]) -> str:
    return format_event(
        "logs", [e.model_dump(mode="json", by_alias=True) for e in entries]
    )


def connected_frame(client_id: str, active_clients: int) -> str:
    return format_event(
        "connected",
        {
            "message": "Connected to log stream",
            "clientId": client_id,
            "activeClients": active_clients,
        },
    )


class QueueSink:
    """
    Sink backed by a bounded asyncio.Queue, drained by an SSE response.

    write() never blocks: a full or closed queue reports failure so the
    broadcaster drops the subscriber instead of buffering without bound.
    """

    def __init__(self, max_size: int = 1000):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_size)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, frame: str) -> bool:
        if self._closed:
            return False
        try:
            self._queue.put_nowait(frame)
        except asyncio.QueueFull:
            self.close()
            return False
        return True

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # Wake the reader even if the queue is full
        try:
            self._queue.put_nowait(STREAM_CLOSED)
        except asyncio.QueueFull:
            pass

    async def stream(self) -> AsyncIterator[str]:
        while True:
            if self._closed and self._queue.empty():
                return
            frame = await self._queue.get()
            if frame is STREAM_CLOSED:
                return
            yield frame

    def __aiter__(self) -> AsyncIterator[str]:
        return self.stream()


@dataclass
class SubscriberFilters:
    stream_ids: Optional[List[str]] = None
    min_level: Optional[LogLevel] = None

    def matches(self, entry: LogEntry) -> bool:
        if self.stream_ids and entry.stream_id not in self.stream_ids:
            return False
        if self.min_level and entry.level.ordinal < self.min_level.ordinal:
            return False
        return True


@dataclass
class _Subscriber:
    id: str
    sink: LogSink
    org_id: str
    filters: SubscriberFilters = field(default_factory=SubscriberFilters)


class LogBroadcaster:
    """Registry of live subscribers and the fan-out over them."""

    def __init__(self):
        self._subscribers: Dict[str, _Subscriber] = {}
        self._lock = threading.Lock()
        self._ids = itertools.count(1)

    def register(
        self,
        sink: LogSink,
        org_id: str,
        filters: Optional[SubscriberFilters] = None,
    ) -> str:
        with self._lock:
            client_id = f"sse_client_{next(self._ids)}"
            self._subscribers[client_id] = _Subscriber(
                id=client_id,
                sink=sink,
                org_id=org_id,
                filters=filters or SubscriberFilters(),
            )
            total = len(self._subscribers)
        logger.info(f"Client {client_id} registered (org: {org_id}, total: {total})")
        return client_id

    def unregister(self, client_id: str) -> bool:
        with self._lock:
            removed = self._subscribers.pop(client_id, None) is not None
            total = len(self._subscribers)
        if removed:
            logger.info(f"Client {client_id} unregistered (total: {total})")
        return removed

    def client_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def _snapshot(self) -> List[_Subscriber]:
        with self._lock:
            return list(self._subscribers.values())

    def _write(self, subscriber: _Subscriber, frame: str) -> bool:
        try:
            ok = subscriber.sink.write(frame)
        except Exception as e:
            logger.warning(f"Error writing to client {subscriber.id}: {e}")
            ok = False
        if not ok:
            self.unregister(subscriber.id)
        return ok

    def broadcast(self, entries: Sequence[LogEntry]) -> int:
        """
        Deliver a batch to every matching subscriber.

        Returns:
            Number of subscribers the batch was written to
        """
        if not entries:
            return 0

        delivered = 0
        for subscriber in self._snapshot():
            matching = [
                e
                for e in entries
                if e.org_id == subscriber.org_id and subscriber.filters.matches(e)
            ]
            if matching and self._write(subscriber, logs_frame(matching)):
                delivered += 1

        if delivered:
            logger.debug(f"Broadcast {len(entries)} entries to {delivered} clients")
        return delivered

    def send_heartbeats(self) -> None:
        for subscriber in self._snapshot():
            self._write(subscriber, HEARTBEAT_FRAME)

    async def run_heartbeat(self, interval: float = 30.0) -> None:
        """Send heartbeats forever; cancel the task to stop."""
        logger.info(f"Broadcast heartbeat started (interval: {interval}s)")
        try:
            while True:
                await asyncio.sleep(interval)
                self.send_heartbeats()
        except asyncio.CancelledError:
            logger.info("Broadcast heartbeat stopped")
            raise
