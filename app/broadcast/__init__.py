"""
Real-time distribution of ingested log entries to live subscribers.
"""

from app.broadcast.broadcaster import LogBroadcaster, QueueSink, SubscriberFilters

__all__ = ["LogBroadcaster", "QueueSink", "SubscriberFilters"]
