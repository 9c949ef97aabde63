"""
Related-log selection for insight investigation.
"""

from enum import Enum
from typing import List, Sequence

from app.log.models import LogEntry

from .schemas import Insight, InsightCategory

MAX_RELATED_LOGS = 15
SCOPED_FALLBACK_SIZE = 20


class MatchStrategy(str, Enum):
    SEARCH_HINT = "searchHint"
    SERVICES = "services"
    CATEGORY = "category"


def select_related_logs(
    insight: Insight,
    scoped_entries: Sequence[LogEntry],
    broader_entries: Sequence[LogEntry],
) -> tuple[List[LogEntry], MatchStrategy, int]:
    """
    Pick the log entries that explain an insight.

    Strategies are tried in order and the first applicable one wins:
    1. searchHint: message contains the hint (case-insensitive) or the entry
       belongs to one of the insight's services
    2. services: entry belongs to one of the insight's services
    3. category: error insights take error/fatal entries, anything else takes
       the first SCOPED_FALLBACK_SIZE scoped entries

    Returns:
        (related entries capped to MAX_RELATED_LOGS in source order,
         strategy used, match count before capping)
    """
    services = set(insight.services or [])

    if insight.search_hint:
        strategy = MatchStrategy.SEARCH_HINT
        hint = insight.search_hint.lower()
        related = [
            e
            for e in broader_entries
            if hint in e.message.lower() or (e.service_id and e.service_id in services)
        ]
    elif services:
        strategy = MatchStrategy.SERVICES
        related = [e for e in broader_entries if (e.service_id or "") in services]
    else:
        strategy = MatchStrategy.CATEGORY
        if insight.category == InsightCategory.ERROR:
            related = [e for e in broader_entries if e.level.is_error]
        else:
            related = list(scoped_entries[:SCOPED_FALLBACK_SIZE])

    return related[:MAX_RELATED_LOGS], strategy, len(related)
