"""
Local clustering of log entries into repeated-message groups.
"""

from typing import Dict, List, Sequence

from app.log.models import LogEntry

from .normalizer import GROUP_KEY_LENGTH, normalize
from .schemas import LogGroup

MAX_GROUPS = 20
GROUP_NAME_LENGTH = 50


def group_related_logs(entries: Sequence[LogEntry]) -> List[LogGroup]:
    """
    Group entries whose messages normalize to the same pattern.

    Only patterns seen more than once are returned, largest group first,
    at most MAX_GROUPS of them.
    """
    groups: Dict[str, LogGroup] = {}

    for entry in entries:
        pattern = normalize(entry.message, GROUP_KEY_LENGTH)
        group = groups.get(pattern)
        if group is None:
            groups[pattern] = LogGroup(
                id=f"group-{len(groups) + 1}",
                name=pattern[:GROUP_NAME_LENGTH],
                pattern=pattern,
                count=1,
                log_ids=[entry.id],
            )
        else:
            group.count += 1
            group.log_ids.append(entry.id)

    # sorted() is stable, so equal counts keep first-seen order
    repeated = sorted(
        (g for g in groups.values() if g.count > 1),
        key=lambda g: g.count,
        reverse=True,
    )
    return repeated[:MAX_GROUPS]
