"""
Local, deterministic log summarization.

This is the always-available fallback for the log assistant: it never calls
out of process and returns the same summary for the same input.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Set

from app.log.models import LogEntry, LogLevel

from .normalizer import ERROR_KEY_LENGTH, PATTERN_KEY_LENGTH, first_words, normalize
from .schemas import AssistantSummary, Insight, InsightCategory, InsightSeverity

MAX_INSIGHTS = 5
PATTERN_MIN_COUNT = 5  # Patterns must repeat more than this to be reported
PATTERN_WARNING_COUNT = 20  # Above this a repeated pattern is a warning
MAX_PATTERN_INSIGHTS = 3
ERROR_SAMPLE_LENGTH = 80
PATTERN_SAMPLE_LENGTH = 60
UNKNOWN_SERVICE = "unknown"

EMPTY_SUMMARY_TEXT = "No logs to analyze in the current time range."


@dataclass
class _PatternStats:
    sample: str
    count: int = 0
    services: Set[str] = field(default_factory=set)


def count_levels(entries: Sequence[LogEntry]) -> tuple[int, int]:
    """Return (error_count, warn_count); fatal counts as error."""
    error_count = sum(1 for e in entries if e.level.is_error)
    warn_count = sum(1 for e in entries if e.level == LogLevel.WARN)
    return error_count, warn_count


def _error_insights(entries: Sequence[LogEntry]) -> List[Insight]:
    errors_by_service: Dict[str, List[LogEntry]] = {}
    for entry in entries:
        if entry.level.is_error:
            service = entry.service_id or UNKNOWN_SERVICE
            errors_by_service.setdefault(service, []).append(entry)

    insights: List[Insight] = []
    for service, errors in errors_by_service.items():
        patterns: Dict[str, _PatternStats] = {}
        for error in errors:
            key = normalize(error.message, ERROR_KEY_LENGTH)
            stats = patterns.setdefault(
                key, _PatternStats(sample=error.message[:ERROR_SAMPLE_LENGTH])
            )
            stats.count += 1

        # max() keeps the first-seen pattern on ties
        top = max(patterns.values(), key=lambda s: s.count)
        suffix = f" ({top.count}x)" if top.count > 1 else ""
        insights.append(
            Insight(
                id=f"error-{service}-{len(insights)}",
                text=f"{top.sample}{suffix}",
                severity=InsightSeverity.CRITICAL,
                category=InsightCategory.ERROR,
                search_hint=first_words(top.sample, 3),
                services=[service],
                count=top.count,
            )
        )
    return insights


def _repeated_patterns(entries: Sequence[LogEntry]) -> List[tuple[str, _PatternStats]]:
    patterns: Dict[str, _PatternStats] = {}
    for entry in entries:
        key = normalize(entry.message, PATTERN_KEY_LENGTH)
        stats = patterns.setdefault(
            key, _PatternStats(sample=entry.message[:PATTERN_SAMPLE_LENGTH])
        )
        stats.count += 1
        if entry.service_id:
            stats.services.add(entry.service_id)

    repeated = [(k, s) for k, s in patterns.items() if s.count > PATTERN_MIN_COUNT]
    repeated.sort(key=lambda item: item[1].count, reverse=True)
    return repeated[:MAX_PATTERN_INSIGHTS]


def _summary_text(total: int, error_count: int, warn_count: int) -> str:
    text = f"Analyzed {total} log entries. "
    if error_count > 0:
        plural = "s" if error_count > 1 else ""
        return text + f"Found {error_count} error{plural} that may need attention."
    if warn_count > 0:
        plural = "s" if warn_count > 1 else ""
        return text + f"Found {warn_count} warning{plural} to review."
    return text + "All systems appear healthy with no errors or warnings."


def generate_local_summary(entries: Sequence[LogEntry]) -> AssistantSummary:
    """
    Summarize a slice of log entries without any external call.

    Produces one critical insight per service that logged errors (its most
    frequent error pattern), followed by up to three insights for message
    patterns repeated more than PATTERN_MIN_COUNT times, capped at
    MAX_INSIGHTS overall.
    """
    if not entries:
        return AssistantSummary(
            summary=EMPTY_SUMMARY_TEXT,
            insights=[],
            error_count=0,
            warn_count=0,
        )

    error_count, warn_count = count_levels(entries)

    insights: List[Insight] = _error_insights(entries) if error_count > 0 else []

    repeated = _repeated_patterns(entries)
    for _, stats in repeated:
        insights.append(
            Insight(
                id=f"pattern-{len(insights)}",
                text=f'{stats.count}x: "{stats.sample}"',
                severity=(
                    InsightSeverity.WARNING
                    if stats.count > PATTERN_WARNING_COUNT
                    else InsightSeverity.INFO
                ),
                category=InsightCategory.PATTERN,
                search_hint=first_words(stats.sample, 2),
                services=sorted(stats.services),
                count=stats.count,
            )
        )

    return AssistantSummary(
        summary=_summary_text(len(entries), error_count, warn_count),
        insights=insights[:MAX_INSIGHTS],
        error_count=error_count,
        warn_count=warn_count,
        patterns=[key for key, _ in repeated],
    )


def level_breakdown(entries: Sequence[LogEntry]) -> Dict[str, int]:
    """Per-level counts, used for verbose telemetry."""
    counts = Counter(e.level.value for e in entries)
    return {level.value: counts.get(level.value, 0) for level in LogLevel}
