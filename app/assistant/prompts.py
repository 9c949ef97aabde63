"""
Prompts for the log assistant and the compact log rendering they embed.
"""

import json
from collections import Counter
from typing import Any, Dict, List, Optional, Sequence

from app.log.models import LogEntry, LogLevel

from .normalizer import ERROR_KEY_LENGTH, PROMPT_KEY_LENGTH, normalize
from .schemas import Insight

LOG_ANALYSIS_SYSTEM_PROMPT = (
    "You are a log analysis assistant. Analyze logs and provide structured insights. "
    "Always respond with valid JSON."
)

PROMPT_MESSAGE_LENGTH = 120
ERROR_DETAIL_MESSAGE_LENGTH = 200
TOP_ERROR_PATTERNS = 5

LEVEL_CODES = {
    LogLevel.ERROR: "E",
    LogLevel.FATAL: "E",
    LogLevel.WARN: "W",
    LogLevel.INFO: "I",
    LogLevel.DEBUG: "D",
}

# Metadata keys worth showing the model when diagnosing errors
ERROR_METADATA_KEYS = (
    "status",
    "statusCode",
    "error",
    "code",
    "path",
    "method",
    "stack",
    "cause",
)


def _service_of(entry: LogEntry) -> str:
    if entry.service_id:
        return entry.service_id
    meta = entry.metadata or {}
    service = meta.get("serviceId")
    return service if isinstance(service, str) and service else "unknown"


def format_logs_for_prompt(entries: Sequence[LogEntry], max_entries: int = 50) -> str:
    """
    Render log entries compactly for an LLM prompt.

    Each line reads `+<seconds since the earliest entry>s <level code> <message>`.
    Entries are grouped by service (with a `[service]` header when more than one
    service is present) and repeated normalized messages within a service are
    collapsed into a single line with an `(xN)` suffix.
    """
    if not entries:
        return "(no logs)"

    sample = list(entries[:max_entries])
    base_time = min(e.timestamp for e in sample)

    by_service: Dict[str, List[LogEntry]] = {}
    for entry in sample:
        by_service.setdefault(_service_of(entry), []).append(entry)

    lines: List[str] = []
    for service, logs in by_service.items():
        first_by_pattern: Dict[str, LogEntry] = {}
        counts: Counter = Counter()
        for log in logs:
            key = normalize(log.message, PROMPT_KEY_LENGTH)
            first_by_pattern.setdefault(key, log)
            counts[key] += 1

        if len(by_service) > 1:
            lines.append(f"[{service}]")

        for key, first in first_by_pattern.items():
            offset = (first.timestamp - base_time).total_seconds()
            code = LEVEL_CODES.get(first.level, "?")
            message = first.message[:PROMPT_MESSAGE_LENGTH]
            suffix = f" (x{counts[key]})" if counts[key] > 1 else ""
            lines.append(f"+{offset:.1f}s {code} {message}{suffix}")

    return "\n".join(lines)


def build_log_context(entries: Sequence[LogEntry]) -> str:
    """One-line statistics header so counts need not be inferred from the logs."""
    levels = {"error": 0, "warn": 0, "info": 0, "debug": 0}
    services: List[str] = []
    for entry in entries:
        if entry.level.value in levels:
            levels[entry.level.value] += 1
        if entry.service_id and entry.service_id not in services:
            services.append(entry.service_id)

    if len(entries) > 1:
        time_range = (
            f"{entries[0].timestamp.isoformat()} to {entries[-1].timestamp.isoformat()}"
        )
    else:
        time_range = "single point"

    return (
        f"Count: {len(entries)} | Errors: {levels['error']} | Warns: {levels['warn']} | "
        f"Services: {', '.join(services) or 'unknown'} | Range: {time_range}"
    )


def build_summarize_prompt(entries: Sequence[LogEntry], sample_size: int) -> str:
    context = build_log_context(entries)
    formatted_logs = format_logs_for_prompt(entries, sample_size)

    return f"""Analyze these application logs and surface specific, actionable insights.

CONTEXT: {context}

LOGS (format: +seconds level message):
{formatted_logs}

Generate insights that are SPECIFIC and CLICKABLE - each should make someone want to investigate further.

BAD insights (too generic):
- "2 errors detected"
- "High warning volume"
- "Multiple services logging"

GOOD insights (specific, intriguing):
- "auth-service: Token validation failing repeatedly for session xyz"
- "catalog-service response time spiked 3x starting at 14:22"
- "47 retry attempts from messaging-service to identity-service"
- "Unusual 401 responses on /api/users endpoint (normally 0, now 12)"

Respond with JSON:
{{
  "summary": "1-2 sentence executive summary",
  "insights": [
    {{
      "text": "Specific, actionable observation that invites investigation",
      "severity": "critical|warning|info",
      "category": "error|performance|pattern|anomaly|health",
      "searchHint": "search term to find related logs",
      "services": ["service-name"],
      "count": 5
    }}
  ]
}}

Rules:
- Include service names when relevant
- Include counts when meaningful
- Include timestamps or time references when notable
- Make each insight sound like something worth clicking
- Prioritize unusual or unexpected findings over routine observations
- Maximum 5 insights, fewer if logs are unremarkable"""


def _error_detail(entry: LogEntry) -> Dict[str, Any]:
    meta = entry.metadata or {}
    relevant = {k: meta[k] for k in ERROR_METADATA_KEYS if k in meta}

    detail: Dict[str, Any] = {
        "t": entry.timestamp.strftime("%H:%M:%S.%f")[:12],
        "svc": entry.service_id or meta.get("serviceId"),
        "msg": entry.message[:ERROR_DETAIL_MESSAGE_LENGTH],
    }
    if relevant:
        detail["meta"] = relevant
    return detail


def build_error_analysis_prompt(
    error_entries: Sequence[LogEntry], sample_size: int
) -> str:
    details = [_error_detail(e) for e in error_entries[:sample_size]]

    pattern_counts = Counter(
        normalize(e.message, ERROR_KEY_LENGTH) for e in error_entries
    )
    top_errors = "\n".join(
        f"{count}x: {pattern}"
        for pattern, count in pattern_counts.most_common(TOP_ERROR_PATTERNS)
    )

    return f"""Diagnose these errors.

ERROR SUMMARY ({len(error_entries)} total):
{top_errors}

RECENT ERRORS:
{json.dumps(details, default=str)}

Respond with JSON:
{{"summary":"1-2 sentences","possibleCauses":["cause1","cause2"],"suggestedActions":["action1","action2"]}}

Be specific and actionable."""


def build_investigate_prompt(
    insight: Insight, logs: Sequence[LogEntry], sample_size: int
) -> str:
    formatted_logs = format_logs_for_prompt(logs, sample_size)
    services_line: Optional[str] = (
        f"Services: {', '.join(insight.services)}" if insight.services else ""
    )

    return f"""Investigate this observation from log analysis:

INSIGHT: "{insight.text}"
Category: {insight.category.value}
Severity: {insight.severity.value}
{services_line}

RELATED LOGS:
{formatted_logs}

Provide a deeper explanation of what's happening and why. Be specific.

Respond with JSON:
{{
  "explanation": "2-4 sentences explaining what's happening, the likely cause, and impact",
  "suggestedActions": ["specific action 1", "specific action 2"]
}}

Focus on:
- Root cause if identifiable
- Impact on the system
- Specific next steps to resolve or investigate further"""
