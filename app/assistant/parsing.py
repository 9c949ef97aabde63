"""
Best-effort decoding of LLM responses.

Model output is loosely structured text: usually a JSON object, sometimes
wrapped in markdown fences or prose. Decoding never raises; callers get a
tagged Parsed/Unparsed result and pick their own fallback.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from .schemas import Insight, InsightCategory, InsightSeverity

logger = logging.getLogger(__name__)

DEFAULT_ERROR_SUMMARY = "Error analysis completed."
DEFAULT_EXPLANATION = "Analysis complete."


@dataclass(frozen=True)
class Parsed:
    data: Dict[str, Any]


@dataclass(frozen=True)
class Unparsed:
    reason: str


DecodeResult = Union[Parsed, Unparsed]


def extract_json_block(text: str) -> Optional[str]:
    """
    Return the first balanced {...} span in text, or None.

    Braces inside JSON strings (including escaped quotes) do not count
    towards nesting depth. The scan is a single pass from the first brace:
    if that brace never closes, no later span is considered.
    """
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escape_next = False
    for j in range(start, len(text)):
        ch = text[j]
        if escape_next:
            escape_next = False
            continue
        if ch == "\\" and in_string:
            escape_next = True
            continue
        if ch == '"':
            in_string = not in_string
        elif not in_string:
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start : j + 1]
    return None


def decode_structured(text: Optional[str]) -> DecodeResult:
    if not text or not text.strip():
        return Unparsed("empty response")

    block = extract_json_block(text)
    if block is None:
        return Unparsed("no JSON object found")

    try:
        data = json.loads(block)
    except json.JSONDecodeError as e:
        return Unparsed(f"invalid JSON: {e.msg}")

    if not isinstance(data, dict):
        return Unparsed("JSON payload is not an object")
    return Parsed(data)


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None]


def _enum_or_default(enum_cls, value, default):
    try:
        return enum_cls(value)
    except ValueError:
        return default


def coerce_insight(raw: Any, index: int) -> Optional[Insight]:
    """
    Convert one model-produced insight into an Insight.

    Plain strings are the legacy shape and become info/health insights.
    Objects keep their fields; unknown severities or categories fall back to
    the defaults. Entries without usable text are dropped.
    """
    fallback_id = f"llm-{index}"

    if isinstance(raw, str):
        return Insight(
            id=fallback_id,
            text=raw,
            severity=InsightSeverity.INFO,
            category=InsightCategory.HEALTH,
        )

    if not isinstance(raw, dict) or not raw.get("text"):
        return None

    severity = raw.get("severity")
    category = raw.get("category")
    count = raw.get("count")
    try:
        return Insight(
            id=str(raw.get("id") or fallback_id),
            text=str(raw["text"]),
            severity=_enum_or_default(InsightSeverity, severity, InsightSeverity.INFO),
            category=_enum_or_default(
                InsightCategory, category, InsightCategory.HEALTH
            ),
            search_hint=raw.get("searchHint") or None,
            services=_string_list(raw.get("services")) or None,
            count=count if isinstance(count, int) else None,
        )
    except ValidationError as e:
        logger.debug(f"Dropping malformed insight {index}: {e}")
        return None


@dataclass
class RemoteSummary:
    summary: Optional[str] = None
    insights: List[Insight] = field(default_factory=list)
    patterns: Optional[List[str]] = None


@dataclass
class RemoteErrorAnalysis:
    summary: str
    possible_causes: List[str]
    suggested_actions: List[str]


@dataclass
class RemoteInvestigation:
    explanation: str
    suggested_actions: List[str]


def parse_summary_response(text: Optional[str]) -> Union[RemoteSummary, Unparsed]:
    decoded = decode_structured(text)
    if isinstance(decoded, Unparsed):
        return decoded

    data = decoded.data
    insights: List[Insight] = []
    raw_insights = data.get("insights")
    if isinstance(raw_insights, list):
        for index, raw in enumerate(raw_insights):
            insight = coerce_insight(raw, index)
            if insight is not None:
                insights.append(insight)

    summary = data.get("summary")
    patterns = data.get("patterns")
    return RemoteSummary(
        summary=summary if isinstance(summary, str) and summary else None,
        insights=insights,
        patterns=_string_list(patterns) if isinstance(patterns, list) else None,
    )


def parse_error_analysis_response(
    text: Optional[str],
) -> Union[RemoteErrorAnalysis, Unparsed]:
    decoded = decode_structured(text)
    if isinstance(decoded, Unparsed):
        return decoded

    data = decoded.data
    summary = data.get("summary")
    return RemoteErrorAnalysis(
        summary=summary if isinstance(summary, str) and summary else DEFAULT_ERROR_SUMMARY,
        possible_causes=_string_list(data.get("possibleCauses")),
        suggested_actions=_string_list(data.get("suggestedActions")),
    )


def parse_investigate_response(
    text: Optional[str],
) -> Union[RemoteInvestigation, Unparsed]:
    decoded = decode_structured(text)
    if isinstance(decoded, Unparsed):
        return decoded

    data = decoded.data
    explanation = data.get("explanation")
    return RemoteInvestigation(
        explanation=(
            explanation
            if isinstance(explanation, str) and explanation
            else DEFAULT_EXPLANATION
        ),
        suggested_actions=_string_list(data.get("suggestedActions")),
    )
