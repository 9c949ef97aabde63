"""
Log assistant: local heuristics with optional LLM enhancement.

Every operation computes a local result first. The LLM is consulted only when
the caller supplies a bearer token, and any failure on that path falls back to
the local result, so callers always get a well-formed answer.
"""

import json
import logging
import time
import uuid
from typing import Any, List, Optional, Sequence

from app.core.config import Settings
from app.integrations.client import IntegrationsClient
from app.integrations.schemas import ChatMessage, ChatRole
from app.log.models import LogEntry

from . import grouper
from .insights import generate_local_summary, level_breakdown
from .investigator import select_related_logs
from .normalizer import ERROR_KEY_LENGTH, normalize
from .parsing import (
    Unparsed,
    parse_error_analysis_response,
    parse_investigate_response,
    parse_summary_response,
)
from .prompts import (
    LOG_ANALYSIS_SYSTEM_PROMPT,
    build_error_analysis_prompt,
    build_investigate_prompt,
    build_summarize_prompt,
)
from .schemas import (
    AssistantSummary,
    ErrorAnalysis,
    Insight,
    InvestigationResult,
    LogGroup,
)

logger = logging.getLogger(__name__)

MAX_ERROR_MESSAGES = 10
MAX_SUMMARY_INSIGHTS = 5
PREVIEW_LENGTH = 200

NO_ERRORS_SUMMARY = "No errors found in the provided logs."
PARSE_FAILED_SUMMARY = "Error analysis parsing failed."
PARSE_FAILED_EXPLANATION = "Unable to parse LLM response."
MANUAL_REVIEW_ACTION = "Review error messages manually."
REVIEW_LOGS_MANUALLY_ACTION = "Review the log entries manually."

CAPABILITIES = ["summarize", "analyze", "group", "investigate"]


def _correlation_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class LogAssistantService:
    """
    Summaries, error analysis, grouping and insight investigation over a
    bounded slice of log entries.

    One instance is built at startup and shared; the only mutable state is the
    cached Integrations availability flag.
    """

    def __init__(self, client: IntegrationsClient, config: Settings):
        self.client = client
        self.config = config
        self._integrations_available: Optional[bool] = None
        logger.info(
            f"Log assistant initialized (provider: {config.LLM_PROVIDER}, "
            f"model: {config.LLM_MODEL})"
        )

    def log_verbose(self, category: str, message: str, **data: Any) -> None:
        """Debug telemetry for each stage; never influences results."""
        if self.config.is_verbose:
            logger.debug(
                f"[LogAssistant:{category}] {message} {json.dumps(data, default=str)}"
            )

    # =========================================================================
    # Availability
    # =========================================================================

    async def is_configured(self) -> bool:
        """
        Whether the Integrations service is reachable with at least one
        configured provider. Probed once, then cached until reset.
        """
        if self._integrations_available is not None:
            return self._integrations_available

        try:
            status = await self.client.get_status()
            self._integrations_available = (
                status.available and status.has_configured_provider
            )
        except Exception as e:
            logger.warning(f"Integrations availability check failed: {e}")
            self._integrations_available = False
        logger.info(
            "Integrations service: "
            f"{'available' if self._integrations_available else 'unavailable'}"
        )
        return self._integrations_available

    def reset_availability_cache(self) -> None:
        self._integrations_available = None

    # =========================================================================
    # LLM call
    # =========================================================================

    async def _call_llm(
        self,
        prompt: str,
        operation: str,
        auth_token: str,
        org_id: Optional[str] = None,
    ) -> str:
        """
        Send one prompt through the Integrations service and return the text.

        Raises:
            IntegrationsError: If the call fails or returns no content
            Exception: Anything else the client raises, after logging it
        """
        request_id = _correlation_id("llm")
        start = time.perf_counter()
        logger.info(
            f"[LLM] Request {request_id}: operation={operation} "
            f"provider={self.config.LLM_PROVIDER} model={self.config.LLM_MODEL} "
            f"prompt_length={len(prompt)} temperature={self.config.LLM_TEMPERATURE} "
            f"max_tokens={self.config.LLM_MAX_TOKENS}"
        )

        messages = [
            ChatMessage(role=ChatRole.SYSTEM, content=LOG_ANALYSIS_SYSTEM_PROMPT),
            ChatMessage(role=ChatRole.USER, content=prompt),
        ]

        try:
            response = await self.client.chat_completion(
                auth_token, messages, org_id=org_id
            )
        except Exception as e:
            integrations_request = getattr(e, "request_id", None)
            logger.warning(
                f"[LLM] Request {request_id} failed after {_elapsed_ms(start)}ms: {e} "
                f"(integrations request: {integrations_request})"
            )
            raise

        usage = response.usage
        logger.info(
            f"[LLM] Response {request_id}: operation={operation} "
            f"model={response.model or self.config.LLM_MODEL} "
            f"latency_ms={_elapsed_ms(start)} prompt_tokens={usage.prompt_tokens} "
            f"completion_tokens={usage.completion_tokens} "
            f"total_tokens={usage.total_tokens} "
            f"response_length={len(response.content)}"
        )
        self.log_verbose(
            "LLM",
            "Response preview",
            request_id=request_id,
            preview=response.content[:PREVIEW_LENGTH],
        )
        return response.content

    # =========================================================================
    # Operations
    # =========================================================================

    async def summarize_logs(
        self,
        entries: Sequence[LogEntry],
        auth_token: Optional[str] = None,
        org_id: Optional[str] = None,
    ) -> AssistantSummary:
        start = time.perf_counter()
        request_id = _correlation_id("summarize")
        self.log_verbose(
            "SUMMARIZE",
            "Starting summarization",
            request_id=request_id,
            entry_count=len(entries),
            has_auth_token=bool(auth_token),
            levels=level_breakdown(entries),
        )

        local_summary = generate_local_summary(entries)
        self.log_verbose(
            "SUMMARIZE",
            "Local analysis complete",
            request_id=request_id,
            insight_count=len(local_summary.insights),
            pattern_count=len(local_summary.patterns or []),
        )

        if not auth_token:
            return local_summary

        try:
            prompt = build_summarize_prompt(
                entries, self.config.ASSISTANT_SUMMARIZE_SAMPLE_SIZE
            )
            content = await self._call_llm(prompt, "summarize", auth_token, org_id)

            remote = parse_summary_response(content)
            if isinstance(remote, Unparsed):
                logger.warning(
                    f"Summary {request_id}: LLM response unparsed "
                    f"({remote.reason}); using local analysis"
                )
                return local_summary

            insights: List[Insight] = remote.insights or local_summary.insights
            result = local_summary.model_copy(
                update={
                    "summary": remote.summary or local_summary.summary,
                    "insights": insights[:MAX_SUMMARY_INSIGHTS],
                    "patterns": (
                        remote.patterns
                        if remote.patterns is not None
                        else local_summary.patterns
                    ),
                }
            )
        except Exception as e:
            logger.warning(
                f"Summary {request_id}: LLM enhancement failed ({e}); "
                "using local analysis"
            )
            return local_summary

        self.log_verbose(
            "SUMMARIZE",
            "Summarization complete",
            request_id=request_id,
            duration_ms=_elapsed_ms(start),
            used_llm_insights=bool(remote.insights),
        )
        return result

    async def analyze_errors(
        self,
        entries: Sequence[LogEntry],
        auth_token: Optional[str] = None,
        org_id: Optional[str] = None,
    ) -> ErrorAnalysis:
        request_id = _correlation_id("analyze")
        error_entries = [e for e in entries if e.level.is_error]
        self.log_verbose(
            "ANALYZE",
            "Starting error analysis",
            request_id=request_id,
            total_entries=len(entries),
            error_count=len(error_entries),
            has_auth_token=bool(auth_token),
        )

        if not error_entries:
            return ErrorAnalysis(summary=NO_ERRORS_SUMMARY)

        error_messages = self._distinct_error_messages(error_entries)
        local_summary = f"Found {len(error_entries)} error(s) in the logs."

        if not auth_token:
            return ErrorAnalysis(
                summary=local_summary,
                error_messages=error_messages,
                possible_causes=["Unable to determine causes without AI analysis."],
                suggested_actions=[
                    MANUAL_REVIEW_ACTION,
                    "Check system logs for more context.",
                ],
            )

        try:
            prompt = build_error_analysis_prompt(
                error_entries, self.config.ASSISTANT_ERROR_SAMPLE_SIZE
            )
            content = await self._call_llm(prompt, "analyzeErrors", auth_token, org_id)

            remote = parse_error_analysis_response(content)
            if isinstance(remote, Unparsed):
                logger.warning(
                    f"Error analysis {request_id}: LLM response unparsed "
                    f"({remote.reason})"
                )
                return ErrorAnalysis(
                    summary=PARSE_FAILED_SUMMARY,
                    error_messages=error_messages,
                    suggested_actions=[MANUAL_REVIEW_ACTION],
                )

            return ErrorAnalysis(
                summary=remote.summary,
                error_messages=error_messages,
                possible_causes=remote.possible_causes,
                suggested_actions=remote.suggested_actions,
            )
        except Exception as e:
            logger.warning(
                f"Error analysis {request_id}: LLM enhancement failed ({e}); "
                "using local analysis"
            )
            return ErrorAnalysis(
                summary=local_summary,
                error_messages=error_messages,
                possible_causes=["LLM analysis unavailable."],
                suggested_actions=[MANUAL_REVIEW_ACTION],
            )

    @staticmethod
    def _distinct_error_messages(error_entries: Sequence[LogEntry]) -> List[str]:
        """Up to MAX_ERROR_MESSAGES messages, one per normalized error pattern."""
        seen = set()
        messages: List[str] = []
        for entry in error_entries:
            key = normalize(entry.message, ERROR_KEY_LENGTH)
            if key in seen:
                continue
            seen.add(key)
            messages.append(entry.message)
            if len(messages) == MAX_ERROR_MESSAGES:
                break
        return messages

    async def investigate(
        self,
        insight: Insight,
        scoped_entries: Sequence[LogEntry],
        broader_entries: Sequence[LogEntry],
        auth_token: Optional[str] = None,
        org_id: Optional[str] = None,
    ) -> InvestigationResult:
        request_id = _correlation_id("investigate")
        related, strategy, match_count = select_related_logs(
            insight, scoped_entries, broader_entries
        )
        self.log_verbose(
            "INVESTIGATE",
            "Related logs selected",
            request_id=request_id,
            insight_id=insight.id,
            match_strategy=strategy.value,
            original_match_count=match_count,
            selected_count=len(related),
            truncated=match_count > len(related),
        )

        if not auth_token:
            return InvestigationResult(
                insight=insight.text,
                explanation=f"Found {len(related)} related log entries.",
                related_logs=related,
                suggested_actions=["Review the log entries for more details."],
            )

        try:
            prompt = build_investigate_prompt(
                insight, related, self.config.ASSISTANT_INVESTIGATE_SAMPLE_SIZE
            )
            content = await self._call_llm(prompt, "investigate", auth_token, org_id)

            remote = parse_investigate_response(content)
            if isinstance(remote, Unparsed):
                logger.warning(
                    f"Investigation {request_id}: LLM response unparsed "
                    f"({remote.reason})"
                )
                return InvestigationResult(
                    insight=insight.text,
                    explanation=PARSE_FAILED_EXPLANATION,
                    related_logs=related,
                    suggested_actions=[REVIEW_LOGS_MANUALLY_ACTION],
                )

            return InvestigationResult(
                insight=insight.text,
                explanation=remote.explanation,
                related_logs=related,
                suggested_actions=remote.suggested_actions,
            )
        except Exception as e:
            logger.warning(
                f"Investigation {request_id}: LLM enhancement failed ({e}); "
                "using local analysis"
            )
            return InvestigationResult(
                insight=insight.text,
                explanation=(
                    f"Found {len(related)} related log entries. "
                    "LLM analysis unavailable."
                ),
                related_logs=related,
                suggested_actions=[REVIEW_LOGS_MANUALLY_ACTION],
            )

    def group_related_logs(self, entries: Sequence[LogEntry]) -> List[LogGroup]:
        groups = grouper.group_related_logs(entries)
        self.log_verbose(
            "GROUP",
            "Grouping complete",
            entry_count=len(entries),
            group_count=len(groups),
        )
        return groups
