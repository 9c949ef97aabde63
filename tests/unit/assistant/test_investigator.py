"""
Unit tests for related-log selection.
"""

from app.assistant.investigator import (
    MAX_RELATED_LOGS,
    MatchStrategy,
    select_related_logs,
)
from app.assistant.schemas import Insight, InsightCategory
from app.log.models import LogLevel


def _insight(**kwargs) -> Insight:
    kwargs.setdefault("id", "insight-1")
    kwargs.setdefault("text", "Something happened")
    return Insight(**kwargs)


def test_search_hint_matches_message_or_service(make_entry):
    broader = [
        make_entry("Token validation failed", service_id="auth"),
        make_entry("Unrelated message", service_id="billing"),
        make_entry("Cache refreshed", service_id="gateway"),
        make_entry("TOKEN VALIDATION FAILED again", service_id="api"),
    ]
    insight = _insight(search_hint="token validation", services=["gateway"])

    related, strategy, total = select_related_logs(insight, [], broader)

    assert strategy == MatchStrategy.SEARCH_HINT
    assert [e.message for e in related] == [
        "Token validation failed",
        "Cache refreshed",
        "TOKEN VALIDATION FAILED again",
    ]
    assert total == 3


def test_services_strategy(make_entry):
    broader = [
        make_entry("a", service_id="auth"),
        make_entry("b", service_id="api"),
        make_entry("c", service_id=None),
    ]

    related, strategy, _ = select_related_logs(
        _insight(services=["api"]), [], broader
    )

    assert strategy == MatchStrategy.SERVICES
    assert [e.message for e in related] == ["b"]


def test_error_category_fallback_uses_broader_errors(make_entry):
    scoped = [make_entry("scoped info")]
    broader = [
        make_entry("info", level=LogLevel.INFO),
        make_entry("error", level=LogLevel.ERROR),
        make_entry("fatal", level=LogLevel.FATAL),
    ]

    related, strategy, _ = select_related_logs(
        _insight(category=InsightCategory.ERROR), scoped, broader
    )

    assert strategy == MatchStrategy.CATEGORY
    assert [e.message for e in related] == ["error", "fatal"]


def test_other_category_fallback_uses_scoped_entries(make_entry):
    scoped = [make_entry(f"scoped {i}") for i in range(30)]
    broader = [make_entry("broader")]

    related, strategy, total = select_related_logs(
        _insight(category=InsightCategory.PERFORMANCE), scoped, broader
    )

    assert strategy == MatchStrategy.CATEGORY
    assert total == 20
    assert related == scoped[:MAX_RELATED_LOGS]


def test_capped_in_source_order(make_entry):
    broader = [make_entry(f"timeout {i}", service_id="api") for i in range(40)]

    related, _, total = select_related_logs(_insight(search_hint="timeout"), [], broader)

    assert len(related) == MAX_RELATED_LOGS
    assert total == 40
    assert related == broader[:MAX_RELATED_LOGS]
