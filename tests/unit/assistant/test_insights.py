"""
Unit tests for local, deterministic log summarization.
"""

from app.assistant.insights import (
    EMPTY_SUMMARY_TEXT,
    MAX_INSIGHTS,
    generate_local_summary,
    level_breakdown,
)
from app.assistant.schemas import InsightCategory, InsightSeverity
from app.log.models import LogLevel


class TestGenerateLocalSummary:
    def test_empty_input(self):
        summary = generate_local_summary([])

        assert summary.summary == EMPTY_SUMMARY_TEXT
        assert summary.insights == []
        assert summary.error_count == 0
        assert summary.warn_count == 0

    def test_auth_errors_scenario(self, make_entry):
        """Two auth errors with the same pattern yield one error insight with count 2."""
        entries = [
            make_entry(
                "Token validation failed for session abc123",
                level=LogLevel.ERROR,
                service_id="auth",
            ),
            make_entry(
                "Token validation failed for session xyz789",
                level=LogLevel.ERROR,
                service_id="auth",
            ),
            make_entry("Request handled", level=LogLevel.INFO, service_id="api"),
        ]

        summary = generate_local_summary(entries)

        assert summary.error_count == 2
        assert summary.warn_count == 0
        error_insights = [
            i for i in summary.insights if i.category == InsightCategory.ERROR
        ]
        assert len(error_insights) == 1
        insight = error_insights[0]
        assert insight.services == ["auth"]
        assert insight.count == 2
        assert insight.severity == InsightSeverity.CRITICAL
        assert insight.id == "error-auth-0"
        assert insight.text == "Token validation failed for session abc123 (2x)"
        assert insight.search_hint == "Token validation failed"
        assert summary.summary == (
            "Analyzed 3 log entries. Found 2 errors that may need attention."
        )

    def test_fatal_counts_as_error(self, make_entry):
        entries = [make_entry("Out of memory", level=LogLevel.FATAL, service_id="worker")]

        summary = generate_local_summary(entries)

        assert summary.error_count == 1
        assert summary.insights[0].text == "Out of memory"
        assert summary.summary.endswith("Found 1 error that may need attention.")

    def test_errors_without_service_grouped_as_unknown(self, make_entry):
        entries = [make_entry("Boom", level=LogLevel.ERROR, service_id=None)]

        summary = generate_local_summary(entries)

        assert summary.insights[0].services == ["unknown"]

    def test_warnings_only_phrasing(self, make_entry):
        entries = [
            make_entry("Slow query", level=LogLevel.WARN),
            make_entry("Slow query again", level=LogLevel.WARN),
        ]

        summary = generate_local_summary(entries)

        assert summary.warn_count == 2
        assert summary.summary == "Analyzed 2 log entries. Found 2 warnings to review."

    def test_healthy_phrasing(self, make_entry):
        summary = generate_local_summary([make_entry("ok")])

        assert summary.summary == (
            "Analyzed 1 log entries. "
            "All systems appear healthy with no errors or warnings."
        )
        assert summary.insights == []

    def test_repeated_pattern_insight(self, make_entry):
        entries = [
            make_entry(f"Polling queue batch {i}", service_id="worker") for i in range(6)
        ]

        summary = generate_local_summary(entries)

        assert len(summary.insights) == 1
        insight = summary.insights[0]
        assert insight.category == InsightCategory.PATTERN
        assert insight.severity == InsightSeverity.INFO
        assert insight.count == 6
        assert insight.text == '6x: "Polling queue batch 0"'
        assert insight.search_hint == "Polling queue"
        assert summary.patterns == ["Polling queue batch [N]"]

    def test_pattern_below_threshold_not_reported(self, make_entry):
        entries = [make_entry(f"Polling queue batch {i}") for i in range(5)]

        summary = generate_local_summary(entries)

        assert summary.insights == []
        assert summary.patterns == []

    def test_high_volume_pattern_is_warning(self, make_entry):
        entries = [
            make_entry(f"Retrying connection attempt {i}", service_id=svc)
            for i, svc in zip(range(21), ["a", "b", "c"] * 7)
        ]

        summary = generate_local_summary(entries)

        assert summary.insights[0].severity == InsightSeverity.WARNING
        assert summary.insights[0].services == ["a", "b", "c"]

    def test_insights_capped(self, make_entry):
        entries = []
        for svc in ["s1", "s2", "s3", "s4"]:
            entries.append(make_entry("Crash", level=LogLevel.ERROR, service_id=svc))
        for word in ["alpha", "beta", "gamma"]:
            entries.extend(make_entry(f"{word} tick {i}") for i in range(7))

        summary = generate_local_summary(entries)

        assert len(summary.insights) == MAX_INSIGHTS
        assert [i.category for i in summary.insights[:4]] == [InsightCategory.ERROR] * 4

    def test_idempotent(self, make_entry):
        entries = [
            make_entry("Token validation failed for session abc123", level=LogLevel.ERROR),
            make_entry("Disk usage at 91%", level=LogLevel.WARN),
        ] + [make_entry(f"Heartbeat {i}") for i in range(8)]

        first = generate_local_summary(entries)
        second = generate_local_summary(entries)

        assert first.model_dump() == second.model_dump()


def test_level_breakdown_includes_every_level(make_entry):
    entries = [
        make_entry("a", level=LogLevel.ERROR),
        make_entry("b", level=LogLevel.ERROR),
        make_entry("c", level=LogLevel.DEBUG),
    ]

    assert level_breakdown(entries) == {
        "debug": 1,
        "info": 0,
        "warn": 0,
        "error": 2,
        "fatal": 0,
    }
