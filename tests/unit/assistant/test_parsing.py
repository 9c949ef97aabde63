"""
Unit tests for best-effort decoding of LLM responses.
"""

from app.assistant.parsing import (
    DEFAULT_ERROR_SUMMARY,
    DEFAULT_EXPLANATION,
    Parsed,
    RemoteErrorAnalysis,
    RemoteInvestigation,
    RemoteSummary,
    Unparsed,
    decode_structured,
    extract_json_block,
    parse_error_analysis_response,
    parse_investigate_response,
    parse_summary_response,
)
from app.assistant.schemas import InsightCategory, InsightSeverity


class TestExtractJsonBlock:
    def test_object_inside_prose_and_fences(self):
        text = 'Here you go:\n```json\n{"summary": "ok"}\n```\nThanks'
        assert extract_json_block(text) == '{"summary": "ok"}'

    def test_nested_objects(self):
        text = 'x {"a": {"b": 1}} y {"c": 2}'
        assert extract_json_block(text) == '{"a": {"b": 1}}'

    def test_braces_inside_strings_ignored(self):
        text = '{"msg": "unbalanced } brace and \\" quote {"}'
        assert extract_json_block(text) == text

    def test_no_object(self):
        assert extract_json_block("no json here") is None

    def test_unbalanced(self):
        assert extract_json_block('{"summary": "cut off') is None

    def test_unclosed_leading_brace_ends_search(self):
        text = '{"summary": "cut off ' + '{"a": 1}'
        assert extract_json_block(text) is None

    def test_many_unmatched_braces(self):
        text = "{" * 20000 + "tail"
        assert extract_json_block(text) is None


class TestDecodeStructured:
    def test_parsed(self):
        assert decode_structured('{"a": 1}') == Parsed({"a": 1})

    def test_empty(self):
        assert isinstance(decode_structured(""), Unparsed)
        assert isinstance(decode_structured(None), Unparsed)

    def test_invalid_json(self):
        result = decode_structured("{not: valid}")
        assert isinstance(result, Unparsed)
        assert result.reason.startswith("invalid JSON")


class TestParseSummaryResponse:
    def test_structured_insights(self):
        text = """{
            "summary": "Auth is failing",
            "insights": [
                {"text": "auth rejecting tokens", "severity": "critical",
                 "category": "error", "searchHint": "token", "services": ["auth"],
                 "count": 12}
            ]
        }"""

        result = parse_summary_response(text)

        assert isinstance(result, RemoteSummary)
        assert result.summary == "Auth is failing"
        insight = result.insights[0]
        assert insight.id == "llm-0"
        assert insight.severity == InsightSeverity.CRITICAL
        assert insight.category == InsightCategory.ERROR
        assert insight.search_hint == "token"
        assert insight.services == ["auth"]
        assert insight.count == 12

    def test_legacy_string_insights_coerced(self):
        result = parse_summary_response('{"insights": ["first", "second"]}')

        assert [i.id for i in result.insights] == ["llm-0", "llm-1"]
        assert all(i.severity == InsightSeverity.INFO for i in result.insights)
        assert all(i.category == InsightCategory.HEALTH for i in result.insights)
        assert result.summary is None

    def test_unknown_enum_values_fall_back(self):
        result = parse_summary_response(
            '{"insights": [{"id": "x", "text": "t", "severity": "huge", "category": 5}]}'
        )

        insight = result.insights[0]
        assert insight.id == "x"
        assert insight.severity == InsightSeverity.INFO
        assert insight.category == InsightCategory.HEALTH

    def test_insights_without_text_dropped(self):
        result = parse_summary_response('{"insights": [{"severity": "info"}, 3]}')
        assert result.insights == []

    def test_unparsable(self):
        assert isinstance(parse_summary_response("Sorry, I cannot help."), Unparsed)


class TestParseErrorAnalysisResponse:
    def test_full(self):
        result = parse_error_analysis_response(
            '{"summary": "DB down", "possibleCauses": ["pool exhausted"], '
            '"suggestedActions": ["raise pool size"]}'
        )

        assert result == RemoteErrorAnalysis(
            summary="DB down",
            possible_causes=["pool exhausted"],
            suggested_actions=["raise pool size"],
        )

    def test_missing_fields_defaulted(self):
        result = parse_error_analysis_response("{}")

        assert result.summary == DEFAULT_ERROR_SUMMARY
        assert result.possible_causes == []
        assert result.suggested_actions == []


class TestParseInvestigateResponse:
    def test_full(self):
        result = parse_investigate_response(
            '{"explanation": "Tokens expire early", "suggestedActions": ["sync clocks"]}'
        )

        assert result == RemoteInvestigation(
            explanation="Tokens expire early", suggested_actions=["sync clocks"]
        )

    def test_missing_fields_defaulted(self):
        result = parse_investigate_response('{"suggestedActions": "not a list"}')

        assert result.explanation == DEFAULT_EXPLANATION
        assert result.suggested_actions == []
