"""
Unit tests for log message normalization.
"""

from app.assistant.normalizer import (
    ERROR_KEY_LENGTH,
    GROUP_KEY_LENGTH,
    PATTERN_KEY_LENGTH,
    first_words,
    normalize,
)


class TestNormalize:
    def test_identifier_and_retry_count_collapse(self):
        """Messages differing only in an id and a trailing number share a key."""
        a = normalize("Failed to process user 3f9a8b7c6d5e4f30, retry 1", PATTERN_KEY_LENGTH)
        b = normalize(
            "Failed to process user 11112222333344445555, retry 42", PATTERN_KEY_LENGTH
        )

        assert a == b
        assert a == "Failed to process user [ID], retry [N]"

    def test_mixed_alphanumeric_session_ids_collapse(self):
        a = normalize("Token validation failed for session abc123", ERROR_KEY_LENGTH)
        b = normalize("Token validation failed for session xyz789", ERROR_KEY_LENGTH)

        assert a == b == "Token validation failed for session [ID]"

    def test_prefixed_ids_collapse_regardless_of_prefix(self):
        user = normalize("Lookup failed for user123", GROUP_KEY_LENGTH)
        other_user = normalize("Lookup failed for user98765", GROUP_KEY_LENGTH)
        order = normalize("Lookup failed for order456", GROUP_KEY_LENGTH)

        assert user == other_user == order == "Lookup failed for [ID]"

    def test_versioned_words_treated_as_ids(self):
        result = normalize("Negotiated HTTP2 with sha256 digest", GROUP_KEY_LENGTH)

        assert result == "Negotiated [ID] with [ID] digest"

    def test_timestamp_replaced(self):
        result = normalize("Job started at 2024-01-15T10:30:00.123Z", GROUP_KEY_LENGTH)
        assert result == "Job started at [TIMESTAMP]"

    def test_date_only_timestamp_replaced(self):
        assert normalize("Report for 2024-01-15", GROUP_KEY_LENGTH) == "Report for [TIMESTAMP]"

    def test_ipv4_replaced(self):
        result = normalize("Connection refused from 192.168.1.50", GROUP_KEY_LENGTH)
        assert result == "Connection refused from [IP]"

    def test_plain_numbers_replaced(self):
        result = normalize("Request took 350 ms with status 500", GROUP_KEY_LENGTH)
        assert result == "Request took [N] ms with status [N]"

    def test_plain_words_untouched(self):
        assert normalize("Cache warmed successfully", GROUP_KEY_LENGTH) == (
            "Cache warmed successfully"
        )

    def test_truncated_to_max_length(self):
        result = normalize("x" * 200, PATTERN_KEY_LENGTH)
        assert len(result) == PATTERN_KEY_LENGTH

    def test_empty_message(self):
        assert normalize("", PATTERN_KEY_LENGTH) == ""


class TestFirstWords:
    def test_takes_leading_words(self):
        assert first_words("Token validation failed for session", 3) == (
            "Token validation failed"
        )

    def test_shorter_text_returned_whole(self):
        assert first_words("timeout", 3) == "timeout"
