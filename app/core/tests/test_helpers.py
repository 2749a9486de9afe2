"""
Tests for core.helpers.
"""

from core.helpers import generate_token, get_query_param


class TestGenerateToken:
    """Tests for generate_token()."""

    def test_default_length_is_64_hex_chars(self):
        token = generate_token()

        assert len(token) == 64
        int(token, 16)

    def test_tokens_are_unique(self):
        assert generate_token(8) != generate_token(8)


class TestGetQueryParam:
    """Tests for get_query_param()."""

    def test_reads_parameter_from_bytes(self):
        scope = {"query_string": b"token=abc&x=1"}

        assert get_query_param(scope, "token") == "abc"

    def test_missing_parameter(self):
        assert get_query_param({"query_string": b"x=1"}, "token") is None
        assert get_query_param({}, "token") is None
