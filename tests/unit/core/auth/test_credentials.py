"""Unit tests for bearer credential resolution."""

import pytest

from chatgate.core.auth.credentials import (
    Credential,
    CredentialSource,
    decode_cookie_token,
    extract_bearer_token,
    resolve_credential,
    token_from_authorization,
)


class TestTokenFromAuthorization:
    """Tests for parsing the Authorization header value."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("Bearer abc123", "abc123"),
            ("bearer abc123", "abc123"),
            ("BEARER   abc123  ", "abc123"),
            ("  Bearer\tabc123", "abc123"),
            ("Bearer abc 123", "abc 123"),
        ],
    )
    def test_bearer_values(self, value, expected):
        assert token_from_authorization(value) == expected

    @pytest.mark.parametrize(
        "value",
        [None, "", "Bearer", "Bearer   ", "Basic dXNlcjpwYXNz", "abc123", "Token abc123"],
    )
    def test_non_bearer_values(self, value):
        assert token_from_authorization(value) is None


class TestDecodeCookieToken:
    """Tests for the legacy cookie encodings."""

    def test_json_array_first_element(self):
        assert decode_cookie_token('["abc123"]') == "abc123"

    def test_json_array_with_refresh_token(self):
        assert decode_cookie_token('["access", "refresh", null]') == "access"

    def test_raw_passthrough_on_parse_failure(self):
        assert decode_cookie_token("not-json") == "not-json"

    def test_jwt_like_value_passthrough(self):
        token = "eyJhbGciOiJIUzI1NiJ9.eyJzdWIiOiIxIn0.sig"
        assert decode_cookie_token(token) == token

    def test_malformed_json_array_passthrough(self):
        assert decode_cookie_token('["abc123"') == '["abc123"'

    def test_empty_array_yields_nothing(self):
        assert decode_cookie_token("[]") is None

    def test_array_with_empty_first_element_yields_nothing(self):
        assert decode_cookie_token('["", "refresh"]') is None

    def test_json_object_yields_nothing(self):
        assert decode_cookie_token('{"access_token": "abc"}') is None

    def test_empty_value_yields_nothing(self):
        assert decode_cookie_token("") is None


class TestResolveCredential:
    """Tests for header/cookie precedence."""

    def test_header_wins_over_cookies(self):
        credential = resolve_credential(
            {"Authorization": "Bearer from-header"},
            {"sb-access-token": "from-cookie"},
        )
        assert credential == Credential(token="from-header", source=CredentialSource.HEADER)

    def test_header_name_is_case_insensitive_for_plain_dicts(self):
        credential = resolve_credential({"AUTHORIZATION": "Bearer abc"}, {})
        assert credential.token == "abc"

    def test_malformed_header_falls_back_to_cookie(self):
        credential = resolve_credential(
            {"authorization": "Basic xyz"},
            {"sb-token": "legacy"},
        )
        assert credential.token == "legacy"
        assert credential.source == CredentialSource.LEGACY_TOKEN_COOKIE

    def test_empty_bearer_falls_back_to_cookie(self):
        credential = resolve_credential({"authorization": "Bearer "}, {"sb-access-token": "abc"})
        assert credential.token == "abc"

    def test_cookie_priority_primary_first(self):
        credential = resolve_credential(
            {},
            {
                "supabase-auth-token": '["third"]',
                "sb-token": "second",
                "sb-access-token": "first",
            },
        )
        assert credential.token == "first"
        assert credential.source == CredentialSource.ACCESS_TOKEN_COOKIE

    def test_cookie_priority_legacy_alias_before_third(self):
        credential = resolve_credential(
            {},
            {"supabase-auth-token": '["third"]', "sb-token": "second"},
        )
        assert credential.token == "second"

    def test_third_cookie_json_array(self):
        credential = resolve_credential({}, {"supabase-auth-token": '["abc123"]'})
        assert credential.token == "abc123"
        assert credential.source == CredentialSource.LEGACY_AUTH_TOKEN_COOKIE

    def test_first_present_cookie_decides(self):
        # An empty array in the primary cookie does not fall through to aliases
        credential = resolve_credential({}, {"sb-access-token": "[]", "sb-token": "second"})
        assert credential is None

    def test_no_credential(self):
        assert resolve_credential({}, {}) is None

    def test_unrelated_cookies_ignored(self):
        assert resolve_credential({}, {"session": "x", "admin_session": "y"}) is None

    def test_repr_redacts_token(self):
        credential = Credential(token="secret-token", source=CredentialSource.HEADER)
        assert "secret-token" not in repr(credential)


class TestExtractBearerToken:
    """Tests for the token-only helper."""

    def test_returns_token(self):
        assert extract_bearer_token({}, {"sb-access-token": "not-json"}) == "not-json"

    def test_returns_none(self):
        assert extract_bearer_token({"authorization": "Bearer"}, {}) is None
