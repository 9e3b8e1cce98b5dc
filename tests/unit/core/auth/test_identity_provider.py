"""Tests for the identity provider client and its configuration."""

import base64
import json

import httpx
import pytest

from chatgate.core.auth import (
    IdentityClientHandle,
    IdentityProviderClient,
    IdentityProviderConfig,
    IdentityProviderError,
    close_identity_client,
    decode_session_cookie,
    get_identity_client,
    get_identity_config,
)
from chatgate.core.exceptions import ConfigurationError

COOKIE = "sb-abcdefgh-auth-token"


def _b64(value) -> str:
    raw = json.dumps(value).encode("utf-8")
    return "base64-" + base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _config(**kwargs):
    defaults = {"url": "https://abcdefgh.supabase.co", "anon_key": "anon-key"}
    defaults.update(kwargs)
    return IdentityProviderConfig(**defaults)


def _client(handler, config=None):
    config = config or _config()
    http = httpx.AsyncClient(base_url=config.url, transport=httpx.MockTransport(handler))
    return IdentityProviderClient(config, http_client=http)


class TestIdentityProviderConfig:
    """Tests for provider configuration."""

    def test_from_env(self, identity_env):
        config = get_identity_config()

        assert config.url == "https://abcdefgh.supabase.co"
        assert config.anon_key == "anon-key"
        assert config.timeout_seconds == 10.0

    def test_legacy_aliases(self, clean_identity_env, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "https://legacy.supabase.co/")
        monkeypatch.setenv("SUPABASE_ANON_KEY", "legacy-key")

        config = IdentityProviderConfig()

        assert config.url == "https://legacy.supabase.co"
        assert config.anon_key == "legacy-key"

    def test_require_missing_url(self, clean_identity_env):
        with pytest.raises(ConfigurationError) as exc_info:
            IdentityProviderConfig().require()
        assert exc_info.value.setting == "IDENTITY_PROVIDER_URL"

    def test_require_missing_key(self, clean_identity_env):
        with pytest.raises(ConfigurationError) as exc_info:
            IdentityProviderConfig(url="https://x.supabase.co").require()
        assert exc_info.value.setting == "IDENTITY_PROVIDER_ANON_KEY"

    def test_cookie_name_derived_from_host(self):
        assert _config().resolved_session_cookie_name == COOKIE

    def test_cookie_name_for_local_url(self):
        config = _config(url="http://localhost:54321", session_cookie_name=None)
        assert config.resolved_session_cookie_name == "sb-localhost-auth-token"

    def test_cookie_name_override(self):
        config = _config(session_cookie_name="my-session")
        assert config.resolved_session_cookie_name == "my-session"


class TestDecodeSessionCookie:
    """Tests for provider session cookie decoding."""

    def test_plain_session_object(self):
        cookies = {COOKIE: json.dumps({"access_token": "tok", "refresh_token": "r"})}
        assert decode_session_cookie(cookies, COOKIE) == "tok"

    def test_base64_session_object(self):
        cookies = {COOKIE: _b64({"access_token": "tok"})}
        assert decode_session_cookie(cookies, COOKIE) == "tok"

    def test_legacy_array(self):
        cookies = {COOKIE: json.dumps(["tok", "refresh", None])}
        assert decode_session_cookie(cookies, COOKIE) == "tok"

    def test_chunked_cookie(self):
        value = _b64({"access_token": "chunked-token", "user": {"id": "u1"}})
        middle = len(value) // 2
        cookies = {f"{COOKIE}.0": value[:middle], f"{COOKIE}.1": value[middle:]}

        assert decode_session_cookie(cookies, COOKIE) == "chunked-token"

    def test_chunks_stop_at_gap(self):
        cookies = {f"{COOKIE}.0": '{"access_token": "a"}', f"{COOKIE}.2": "ignored"}
        assert decode_session_cookie(cookies, COOKIE) == "a"

    @pytest.mark.parametrize(
        "value",
        ["", "not-json", "base64-%%%", "[]", '{"user": {}}', '{"access_token": 42}'],
    )
    def test_undecodable(self, value):
        assert decode_session_cookie({COOKIE: value}, COOKIE) is None

    def test_missing(self):
        assert decode_session_cookie({"other": "x"}, COOKIE) is None


class TestIdentityProviderClient:
    """Tests for the provider HTTP client."""

    @pytest.mark.asyncio
    async def test_get_user(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["auth"] = request.headers["authorization"]
            seen["apikey"] = request.headers["apikey"]
            return httpx.Response(200, json={"id": "user-1", "email": "a@example.com"})

        client = _client(handler)
        user = await client.get_user("tok")

        assert user["id"] == "user-1"
        assert seen == {"path": "/auth/v1/user", "auth": "Bearer tok", "apikey": "anon-key"}
        await client.aclose()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403, 500])
    async def test_rejection(self, status):
        client = _client(lambda request: httpx.Response(status, json={"msg": "bad"}))

        with pytest.raises(IdentityProviderError) as exc_info:
            await client.get_user("tok")

        assert exc_info.value.status_code == status

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        client = _client(lambda request: httpx.Response(200, content=b"<html>"))

        with pytest.raises(IdentityProviderError):
            await client.get_user("tok")

    @pytest.mark.asyncio
    async def test_body_without_id(self):
        client = _client(lambda request: httpx.Response(200, json={"email": "a@example.com"}))

        with pytest.raises(IdentityProviderError):
            await client.get_user("tok")

    @pytest.mark.asyncio
    async def test_transport_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = _client(handler)

        with pytest.raises(IdentityProviderError) as exc_info:
            await client.get_user("tok")
        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_user_from_session_cookies(self):
        def handler(request):
            assert request.headers["authorization"] == "Bearer cookie-token"
            return httpx.Response(200, json={"id": "user-2"})

        client = _client(handler)
        user = await client.get_user_from_session_cookies(
            {COOKIE: _b64({"access_token": "cookie-token"})}
        )

        assert user["id"] == "user-2"

    @pytest.mark.asyncio
    async def test_no_session_cookie(self):
        def handler(request):
            raise AssertionError("provider must not be called")

        client = _client(handler)
        assert await client.get_user_from_session_cookies({}) is None

    def test_unconfigured_client_raises(self, clean_identity_env):
        with pytest.raises(ConfigurationError):
            IdentityProviderClient(IdentityProviderConfig())


class TestIdentityClientHandle:
    """Tests for the shared client handle."""

    def test_shared_client(self, identity_env):
        assert get_identity_client() is get_identity_client()

    def test_unconfigured_raises_and_retries(self, clean_identity_env, monkeypatch):
        with pytest.raises(ConfigurationError):
            get_identity_client()
        assert IdentityClientHandle.peek_instance() is None

        monkeypatch.setenv("IDENTITY_PROVIDER_URL", "https://abcdefgh.supabase.co")
        monkeypatch.setenv("IDENTITY_PROVIDER_ANON_KEY", "anon-key")
        from chatgate.core.auth import reset_identity_config
        reset_identity_config()

        assert get_identity_client().config.url == "https://abcdefgh.supabase.co"

    @pytest.mark.asyncio
    async def test_close(self, identity_env):
        get_identity_client()

        await close_identity_client()

        assert IdentityClientHandle.peek_instance() is None
