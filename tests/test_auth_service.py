"""
Tests for login (token generation), base URL setup and auth context helpers.
"""
import httpx
import pytest

from erp_session import (
    MissingCredentialsError,
    SessionExpiredError,
    StorageKeys,
    TokenGenerationError,
    TokenPair,
    build_headers,
    configure_base_url,
    generate_token,
    get_auth_context,
)
from erp_session.auth_service import describe_http_error
from tests.fixtures.erp_backend import BASE_URL, TOKEN_URL, reply


class TestGenerateToken:
    @pytest.mark.asyncio
    async def test_stores_issued_tokens(self, backend, client, store):
        backend.route(
            "POST",
            TOKEN_URL,
            reply(200, {"data": {"access_token": "A-1", "refresh_token": "R-1"}}),
        )

        pair = await generate_token(client, "key", "app", "secret")

        assert pair == TokenPair("A-1", "R-1")
        assert await store.get(StorageKeys.ACCESS_TOKEN) == "A-1"
        assert await store.get(StorageKeys.REFRESH_TOKEN) == "R-1"

    @pytest.mark.asyncio
    async def test_sends_credentials_as_form_without_bearer(self, backend, client):
        backend.route("POST", TOKEN_URL, reply(200, {"data": {"access_token": "A-1"}}))

        await generate_token(client, "key", "app", "secret")

        (call,) = backend.calls("POST", TOKEN_URL)
        assert "Authorization" not in call.headers
        assert call.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert call.content == b"api_key=key&app_key=app&api_secret=secret"

    @pytest.mark.asyncio
    async def test_login_resets_refresh_failure_count(self, backend, client, session):
        session.coordinator._consecutive_failures = 2
        backend.route("POST", TOKEN_URL, reply(200, {"data": {"access_token": "A-1"}}))

        await generate_token(client, "key", "app", "secret")

        assert session.coordinator.consecutive_failures == 0

    @pytest.mark.asyncio
    async def test_missing_base_url(self, backend, client, store):
        await store.remove(StorageKeys.BASE_URL)

        with pytest.raises(MissingCredentialsError, match="scan QR code"):
            await generate_token(client, "key", "app", "secret")

        assert backend.requests == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{"data": {}}, {"message": "ok"}, None])
    async def test_no_token_in_response(self, backend, client, store, body):
        backend.route("POST", TOKEN_URL, reply(200, body))

        with pytest.raises(TokenGenerationError, match="Token not returned"):
            await generate_token(client, "key", "app", "secret")

        assert await store.get(StorageKeys.ACCESS_TOKEN) == "token-123"

    @pytest.mark.asyncio
    async def test_bad_credentials_do_not_trigger_refresh(self, backend, client):
        backend.route("POST", TOKEN_URL, reply(401, {"message": "Invalid API key"}))

        with pytest.raises(httpx.HTTPStatusError) as exc:
            await generate_token(client, "key", "app", "wrong")

        assert describe_http_error(exc.value) == "HTTP 401: Invalid API key"
        assert backend.refresh_calls == []


class TestSessionHelpers:
    @pytest.mark.asyncio
    async def test_configure_base_url_cleans_input(self, session, store):
        stored = await configure_base_url(session, " https://erp.example.com/\n")

        assert stored == "https://erp.example.com"
        assert await store.get(StorageKeys.BASE_URL) == "https://erp.example.com"

    @pytest.mark.asyncio
    async def test_get_auth_context(self, session, store):
        await store.set(StorageKeys.EMPLOYEE_CODE, "EMP-0001")

        context = await get_auth_context(session)

        assert context.base_url == BASE_URL
        assert context.token == "token-123"
        assert context.employee_code == "EMP-0001"

    @pytest.mark.asyncio
    async def test_get_auth_context_without_token(self, session):
        await session.sign_out()

        with pytest.raises(SessionExpiredError, match="Session expired"):
            await get_auth_context(session)

    def test_build_headers(self):
        assert build_headers("abc") == {
            "Authorization": "Bearer abc",
            "Content-Type": "application/json",
        }
        assert build_headers("abc", "multipart/form-data")["Content-Type"] == (
            "multipart/form-data"
        )

    def test_describe_network_error(self):
        error = httpx.ConnectError("connection refused")

        assert describe_http_error(error) == "connection refused"
