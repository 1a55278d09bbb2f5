"""Tests for client construction and per-request session lifetime"""
import httpx
import pytest

from storefront import config
from storefront.db import backend_timeout, create_user_client
from storefront.routers.deps import get_user_client


class TestUserClient:
    @pytest.mark.asyncio
    async def test_acts_as_the_caller(self):
        client = create_user_client("user-jwt")
        try:
            assert client.session.headers["Authorization"] == "Bearer user-jwt"
            assert client.session.headers["apikey"] == config.SUPABASE_ANON_KEY
            assert str(client.session.base_url).rstrip("/").endswith("/rest/v1")
        finally:
            await client.aclose()

    @pytest.mark.asyncio
    async def test_anonymous_caller_uses_anon_key(self):
        client = create_user_client(None)
        try:
            assert client.session.headers["Authorization"] == f"Bearer {config.SUPABASE_ANON_KEY}"
        finally:
            await client.aclose()

    @pytest.mark.asyncio
    async def test_requests_are_bounded_by_timeout(self):
        client = create_user_client("user-jwt")
        try:
            assert client.session.timeout == httpx.Timeout(config.SUPABASE_TIMEOUT_SECONDS)
        finally:
            await client.aclose()

    def test_timeout_comes_from_config(self, monkeypatch):
        monkeypatch.setattr(config, "SUPABASE_TIMEOUT_SECONDS", 3.5)

        assert backend_timeout() == httpx.Timeout(3.5)

    def test_missing_configuration(self, monkeypatch):
        monkeypatch.setattr(config, "SUPABASE_ANON_KEY", "")

        with pytest.raises(ValueError):
            create_user_client("user-jwt")


class TestUserClientDependency:
    @pytest.mark.asyncio
    async def test_session_closed_when_request_ends(self):
        dependency = get_user_client("user-jwt")
        client = await dependency.__anext__()
        assert not client.session.is_closed

        with pytest.raises(StopAsyncIteration):
            await dependency.__anext__()

        assert client.session.is_closed

    @pytest.mark.asyncio
    async def test_session_closed_when_request_fails(self):
        dependency = get_user_client(None)
        client = await dependency.__anext__()

        with pytest.raises(RuntimeError):
            await dependency.athrow(RuntimeError("handler failed"))

        assert client.session.is_closed
