"""Tests for the provider userinfo lookup, against httpx.MockTransport.

Run with: pytest tests/test_oauth_userinfo.py -v
"""

import asyncio

import httpx
import pytest

from activityhub.errors import AuthError
from activityhub.integrations.oauth_userinfo import fetch_profile


def _fetch(provider, token, handler):
    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await fetch_profile(provider, token, client=client)

    return asyncio.run(run())


class TestProviders:
    def test_google(self):
        def handler(request):
            assert request.headers["Authorization"] == "Bearer g-token"
            return httpx.Response(
                200,
                json={"sub": "1234", "email": "ana@example.com", "name": "Ana", "picture": "https://img/ana.png"},
            )

        profile = _fetch("google", "g-token", handler)

        assert profile.provider == "google"
        assert profile.provider_account_id == "1234"
        assert profile.email == "ana@example.com"
        assert profile.image == "https://img/ana.png"

    def test_github_falls_back_to_primary_verified_email(self):
        def handler(request):
            if request.url.path == "/user":
                return httpx.Response(200, json={"id": 42, "login": "octo", "name": None, "email": None})
            assert request.url.path == "/user/emails"
            return httpx.Response(
                200,
                json=[
                    {"email": "old@example.com", "primary": False, "verified": True},
                    {"email": "octo@example.com", "primary": True, "verified": True},
                ],
            )

        profile = _fetch("github", "gh-token", handler)

        assert profile.provider_account_id == "42"
        assert profile.name == "octo"
        assert profile.email == "octo@example.com"

    def test_github_without_any_usable_email(self):
        def handler(request):
            if request.url.path == "/user":
                return httpx.Response(200, json={"id": 7, "login": "ghost", "email": None})
            return httpx.Response(200, json=[{"email": "x@example.com", "primary": True, "verified": False}])

        assert _fetch("github", "t", handler).email is None

    def test_facebook_sends_token_as_query_parameter(self):
        def handler(request):
            assert request.url.params["access_token"] == "fb-token"
            assert "email" in request.url.params["fields"]
            return httpx.Response(
                200,
                json={
                    "id": "99",
                    "name": "Fay",
                    "email": "fay@example.com",
                    "picture": {"data": {"url": "https://img/fay.jpg"}},
                },
            )

        profile = _fetch("facebook", "fb-token", handler)

        assert profile.provider_account_id == "99"
        assert profile.image == "https://img/fay.jpg"


class TestFailures:
    def test_rejected_token(self):
        with pytest.raises(AuthError) as exc_info:
            _fetch("google", "expired", lambda request: httpx.Response(401, json={"error": "invalid_token"}))
        assert exc_info.value.code == "InvalidToken"

    def test_provider_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(AuthError) as exc_info:
            _fetch("google", "t", handler)
        assert exc_info.value.code == "ProviderUnavailable"

    def test_missing_account_id(self):
        with pytest.raises(AuthError) as exc_info:
            _fetch("google", "t", lambda request: httpx.Response(200, json={"email": "a@example.com"}))
        assert exc_info.value.code == "InvalidToken"

    def test_unsupported_provider(self):
        with pytest.raises(AuthError) as exc_info:
            asyncio.run(fetch_profile("myspace", "t"))
        assert exc_info.value.code == "UnsupportedProvider"
