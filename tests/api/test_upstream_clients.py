"""
Tests for the TMDB and Groq clients, the rate limiter and the client factory.

HTTP is never performed: `_make_request` is patched on each client.
"""

from unittest.mock import AsyncMock, patch

import pytest

from flickpick.api.base_client import APIClientError, APIResponseError
from flickpick.api.client_factory import APIClientFactory
from flickpick.api.groq_client import GroqClient
from flickpick.api.rate_limiter import UpstreamRateLimiter
from flickpick.api.tmdb_client import TmdbClient
from flickpick.models.config_models import SystemConfig
from flickpick.models.movie_models import QuerySpec


@pytest.fixture
def tmdb_client():
    return TmdbClient(api_key="test_key", rate_limiter=UpstreamRateLimiter.for_tmdb(1000))


@pytest.fixture
def groq_client():
    return GroqClient(api_key="test_key", rate_limiter=UpstreamRateLimiter.for_groq(1000))


class TestTmdbClient:

    def test_api_key_required(self):
        with pytest.raises(ValueError):
            TmdbClient(api_key="")

    def test_auth_params_drop_none_and_lowercase_bools(self, tmdb_client):
        params = tmdb_client._with_auth({"include_adult": False, "with_genres": None, "page": 3})

        assert params == {"api_key": "test_key", "include_adult": "false", "page": 3}

    @pytest.mark.asyncio
    async def test_discover_movies(self, tmdb_client):
        spec = QuerySpec(bucket="recent", filter_params={"include_adult": True}, page=4)
        with patch.object(tmdb_client, "_make_request", AsyncMock(return_value={"results": [{"id": 1}]})) as request:
            results = await tmdb_client.discover_movies(spec)

        assert results == [{"id": 1}]
        endpoint = request.await_args.args[0]
        params = request.await_args.kwargs["params"]
        assert endpoint == "discover/movie"
        assert params["page"] == 4
        assert params["include_adult"] == "true"
        assert params["api_key"] == "test_key"

    @pytest.mark.asyncio
    async def test_discover_rejects_malformed_payload(self, tmdb_client):
        spec = QuerySpec(bucket="recent", filter_params={})
        with patch.object(tmdb_client, "_make_request", AsyncMock(return_value={"page": 1})):
            with pytest.raises(APIResponseError):
                await tmdb_client.discover_movies(spec)

    @pytest.mark.asyncio
    async def test_discover_requires_open_session(self, tmdb_client):
        spec = QuerySpec(bucket="recent", filter_params={})

        with pytest.raises(APIClientError):
            await tmdb_client.discover_movies(spec)

    @pytest.mark.asyncio
    async def test_trailer_picks_first_youtube_trailer(self, tmdb_client):
        videos = {"results": [
            {"type": "Teaser", "site": "YouTube", "key": "teaser"},
            {"type": "Trailer", "site": "Vimeo", "key": "vimeo"},
            {"type": "Trailer", "site": "YouTube", "key": "abc123"},
            {"type": "Trailer", "site": "YouTube", "key": "later"},
        ]}
        with patch.object(tmdb_client, "_make_request", AsyncMock(return_value=videos)):
            url = await tmdb_client.get_trailer_url(550)

        assert url == "https://www.youtube.com/watch?v=abc123"

    @pytest.mark.asyncio
    async def test_trailer_failure_returns_none(self, tmdb_client):
        failing = AsyncMock(side_effect=APIResponseError("TMDB", "not found", 404))
        with patch.object(tmdb_client, "_make_request", failing):
            assert await tmdb_client.get_trailer_url(1) is None

    def test_error_body_detection(self, tmdb_client):
        assert tmdb_client._extract_api_error({"success": False, "status_message": "Invalid API key"}) == "Invalid API key"
        assert tmdb_client._extract_api_error({"results": []}) is None


class TestGroqClient:

    @pytest.mark.asyncio
    async def test_complete_chat(self, groq_client):
        payload = {"choices": [{"message": {"role": "assistant", "content": "  Watch Heat.  "}}]}
        with patch.object(groq_client, "_make_request", AsyncMock(return_value=payload)) as request:
            reply = await groq_client.complete_chat([{"role": "user", "content": "hi"}], temperature=0.5)

        assert reply == "Watch Heat."
        kwargs = request.await_args.kwargs
        assert kwargs["method"] == "POST"
        assert kwargs["headers"] == {"Authorization": "Bearer test_key"}
        assert kwargs["json_body"]["model"] == "llama-3.3-70b-versatile"
        assert kwargs["json_body"]["temperature"] == 0.5

    @pytest.mark.asyncio
    async def test_no_choices_gives_empty_reply(self, groq_client):
        with patch.object(groq_client, "_make_request", AsyncMock(return_value={"choices": []})):
            assert await groq_client.complete_chat([]) == ""

    def test_error_body_detection(self, groq_client):
        assert groq_client._extract_api_error({"error": {"message": "rate limited"}}) == "rate limited"
        assert groq_client._extract_api_error({"choices": []}) is None


class TestRateLimiter:

    @pytest.mark.asyncio
    async def test_burst_within_capacity_does_not_wait(self):
        limiter = UpstreamRateLimiter(calls_per_second=10, burst_size=5)
        with patch("flickpick.api.rate_limiter.asyncio.sleep", AsyncMock()) as sleep:
            for _ in range(5):
                await limiter.wait_if_needed()

        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_usage_reports_minute_window(self):
        limiter = UpstreamRateLimiter.for_groq(30)
        await limiter.wait_if_needed()

        usage = limiter.get_current_usage()

        assert usage["service"] == "Groq"
        assert usage["requests_last_minute"] == 1
        assert usage["calls_per_minute_limit"] == 30


class TestClientFactory:

    def test_missing_keys_give_no_clients(self):
        factory = APIClientFactory(SystemConfig())

        assert factory.create_tmdb_client() is None
        assert factory.create_groq_client() is None

    def test_clients_share_rate_limiter(self):
        factory = APIClientFactory(SystemConfig(tmdb_api_key="k", groq_api_key="g"))

        first = factory.create_tmdb_client()
        second = factory.create_tmdb_client()
        groq = factory.create_groq_client()

        assert first.rate_limiter is second.rate_limiter
        assert groq.model == "llama-3.3-70b-versatile"
        assert set(factory.get_rate_limiter_stats()) == {"tmdb_40.0", "groq_30"}
