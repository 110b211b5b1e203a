"""Tests for HttpxUpstreamClient (upstream Stremio addon adapter)."""

from __future__ import annotations

import httpx
import pytest
import respx

from autostream.domain.exceptions import UpstreamError
from autostream.infrastructure.upstream.client import HttpxUpstreamClient

_BASE = "https://torrentio.strem.fun"

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient()


@pytest.fixture()
def client(http_client: httpx.AsyncClient) -> HttpxUpstreamClient:
    return HttpxUpstreamClient(http_client=http_client, timeout_seconds=5.0)


# ---------------------------------------------------------------------------
# stream_url
# ---------------------------------------------------------------------------


class TestStreamUrl:
    def test_movie(self) -> None:
        assert HttpxUpstreamClient.stream_url(_BASE, "movie", "tt0133093") == (
            f"{_BASE}/stream/movie/tt0133093.json"
        )

    def test_episode_colons_are_quoted(self) -> None:
        assert HttpxUpstreamClient.stream_url(_BASE, "series", "tt0903747:1:2") == (
            f"{_BASE}/stream/series/tt0903747%3A1%3A2.json"
        )

    def test_debrid_base_kept_verbatim(self) -> None:
        base = f"{_BASE}/alldebrid|apikey=K"
        url = HttpxUpstreamClient.stream_url(base, "movie", "tt1")
        assert url == f"{base}/stream/movie/tt1.json"


# ---------------------------------------------------------------------------
# fetch_streams
# ---------------------------------------------------------------------------


class TestFetchStreams:
    @respx.mock
    @pytest.mark.asyncio()
    async def test_returns_stream_records(self, client: HttpxUpstreamClient) -> None:
        route = respx.get(f"{_BASE}/stream/movie/tt0133093.json").respond(
            json={"streams": [{"title": "A 1080p"}, {"title": "B 720p"}]}
        )

        records = await client.fetch_streams(_BASE, "movie", "tt0133093")

        assert records == [{"title": "A 1080p"}, {"title": "B 720p"}]
        assert route.called
        assert route.calls.last.request.headers["Accept"] == "application/json"

    @respx.mock
    @pytest.mark.asyncio()
    async def test_non_dict_entries_skipped(self, client: HttpxUpstreamClient) -> None:
        respx.get(f"{_BASE}/stream/movie/tt1.json").respond(
            json={"streams": [{"title": "A"}, "junk", None, 3]}
        )

        assert await client.fetch_streams(_BASE, "movie", "tt1") == [{"title": "A"}]

    @respx.mock
    @pytest.mark.asyncio()
    async def test_missing_streams_key(self, client: HttpxUpstreamClient) -> None:
        respx.get(f"{_BASE}/stream/movie/tt1.json").respond(json={"other": 1})

        assert await client.fetch_streams(_BASE, "movie", "tt1") == []

    @respx.mock
    @pytest.mark.asyncio()
    async def test_streams_not_a_list(self, client: HttpxUpstreamClient) -> None:
        respx.get(f"{_BASE}/stream/movie/tt1.json").respond(json={"streams": "x"})

        assert await client.fetch_streams(_BASE, "movie", "tt1") == []

    @respx.mock
    @pytest.mark.asyncio()
    async def test_http_error_status_raises(self, client: HttpxUpstreamClient) -> None:
        respx.get(f"{_BASE}/stream/movie/tt1.json").respond(status_code=503)

        with pytest.raises(UpstreamError) as exc_info:
            await client.fetch_streams(_BASE, "movie", "tt1")

        assert exc_info.value.source == _BASE
        assert exc_info.value.reason == "status 503"

    @respx.mock
    @pytest.mark.asyncio()
    async def test_invalid_json_raises(self, client: HttpxUpstreamClient) -> None:
        respx.get(f"{_BASE}/stream/movie/tt1.json").respond(text="<html>oops</html>")

        with pytest.raises(UpstreamError, match="invalid JSON"):
            await client.fetch_streams(_BASE, "movie", "tt1")

    @respx.mock
    @pytest.mark.asyncio()
    @pytest.mark.parametrize("constant", ["NaN", "Infinity", "-Infinity"])
    async def test_non_finite_constants_rejected(
        self, client: HttpxUpstreamClient, constant: str
    ) -> None:
        body = '{"streams": [{"url": "https://cdn/a.mkv", "seeders": %s}]}' % constant
        respx.get(f"{_BASE}/stream/movie/tt1.json").respond(
            content=body.encode(), headers={"Content-Type": "application/json"}
        )

        with pytest.raises(UpstreamError, match="invalid JSON"):
            await client.fetch_streams(_BASE, "movie", "tt1")

    @respx.mock
    @pytest.mark.asyncio()
    async def test_timeout_raises(self, client: HttpxUpstreamClient) -> None:
        respx.get(f"{_BASE}/stream/movie/tt1.json").mock(
            side_effect=httpx.ReadTimeout("slow")
        )

        with pytest.raises(UpstreamError) as exc_info:
            await client.fetch_streams(_BASE, "movie", "tt1")

        assert exc_info.value.reason == "timeout"

    @respx.mock
    @pytest.mark.asyncio()
    async def test_connection_error_raises(self, client: HttpxUpstreamClient) -> None:
        respx.get(f"{_BASE}/stream/movie/tt1.json").mock(
            side_effect=httpx.ConnectError("refused")
        )

        with pytest.raises(UpstreamError, match="network error"):
            await client.fetch_streams(_BASE, "movie", "tt1")
