"""End-to-end tests for the AutoStream addon.

Tests the full request-response cycle through:
    HTTP Request -> FastAPI Router -> Use Case -> upstream/Cinemeta (respx)
    -> JSON Response

The real application factory and lifespan are used; only outbound HTTP
is mocked.

Endpoints covered:
    GET /manifest.json
    GET /stream/{type}/{id}.json
    GET /u/{cfg}/stream/{type}/{id}.json
    POST /configure -> GET /u/{cfg}/manifest.json
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import httpx
import pytest
import respx
from fastapi.testclient import TestClient

from autostream.infrastructure.config import AppConfig
from autostream.interfaces.app import create_app

pytestmark = pytest.mark.e2e

_PRIMARY = "https://primary.example.com"
_FALLBACK = "https://fallback.example.com"
_CINEMETA = "https://v3-cinemeta.strem.io"


def _record(tag: str, seeders: int) -> dict[str, Any]:
    return {
        "name": "Upstream",
        "title": f"The.Matrix.1999.{tag}.WEB\n👤 {seeders}",
        "url": f"https://cdn.example.com/matrix-{tag}.mkv",
        "seeders": seeders,
    }


def _mock_cinemeta(router: respx.MockRouter, *, status_code: int = 200) -> None:
    route = router.get(f"{_CINEMETA}/meta/movie/tt0133093.json")
    if status_code == 200:
        route.respond(json={"meta": {"name": "The Matrix"}})
    else:
        route.respond(status_code=status_code)


@pytest.fixture()
def mock_router() -> Iterator[respx.MockRouter]:
    with respx.mock(assert_all_called=False) as router:
        yield router


@pytest.fixture()
def client(mock_router: respx.MockRouter) -> Iterator[TestClient]:
    config = AppConfig(sources=[_PRIMARY], fallback_sources=[_FALLBACK])
    with TestClient(create_app(config)) as test_client:
        yield test_client


# ---------------------------------------------------------------------------
# Stream selection
# ---------------------------------------------------------------------------


class TestStreamEndpoint:
    def test_4k_with_1080p_alternative(
        self, client: TestClient, mock_router: respx.MockRouter
    ) -> None:
        _mock_cinemeta(mock_router)
        mock_router.get(f"{_PRIMARY}/stream/movie/tt0133093.json").respond(
            json={"streams": [_record("2160p", 5), _record("1080p", 400)]}
        )

        resp = client.get("/stream/movie/tt0133093.json")

        assert resp.status_code == 200
        streams = resp.json()["streams"]
        assert [s["title"] for s in streams] == [
            "The Matrix — 4K",
            "The Matrix — 1080p",
        ]
        assert streams[0]["url"] == "https://cdn.example.com/matrix-2160p.mkv"
        assert streams[0]["name"] == "AutoStream"
        assert streams[0]["behaviorHints"]["bingeGroup"] == "tt0133093"
        assert resp.headers["access-control-allow-origin"] == "*"

    def test_much_faster_1080p_wins(
        self, client: TestClient, mock_router: respx.MockRouter
    ) -> None:
        _mock_cinemeta(mock_router)
        mock_router.get(f"{_PRIMARY}/stream/movie/tt0133093.json").respond(
            json={"streams": [_record("2160p", 10), _record("1080p", 3000)]}
        )

        streams = client.get("/stream/movie/tt0133093.json").json()["streams"]

        assert [s["title"] for s in streams] == ["The Matrix — 1080p"]

    def test_fallback_after_failing_primary(
        self, client: TestClient, mock_router: respx.MockRouter
    ) -> None:
        _mock_cinemeta(mock_router)
        mock_router.get(f"{_PRIMARY}/stream/movie/tt0133093.json").respond(
            status_code=502
        )
        mock_router.get(f"{_FALLBACK}/stream/movie/tt0133093.json").respond(
            json={"streams": [_record("720p", 50)]}
        )

        streams = client.get("/stream/movie/tt0133093.json").json()["streams"]

        assert [s["title"] for s in streams] == ["The Matrix — 720p"]

    def test_non_finite_json_treated_as_failed_source(
        self, client: TestClient, mock_router: respx.MockRouter
    ) -> None:
        _mock_cinemeta(mock_router)
        mock_router.get(f"{_PRIMARY}/stream/movie/tt0133093.json").respond(
            content=(
                b'{"streams":[{"title":"M 1080p",'
                b'"url":"https://cdn/b.mkv","seeders":NaN}]}'
            ),
            headers={"Content-Type": "application/json"},
        )
        mock_router.get(f"{_FALLBACK}/stream/movie/tt0133093.json").respond(
            json={"streams": [_record("720p", 50)]}
        )

        resp = client.get("/stream/movie/tt0133093.json")

        assert resp.status_code == 200
        assert [s["title"] for s in resp.json()["streams"]] == ["The Matrix — 720p"]

    def test_malformed_behavior_hints_keep_results(
        self, client: TestClient, mock_router: respx.MockRouter
    ) -> None:
        _mock_cinemeta(mock_router)
        broken = {**_record("2160p", 5), "behaviorHints": "x"}
        mock_router.get(f"{_PRIMARY}/stream/movie/tt0133093.json").respond(
            json={"streams": [broken, _record("1080p", 400)]}
        )

        resp = client.get("/stream/movie/tt0133093.json")

        assert resp.status_code == 200
        assert len(resp.json()["streams"]) == 2

    def test_everything_down_is_empty(
        self, client: TestClient, mock_router: respx.MockRouter
    ) -> None:
        _mock_cinemeta(mock_router)
        mock_router.get(f"{_PRIMARY}/stream/movie/tt0133093.json").mock(
            side_effect=httpx.ConnectError("down")
        )
        mock_router.get(f"{_FALLBACK}/stream/movie/tt0133093.json").respond(
            json={"streams": []}
        )

        resp = client.get("/stream/movie/tt0133093.json")

        assert resp.status_code == 200
        assert resp.json() == {"streams": []}

    def test_cinemeta_down_uses_raw_id(
        self, client: TestClient, mock_router: respx.MockRouter
    ) -> None:
        _mock_cinemeta(mock_router, status_code=500)
        mock_router.get(f"{_PRIMARY}/stream/movie/tt0133093.json").respond(
            json={"streams": [_record("1080p", 10)]}
        )

        streams = client.get("/stream/movie/tt0133093.json").json()["streams"]

        assert [s["title"] for s in streams] == ["tt0133093 — 1080p"]


# ---------------------------------------------------------------------------
# Configure -> install -> stream
# ---------------------------------------------------------------------------


class TestConfiguredInstall:
    def test_token_routes_to_debrid_source(
        self, client: TestClient, mock_router: respx.MockRouter
    ) -> None:
        _mock_cinemeta(mock_router)
        page = client.post(
            "/configure", data={"provider": "AllDebrid", "apikey": "SECRET"}
        ).text
        manifest_url = page[page.index("<code>") + 6 : page.index("</code>")]
        base = manifest_url.removesuffix("/manifest.json").removeprefix(
            "http://testserver"
        )

        manifest = client.get(f"{base}/manifest.json")
        assert manifest.json()["id"] == "org.autostream.best"

        debrid = mock_router.route(
            method="GET",
            host="torrentio.strem.fun",
            path__regex=r".*/stream/movie/tt0133093\.json$",
        ).respond(json={"streams": [_record("1080p", 20)]})
        mock_router.get(f"{_PRIMARY}/stream/movie/tt0133093.json").respond(
            json={"streams": []}
        )

        streams = client.get(f"{base}/stream/movie/tt0133093.json").json()["streams"]

        assert debrid.called
        assert [s["title"] for s in streams] == ["The Matrix — 1080p"]
