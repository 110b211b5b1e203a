"""Cinemeta metadata client — display names for movies and episodes."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx
import structlog

from autostream.domain.exceptions import TitleLookupError

log = structlog.get_logger(__name__)


class HttpxCinemetaClient:
    """Async Cinemeta client using httpx.

    Implements ``TitleLookupPort`` from domain.ports.title_lookup.
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        base_url: str = "https://v3-cinemeta.strem.io",
        timeout_seconds: float = 5.0,
    ) -> None:
        self._http = http_client
        self._base_url = base_url
        self._timeout = timeout_seconds

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _get_meta(self, content_type: str, imdb_id: str) -> dict[str, Any]:
        url = f"{self._base_url}/meta/{content_type}/{quote(imdb_id, safe='')}.json"
        try:
            resp = await self._http.get(
                url,
                headers={"Accept": "application/json"},
                timeout=self._timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as exc:
            raise TitleLookupError(
                f"Cinemeta {exc.response.status_code} for {imdb_id}"
            ) from exc
        except httpx.HTTPError as exc:
            raise TitleLookupError(f"Cinemeta unreachable for {imdb_id}") from exc
        except ValueError as exc:
            raise TitleLookupError(f"Cinemeta invalid JSON for {imdb_id}") from exc

        meta = data.get("meta") if isinstance(data, dict) else None
        return meta if isinstance(meta, dict) else {}

    @staticmethod
    def _find_episode(
        meta: dict[str, Any], season: str, episode: str
    ) -> dict[str, Any] | None:
        videos = meta.get("videos")
        if not isinstance(videos, list):
            return None
        for video in videos:
            if not isinstance(video, dict) or not video.get("id"):
                continue
            parts = str(video["id"]).split(":")
            if len(parts) >= 3 and parts[1] == season and parts[2] == episode:
                return video
        return None

    # ------------------------------------------------------------------
    # Public API (TitleLookupPort)
    # ------------------------------------------------------------------

    async def get_display_name(self, content_type: str, stream_id: str) -> str:
        """Movie title, or ``"<series> — <episode title>"`` for episodes.

        Episodes without a title in Cinemeta are labelled ``SxxEyy``.
        """
        imdb_id, _, rest = stream_id.partition(":")
        season_str, _, episode_str = rest.partition(":")

        meta = await self._get_meta(content_type, imdb_id)
        title = meta.get("name") or meta.get("title") or imdb_id

        if content_type == "movie" or not season_str or not episode_str:
            return str(title)

        try:
            season = int(season_str)
            episode = int(episode_str)
        except ValueError as exc:
            raise TitleLookupError(f"Malformed episode id: {stream_id}") from exc

        video = self._find_episode(meta, str(season), str(episode))
        ep_title = (video or {}).get("title") or f"S{season:02d}E{episode:02d}"
        return f"{title} — {ep_title}"
