"""Upstream Stremio addon client — async httpx implementation."""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import quote, urlparse

import httpx
import structlog

from autostream.domain.exceptions import UpstreamError

log = structlog.get_logger(__name__)


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are not JSON and cannot be written back to the player.
    raise ValueError(f"non-standard JSON constant {name}")


class HttpxUpstreamClient:
    """Queries ``<base>/stream/<type>/<id>.json`` on another Stremio addon.

    Implements ``UpstreamClientPort`` from domain.ports.upstream.
    Every failure surfaces as ``UpstreamError``; the caller decides
    whether to skip the source.
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        timeout_seconds: float,
    ) -> None:
        self._http = http_client
        self._timeout = timeout_seconds

    @staticmethod
    def stream_url(base_url: str, content_type: str, stream_id: str) -> str:
        return (
            f"{base_url}/stream/{quote(content_type, safe='')}"
            f"/{quote(stream_id, safe='')}.json"
        )

    async def fetch_streams(
        self, base_url: str, content_type: str, stream_id: str
    ) -> list[dict[str, Any]]:
        url = self.stream_url(base_url, content_type, stream_id)
        try:
            resp = await self._http.get(
                url,
                headers={"Accept": "application/json"},
                timeout=self._timeout,
            )
        except httpx.TimeoutException as exc:
            raise UpstreamError(base_url, "timeout") from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(base_url, f"network error: {exc}") from exc

        if not resp.is_success:
            raise UpstreamError(base_url, f"status {resp.status_code}")

        try:
            data = json.loads(resp.content, parse_constant=_reject_constant)
        except ValueError as exc:
            raise UpstreamError(base_url, "invalid JSON") from exc

        streams = data.get("streams") if isinstance(data, dict) else None
        if not isinstance(streams, list):
            log.debug("upstream_no_stream_list", source=urlparse(base_url).hostname)
            return []

        records = [s for s in streams if isinstance(s, dict)]
        log.debug(
            "upstream_fetch_complete",
            source=urlparse(base_url).hostname,
            stream_count=len(records),
        )
        return records
