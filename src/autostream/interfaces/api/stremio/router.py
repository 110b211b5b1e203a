"""Stremio addon API endpoints (manifest, stream).

Every route exists twice: at the root and below ``/u/{cfg}``, where
``cfg`` is the per-user token produced by the configure page. The root
stream route also accepts the token as ``?cfg=``.
"""

from __future__ import annotations

from typing import Any, cast

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from autostream.domain.entities.stremio import (
    StremioContentType,
    StremioStreamRequest,
)
from autostream.infrastructure.stremio.user_token import decode_user_config
from autostream.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["stremio"])

ADDON_ID = "org.autostream.best"
ADDON_VERSION = "1.8.2"
ADDON_NAME = "AutoStream"
ADDON_LOGO = (
    "https://raw.githubusercontent.com/keypop3750/autostream-addon/main/logo.png"
)
ADDON_DESCRIPTION = (
    "AutoStream picks the best stream for each title, balancing quality with "
    "speed (seeders). If a lower resolution like 1080p or 720p is much faster "
    "than 4K/2K, it's preferred for smoother playback. You'll usually see one "
    "link; when helpful, a second 1080p option appears. Titles are neat "
    "(e.g., “Movie Name — 1080p”)."
)

_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "*",
}


def build_manifest() -> dict[str, Any]:
    """Build the Stremio addon manifest."""
    return {
        "id": ADDON_ID,
        "version": ADDON_VERSION,
        "name": ADDON_NAME,
        "description": ADDON_DESCRIPTION,
        "logo": ADDON_LOGO,
        "resources": ["stream"],
        "types": ["movie", "series"],
        "catalogs": [],
        "idPrefixes": ["tt"],
        "behaviorHints": {
            "configurable": True,
            "configurationRequired": False,
        },
    }


def _parse_stream_id(content_type: str, raw_id: str) -> StremioStreamRequest | None:
    """Parse a Stremio stream ID into a StremioStreamRequest.

    Movies: "tt1234567"
    Series: "tt1234567:1:5" (season 1, episode 5)

    Series ids without a usable season/episode are still served; the
    raw id is what gets forwarded upstream.
    """
    if content_type not in ("movie", "series"):
        return None
    if not raw_id.startswith("tt"):
        return None

    ct: StremioContentType = cast(StremioContentType, content_type)
    parts = raw_id.split(":")
    imdb_id = parts[0]

    if ct == "series" and len(parts) == 3:
        try:
            season = int(parts[1])
            episode = int(parts[2])
        except ValueError:
            return StremioStreamRequest(
                stream_id=raw_id, imdb_id=imdb_id, content_type=ct
            )
        return StremioStreamRequest(
            stream_id=raw_id,
            imdb_id=imdb_id,
            content_type=ct,
            season=season,
            episode=episode,
        )

    return StremioStreamRequest(stream_id=raw_id, imdb_id=imdb_id, content_type=ct)


@router.get("/manifest.json")
@router.get("/u/{cfg}/manifest.json")
async def stremio_manifest() -> JSONResponse:
    """Serve the Stremio addon manifest."""
    return JSONResponse(content=build_manifest(), headers=_CORS_HEADERS)


@router.get("/stream/{content_type}/{stream_id}.json")
@router.get("/u/{cfg}/stream/{content_type}/{stream_id}.json")
async def stremio_stream(
    request: Request,
    content_type: str,
    stream_id: str,
    cfg: str | None = None,
) -> JSONResponse:
    """Return the curated streams (at most two) for a movie or episode.

    Always answers 200; failures degrade to an empty stream list.
    """
    state = cast(AppState, request.app.state)

    parsed = _parse_stream_id(content_type, stream_id)
    if parsed is None:
        log.debug(
            "stremio_stream_id_rejected",
            content_type=content_type,
            stream_id=stream_id,
        )
        return JSONResponse(content={"streams": []}, headers=_CORS_HEADERS)

    user = decode_user_config(cfg)

    log.info(
        "stremio_stream_request",
        imdb_id=parsed.imdb_id,
        content_type=parsed.content_type,
        season=parsed.season,
        episode=parsed.episode,
        custom_source=user.custom_source is not None,
    )

    use_case = getattr(state, "stremio_stream_uc", None)
    if use_case is None:
        log.warning("stremio_use_case_unavailable")
        return JSONResponse(content={"streams": []}, headers=_CORS_HEADERS)

    try:
        entries = await use_case.execute(parsed, user=user)
    except Exception:
        log.error("stremio_stream_unhandled", stream_id=stream_id, exc_info=True)
        entries = []

    streams = [entry.stream for entry in entries]
    log.info(
        "stremio_stream_response",
        imdb_id=parsed.imdb_id,
        streams_returned=len(streams),
    )
    return JSONResponse(content={"streams": streams}, headers=_CORS_HEADERS)
