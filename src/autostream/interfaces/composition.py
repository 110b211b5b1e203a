"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, cast
from urllib.parse import urlparse

import httpx
import structlog
from fastapi import FastAPI

from autostream.application.use_cases.stremio_stream import StremioStreamUseCase
from autostream.infrastructure.cinemeta.client import HttpxCinemetaClient
from autostream.infrastructure.stremio.downgrade_policy import (
    DowngradePolicy,
    is_debrid_source,
)
from autostream.infrastructure.stremio.stream_converter import (
    convert_streams,
    normalize_for_player,
)
from autostream.infrastructure.stremio.stream_sorter import StreamSorter
from autostream.infrastructure.upstream.client import HttpxUpstreamClient
from autostream.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


def _hosts(urls: list[str]) -> list[str]:
    # Source URLs may embed debrid API keys; only hosts are logged.
    return [urlparse(u).hostname or "unknown" for u in urls]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan Hook: Initialize and cleanup all resources (DI Composition Root).

    Order matters:
        1. HTTP Client (shared by upstream and title lookup)
        2. Upstream client
        3. Title lookup (Cinemeta)
        4. Stream use case (ranking + downgrade policy)
    """
    state = cast(AppState, app.state)
    config = state.config

    # 1) HTTP client
    state.http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(config.upstream_timeout_seconds),
        headers={"User-Agent": config.http_user_agent},
        follow_redirects=True,
    )
    log.info("http_client_initialized", user_agent=config.http_user_agent)

    # 2) Upstream addons
    state.upstream_client = HttpxUpstreamClient(
        http_client=state.http_client,
        timeout_seconds=config.upstream_timeout_seconds,
    )

    # 3) Display names
    state.title_lookup = HttpxCinemetaClient(
        http_client=state.http_client,
        base_url=config.cinemeta_base_url,
        timeout_seconds=config.cinemeta_timeout_seconds,
    )

    # 4) Stream selection
    state.stremio_stream_uc = StremioStreamUseCase(
        upstream=state.upstream_client,
        titles=state.title_lookup,
        config=config,
        sorter=StreamSorter(config.ranking),
        policy=DowngradePolicy(),
        convert_fn=convert_streams,
        normalize_fn=normalize_for_player,
        is_debrid_fn=is_debrid_source,
    )

    log.info(
        "app_startup_complete",
        sources=_hosts(config.sources),
        fallback_sources=_hosts(config.fallback_sources),
        prefer_lower_quality=config.prefer_lower_quality.model_dump(),
    )

    try:
        yield
    finally:
        await state.http_client.aclose()
        log.info("http_client_closed")

        log.info("app_shutdown_complete")
