"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from autostream.infrastructure.config import AppConfig

if TYPE_CHECKING:
    from autostream.application.use_cases.stremio_stream import StremioStreamUseCase
    from autostream.domain.ports import TitleLookupPort, UpstreamClientPort


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    http_client: httpx.AsyncClient

    # Domain Ports
    upstream_client: UpstreamClientPort
    title_lookup: TitleLookupPort

    # Application Services
    stremio_stream_uc: StremioStreamUseCase | None
