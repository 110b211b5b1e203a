"""FastAPI application factory (create_app)."""

from __future__ import annotations

import re
import time
from collections.abc import Awaitable, Callable
from urllib.parse import parse_qsl, urlencode

import structlog
from fastapi import FastAPI, Request
from starlette.responses import Response

from autostream.infrastructure.config import AppConfig
from autostream.interfaces.app_state import AppState
from autostream.interfaces.composition import lifespan

log = structlog.get_logger(__name__)

# User tokens carry debrid API keys and must not reach the logs.
_TOKEN_PATH_RE = re.compile(r"^/u/[^/]+/")


def redact_path(path: str) -> str:
    return _TOKEN_PATH_RE.sub("/u/<cfg>/", path)


def redact_query(query: str) -> str:
    pairs = [(k, "<cfg>" if k == "cfg" else v) for k, v in parse_qsl(query)]
    return urlencode(pairs, safe="<>")


def create_app(config: AppConfig) -> FastAPI:
    """Create FastAPI app — configuration ONLY, NO resource initialization.

    Resources (HTTP client, use case) are created in lifespan().
    """
    app = FastAPI(
        title="AutoStream",
        description="Stremio addon that picks the best stream per title",
        version="1.8.2",
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config

    from autostream.interfaces.api.configure.router import router as configure_router
    from autostream.interfaces.api.stremio.router import router as stremio_router

    app.include_router(stremio_router)
    app.include_router(configure_router)

    @app.get("/healthz")
    async def healthz() -> dict[str, str | int]:
        """Liveness check — returns 200 as long as the process is running."""
        return {
            "status": "ok",
            "sources": len(config.sources),
            "fallback_sources": len(config.fallback_sources),
        }

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ):
        start = time.perf_counter()
        response: Response | None = None
        try:
            response = await call_next(request)
            response.headers.setdefault("Access-Control-Allow-Origin", "*")
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            status_code = response.status_code if response is not None else 500

            log.info(
                "http_request",
                method=request.method,
                path=redact_path(request.url.path),
                query=redact_query(str(request.url.query)),
                status_code=status_code,
                duration_ms=round(duration_ms, 2),
                client_host=(request.client.host if request.client else None),
            )

    return app
