"""Stateless per-user configuration carried in the addon URL.

The token is unpadded base64url over a small JSON object, e.g.
``{"torrentio": "https://torrentio.strem.fun/alldebrid|..."}``.
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any
from urllib.parse import quote

import structlog

from autostream.domain.entities.stremio import UserConfig
from autostream.infrastructure.stremio.stream_converter import (
    URI_COMPONENT_SAFE,
    is_http_url,
)

log = structlog.get_logger(__name__)

TORRENTIO_BASE_URL = "https://torrentio.strem.fun"


def _provider_slug(provider: str | None) -> str:
    p = (provider or "alldebrid").lower()
    if "real" in p:
        return "real-debrid"
    if "prem" in p:
        return "premiumize"
    return "alldebrid"


def build_torrentio_url(
    *,
    provider: str | None = "alldebrid",
    cached: bool = True,
    api_key: str = "",
) -> str:
    """Torrentio upstream URL for a debrid provider.

    The key is sent as both ``apikey`` and ``apiKey``; Torrentio builds
    differ in which spelling they read.
    """
    params: list[str] = []
    if cached:
        params.append("cached=true")
    params.extend(["exclude=cam,ts", "audio=english", "sort=seeders"])
    key = quote(api_key, safe=URI_COMPONENT_SAFE)
    params.extend([f"apikey={key}", f"apiKey={key}"])
    return f"{TORRENTIO_BASE_URL}/{_provider_slug(provider)}|{'&'.join(params)}"


def encode_user_config(data: dict[str, Any]) -> str:
    raw = json.dumps(data, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode_user_config(token: str | None) -> UserConfig:
    """Decode a token into a UserConfig. Invalid tokens yield an empty config."""
    if not token:
        return UserConfig()
    try:
        padded = token + "=" * (-len(token) % 4)
        payload = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
    except (binascii.Error, UnicodeError, ValueError):
        log.debug("user_config_decode_failed", token_length=len(token))
        return UserConfig()

    if not isinstance(payload, dict):
        return UserConfig()

    custom = payload.get("torrentio") or payload.get("custom_source")
    if custom is not None and not is_http_url(custom):
        log.debug("user_config_source_rejected")
        custom = None

    api_key = payload.get("apikey") or payload.get("api_key")
    api_key = api_key if isinstance(api_key, str) else None
    provider = payload.get("provider")
    provider = provider if isinstance(provider, str) else None
    cached = bool(payload.get("cached", True))

    # Tokens may carry the provider triple instead of a finished URL.
    if custom is None and provider and api_key:
        custom = build_torrentio_url(provider=provider, cached=cached, api_key=api_key)

    return UserConfig(
        custom_source=custom,
        provider=provider,
        api_key=api_key,
        cached=cached,
    )
