"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "autostream",
    "environment": "dev",
    "sources": [],
    "fallback_sources": [],
    "prefer_lower_quality": {
        "prefer_rule": "ratio_and_delta",
        "prefer1080_ratio": 2.0,
        "prefer1080_delta": 500,
        "prefer720_ratio": 3.0,
        "prefer720_delta": 1000,
    },
    "debrid": {
        "prefer1080_ratio_floor": 3.5,
        "prefer1080_delta_floor": 1000,
        "http_first": True,
    },
    "upstream": {
        "timeout_seconds": 10.0,
    },
    "cinemeta": {
        "base_url": "https://v3-cinemeta.strem.io",
        "timeout_seconds": 5.0,
    },
    "http": {
        "user_agent": "AutoStream/1.8.2",
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
}
