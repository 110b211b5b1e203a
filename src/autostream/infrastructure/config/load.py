from __future__ import annotations

import os
from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .defaults import DEFAULT_CONFIG
from .schema import AppConfig, EnvOverrides

CONFIG_PATH_ENV = "AUTOSTREAM_CONFIG"

_SECTION_KEYS: set[str] = {
    "prefer_lower_quality",
    "debrid",
    "ranking",
    "upstream",
    "cinemeta",
    "http",
    "logging",
}

# Top-level keys copied as-is; source lists replace, never extend.
_PLAIN_KEYS: tuple[str, ...] = (
    "app_name",
    "environment",
    "sources",
    "fallback_sources",
)

# Flat spellings used by env vars and CLI flags.
_FLAT_KEYS: dict[str, tuple[str, str]] = {
    "prefer_rule": ("prefer_lower_quality", "prefer_rule"),
    "prefer1080_ratio": ("prefer_lower_quality", "prefer1080_ratio"),
    "prefer1080_delta": ("prefer_lower_quality", "prefer1080_delta"),
    "prefer720_ratio": ("prefer_lower_quality", "prefer720_ratio"),
    "prefer720_delta": ("prefer_lower_quality", "prefer720_delta"),
    "debrid_http_first": ("debrid", "http_first"),
    "upstream_timeout_seconds": ("upstream", "timeout_seconds"),
    "cinemeta_base_url": ("cinemeta", "base_url"),
    "cinemeta_timeout_seconds": ("cinemeta", "timeout_seconds"),
    "http_user_agent": ("http", "user_agent"),
    "log_level": ("logging", "level"),
    "log_format": ("logging", "format"),
}


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into ``base`` in place.

    Nested mappings merge key by key, so a file that only sets
    ``prefer_lower_quality.prefer1080_ratio`` keeps the other thresholds.
    Any other value (lists included) replaces what was there.
    """
    for key, value in override.items():
        current = base.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _deep_merge(current, value)
        else:
            base[key] = value
    return base


def _normalize_layer(data: Mapping[str, Any]) -> dict[str, Any]:
    """Bring one layer into the sectioned shape of ``config.example.yaml``.

    Accepts both sectioned blocks (``prefer_lower_quality: {...}``) and the
    flat keys in ``_FLAT_KEYS``. A flat key wins over the same field given
    in a block of the same layer.
    """
    out: dict[str, Any] = {
        section: dict(data[section])
        for section in _SECTION_KEYS
        if isinstance(data.get(section), Mapping)
    }
    out.update({key: data[key] for key in _PLAIN_KEYS if key in data})

    for flat_key, (section, field) in _FLAT_KEYS.items():
        if flat_key in data:
            out.setdefault(section, {})[field] = data[flat_key]
    return out


def _read_config_file(config_path: Path) -> dict[str, Any]:
    # YAML is a superset of JSON, so a legacy config.json loads unchanged.
    parsed = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"Config file must be a mapping, got: {type(parsed)!r}")
    return parsed


def resolve_config_path(config_path: Path | None) -> Path | None:
    """Explicit path, else ``$AUTOSTREAM_CONFIG``, else no file."""
    if config_path is not None:
        return config_path
    from_env = os.getenv(CONFIG_PATH_ENV)
    return Path(from_env) if from_env else None


def load_config(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> AppConfig:
    """Build the validated AppConfig from all layers.

    Precedence: defaults < YAML/JSON file < env vars (``.env`` included)
    < cli overrides. Nothing is written to disk.
    """
    # .env feeds the environment layer, so it is read before anything else.
    if dotenv_path is not None:
        if not dotenv_path.exists():
            raise FileNotFoundError(dotenv_path)
        load_dotenv(dotenv_path, override=False)

    layers: list[Mapping[str, Any]] = [deepcopy(DEFAULT_CONFIG)]

    path = resolve_config_path(config_path)
    if path is not None:
        if not path.exists():
            raise FileNotFoundError(path)
        layers.append(_read_config_file(path))

    layers.append(EnvOverrides().to_update_dict())
    layers.append(cli_overrides or {})

    merged: dict[str, Any] = {}
    for layer in layers:
        _deep_merge(merged, _normalize_layer(layer))

    return AppConfig.model_validate(merged)
