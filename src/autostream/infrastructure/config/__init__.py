from __future__ import annotations

from .load import load_config
from .schema import (
    AppConfig,
    DebridConfig,
    EnvOverrides,
    PreferLowerQualityConfig,
    RankingConfig,
)

__all__ = [
    "AppConfig",
    "DebridConfig",
    "EnvOverrides",
    "PreferLowerQualityConfig",
    "RankingConfig",
    "load_config",
]
