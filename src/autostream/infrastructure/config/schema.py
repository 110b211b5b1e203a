"""Pydantic configuration models with validation."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]
PreferRule = Literal["ratio_and_delta", "ratio_or_delta"]


def _normalize_source(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"Expected source URL string, got: {type(value)!r}")
    url = value.strip().rstrip("/")
    if not url.lower().startswith(("http://", "https://")):
        raise ValueError(f"Source must be an http(s) URL: {value!r}")
    return url


class PreferLowerQualityConfig(BaseModel):
    """Thresholds for preferring a lower resolution that is much faster.

    Immutable: per-request adjustments go through :meth:`with_debrid_floor`,
    which returns a new instance.
    """

    model_config = ConfigDict(frozen=True)

    prefer_rule: PreferRule = Field(
        default="ratio_and_delta",
        description="Whether ratio AND delta, or ratio OR delta, trigger a downgrade.",
    )
    prefer1080_ratio: float = Field(
        default=2.0,
        description="Seed ratio 1080p/current needed to leave 4K/2K.",
    )
    prefer1080_delta: float = Field(
        default=500,
        description="Seed difference 1080p-current needed to leave 4K/2K.",
    )
    prefer720_ratio: float = Field(
        default=3.0,
        description="Seed ratio 720p/1080p needed to leave 1080p.",
    )
    prefer720_delta: float = Field(
        default=1000,
        description="Seed difference 720p-1080p needed to leave 1080p.",
    )

    @field_validator("prefer1080_ratio", "prefer720_ratio")
    @classmethod
    def _validate_ratio(cls, v: float) -> float:
        if v < 0:
            raise ValueError("ratio thresholds must be >= 0")
        return v

    def with_debrid_floor(
        self, *, ratio: float, delta: float
    ) -> PreferLowerQualityConfig:
        """Raise the 4K/2K -> 1080p thresholds to at least ``ratio``/``delta``."""
        return self.model_copy(
            update={
                "prefer1080_ratio": max(self.prefer1080_ratio, ratio),
                "prefer1080_delta": max(self.prefer1080_delta, delta),
            }
        )


class DebridConfig(BaseModel):
    """Adjustments applied when a debrid-backed upstream is in use."""

    model_config = ConfigDict(frozen=True)

    prefer1080_ratio_floor: float = Field(
        default=3.5,
        description="Minimum 1080p ratio threshold with a debrid source.",
    )
    prefer1080_delta_floor: float = Field(
        default=1000,
        description="Minimum 1080p delta threshold with a debrid source.",
    )
    http_first: bool = Field(
        default=True,
        description="Move candidates with HTTP links ahead of magnets.",
    )


class RankingConfig(BaseModel):
    """Weights for candidate ranking.

    Score formula:
        quality_scores[tag] + ln(1 + seeders) * seed_weight + bonus
    """

    model_config = ConfigDict(frozen=True)

    quality_scores: dict[str, int] = Field(
        default={
            "2160p": 4000,
            "1440p": 1440,
            "1080p": 1080,
            "720p": 720,
            "480p": 480,
            "CAM": 10,
            "SD": 360,
        },
        description="Base score per quality tag.",
    )
    default_quality_score: int = Field(
        default=360,
        description="Score for tags missing from quality_scores.",
    )
    seed_weight: float = Field(
        default=200.0,
        description="Multiplier for the logarithmic seeders term.",
    )
    release_keywords: tuple[str, ...] = Field(
        default=("webdl", "webrip", "blu", "bluray", "remux"),
        description="Release-type keywords; each match adds release_bonus.",
    )
    release_bonus: int = Field(default=30)
    provider_keywords: tuple[str, ...] = Field(
        default=("real-debrid", "rd", "premiumize", "alldebrid", "ad", "pm"),
        description="Debrid provider keywords; each match adds provider_bonus.",
    )
    provider_bonus: int = Field(default=20)
    codec_keywords: tuple[str, ...] = Field(
        default=("hevc", "x265"),
        description="Efficient codec keywords; any match adds codec_bonus once.",
    )
    codec_bonus: int = Field(default=10)


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML (or the legacy config.json, which YAML also parses) may be
      sectioned (upstream/cinemeta/http/logging).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="autostream", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # Upstream sources
    sources: list[str] = Field(
        default_factory=list,
        description="Primary upstream addon base URLs, in priority order.",
    )
    fallback_sources: list[str] = Field(
        default_factory=list,
        description="Queried only when all primary sources return nothing.",
    )

    prefer_lower_quality: PreferLowerQualityConfig = Field(
        default_factory=PreferLowerQualityConfig
    )
    debrid: DebridConfig = Field(default_factory=DebridConfig)
    ranking: RankingConfig = Field(default_factory=RankingConfig)

    # Upstream HTTP (YAML section: upstream.*)
    upstream_timeout_seconds: float = Field(
        default=10.0,
        validation_alias=AliasChoices(
            "upstream_timeout_seconds",
            AliasPath("upstream", "timeout_seconds"),
        ),
        description="Timeout for a single upstream stream query.",
    )

    # Title lookup (YAML section: cinemeta.*)
    cinemeta_base_url: str = Field(
        default="https://v3-cinemeta.strem.io",
        validation_alias=AliasChoices(
            "cinemeta_base_url",
            AliasPath("cinemeta", "base_url"),
        ),
        description="Cinemeta metadata service base URL.",
    )
    cinemeta_timeout_seconds: float = Field(
        default=5.0,
        validation_alias=AliasChoices(
            "cinemeta_timeout_seconds",
            AliasPath("cinemeta", "timeout_seconds"),
        ),
        description="Timeout for a single metadata lookup.",
    )

    # HTTP (YAML section: http.*)
    http_user_agent: str = Field(
        default="AutoStream/1.8.2",
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="User-Agent for outgoing HTTP requests.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    @field_validator("sources", "fallback_sources", mode="before")
    @classmethod
    def _validate_sources(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if not isinstance(v, list):
            raise TypeError("sources must be a list of URLs")
        return [_normalize_source(item) for item in v]

    @field_validator("upstream_timeout_seconds", "cinemeta_timeout_seconds")
    @classmethod
    def _validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeouts must be > 0")
        return v

    @field_validator("cinemeta_base_url")
    @classmethod
    def _validate_cinemeta_url(cls, v: str) -> str:
        return _normalize_source(v)

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "sources": list(self.sources),
            "fallback_sources": list(self.fallback_sources),
            "prefer_lower_quality": self.prefer_lower_quality.model_dump(mode="json"),
            "debrid": self.debrid.model_dump(mode="json"),
            "ranking": self.ranking.model_dump(mode="json"),
            "upstream": {"timeout_seconds": self.upstream_timeout_seconds},
            "cinemeta": {
                "base_url": self.cinemeta_base_url,
                "timeout_seconds": self.cinemeta_timeout_seconds,
            },
            "http": {"user_agent": self.http_user_agent},
            "logging": {"level": self.log_level, "format": self.log_format},
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Supported env vars (flat, explicit), e.g.:
    - AUTOSTREAM_SOURCES='["https://torrentio.strem.fun"]'
    - AUTOSTREAM_PREFER_RULE=ratio_or_delta
    - AUTOSTREAM_PREFER1080_RATIO, AUTOSTREAM_PREFER720_DELTA, ...
    - AUTOSTREAM_DEBRID_HTTP_FIRST=false
    - AUTOSTREAM_UPSTREAM_TIMEOUT_SECONDS
    - AUTOSTREAM_LOG_LEVEL
    """

    model_config = SettingsConfigDict(
        env_prefix="AUTOSTREAM_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    sources: Optional[list[str]] = None
    fallback_sources: Optional[list[str]] = None

    prefer_rule: Optional[PreferRule] = None
    prefer1080_ratio: Optional[float] = None
    prefer1080_delta: Optional[float] = None
    prefer720_ratio: Optional[float] = None
    prefer720_delta: Optional[float] = None
    debrid_http_first: Optional[bool] = None

    upstream_timeout_seconds: Optional[float] = None
    cinemeta_base_url: Optional[str] = None
    cinemeta_timeout_seconds: Optional[float] = None
    http_user_agent: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
