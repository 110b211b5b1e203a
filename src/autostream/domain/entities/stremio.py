"""Domain entities for the AutoStream Stremio addon.

Pure value objects — no framework dependencies, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Literal

StremioContentType = Literal["movie", "series"]


class StreamQuality(IntEnum):
    """Ranked quality tiers (higher value = better quality).

    ``SD`` is the catch-all tier for labels without a recognised
    resolution keyword.
    """

    CAM = 10
    SD = 20
    SD_480P = 30
    HD_720P = 40
    HD_1080P = 50
    QHD_1440P = 55
    UHD_2160P = 60

    @property
    def tag(self) -> str:
        """Short tag as used in release names, e.g. ``"1080p"``."""
        return _TAGS[self]

    @property
    def label(self) -> str:
        """Human-readable label shown to the user, e.g. ``"4K"``."""
        return _LABELS.get(self, self.tag)


_TAGS: dict[StreamQuality, str] = {
    StreamQuality.UHD_2160P: "2160p",
    StreamQuality.QHD_1440P: "1440p",
    StreamQuality.HD_1080P: "1080p",
    StreamQuality.HD_720P: "720p",
    StreamQuality.SD_480P: "480p",
    StreamQuality.CAM: "CAM",
    StreamQuality.SD: "SD",
}

_LABELS: dict[StreamQuality, str] = {
    StreamQuality.UHD_2160P: "4K",
    StreamQuality.QHD_1440P: "2K",
}

# Tiers that get their own bucket champion.
BUCKET_QUALITIES: tuple[StreamQuality, ...] = (
    StreamQuality.UHD_2160P,
    StreamQuality.QHD_1440P,
    StreamQuality.HD_1080P,
    StreamQuality.HD_720P,
)


@dataclass(frozen=True)
class StreamCandidate:
    """One upstream-reported playable option, normalized for ranking.

    ``raw`` keeps the upstream record untouched so it can be handed
    to the player later.
    """

    label: str
    quality: StreamQuality = StreamQuality.SD
    seeders: int = 0
    bonus: int = 0
    reference: str | None = None
    source: str = ""
    raw: dict[str, Any] = field(default_factory=dict, compare=False)
    rank_score: float = 0.0


@dataclass(frozen=True)
class ResultEntry:
    """A curated stream ready to be serialized for Stremio."""

    stream: dict[str, Any]
    quality_score: int
    rank_score: float


@dataclass(frozen=True)
class UserConfig:
    """Per-request preferences decoded from the install token.

    Either ``custom_source`` (a ready upstream URL) or the
    ``provider``/``api_key``/``cached`` triple is set.
    """

    custom_source: str | None = None
    provider: str | None = None
    api_key: str | None = None
    cached: bool = True


@dataclass(frozen=True)
class StremioStreamRequest:
    """Parsed Stremio stream request.

    Created from URL path: ``tt1234567`` (movie) or
    ``tt1234567:1:5`` (series, season 1, episode 5).
    ``stream_id`` keeps the raw id as sent by Stremio.
    """

    stream_id: str
    imdb_id: str
    content_type: StremioContentType
    season: int | None = None
    episode: int | None = None
