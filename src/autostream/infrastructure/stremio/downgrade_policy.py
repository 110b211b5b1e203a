"""Prefer a lower resolution when it is much better seeded.

Two one-way hops are checked in fixed order: 4K/2K -> 1080p, then
1080p -> 720p. A 4K pick is never compared with 720p directly and a
pick is never upgraded.
"""

from __future__ import annotations

import math
import re

import structlog

from autostream.domain.entities.stremio import StreamCandidate, StreamQuality
from autostream.infrastructure.config.schema import PreferLowerQualityConfig

log = structlog.get_logger(__name__)

_DEBRID_HOST_RE = re.compile(r"(alldebrid|real-?debrid|premiumize)", re.IGNORECASE)
_API_KEY_RE = re.compile(r"(apikey=|apiKey=)", re.IGNORECASE)

_ABOVE_1080P = (StreamQuality.UHD_2160P, StreamQuality.QHD_1440P)


def is_debrid_source(url: str | None) -> bool:
    """True for upstream URLs that carry a debrid provider and an API key."""
    text = str(url or "")
    return bool(_DEBRID_HOST_RE.search(text) and _API_KEY_RE.search(text))


def is_much_faster(
    lower: StreamCandidate,
    higher: StreamCandidate,
    ratio_need: float,
    delta_need: float,
    rule: str = "ratio_and_delta",
) -> bool:
    """Whether ``lower`` is seeded well enough to replace ``higher``.

    A ``higher`` with zero seeders makes the ratio infinite.
    Any rule other than ``ratio_or_delta`` requires both conditions.
    """
    low = lower.seeders
    high = higher.seeders
    ratio = low / high if high > 0 else math.inf
    delta = low - high
    if rule == "ratio_or_delta":
        return ratio >= ratio_need or delta >= delta_need
    return ratio >= ratio_need and delta >= delta_need


class DowngradePolicy:
    """Moves the current pick down the quality ladder when justified."""

    def choose(
        self,
        pick: StreamCandidate,
        champions: dict[StreamQuality, StreamCandidate | None],
        prefs: PreferLowerQualityConfig,
    ) -> StreamCandidate:
        best_1080 = champions.get(StreamQuality.HD_1080P)
        best_720 = champions.get(StreamQuality.HD_720P)

        if (
            pick.quality in _ABOVE_1080P
            and best_1080 is not None
            and is_much_faster(
                best_1080,
                pick,
                prefs.prefer1080_ratio,
                prefs.prefer1080_delta,
                prefs.prefer_rule,
            )
        ):
            log.debug(
                "downgrade_to_1080p",
                from_quality=pick.quality.tag,
                from_seeders=pick.seeders,
                to_seeders=best_1080.seeders,
            )
            pick = best_1080

        if (
            pick.quality == StreamQuality.HD_1080P
            and best_720 is not None
            and is_much_faster(
                best_720,
                pick,
                prefs.prefer720_ratio,
                prefs.prefer720_delta,
                prefs.prefer_rule,
            )
        ):
            log.debug(
                "downgrade_to_720p",
                from_seeders=pick.seeders,
                to_seeders=best_720.seeders,
            )
            pick = best_720

        return pick
