"""Best-effort extraction of quality, seeders and preference bonus.

Upstream addons describe their streams in free text (title, name,
description). Everything here works on that text and never fails:
missing or malformed fields fall back to ``SD`` / 0 seeders / 0 bonus.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any

from autostream.domain.entities.stremio import StreamQuality
from autostream.infrastructure.config.schema import RankingConfig

# --- Quality keywords (checked in order, first match wins) ---

_QUALITY_KEYWORDS: tuple[tuple[StreamQuality, tuple[str, ...]], ...] = (
    (StreamQuality.UHD_2160P, ("2160", "4k", "uhd")),
    (StreamQuality.QHD_1440P, ("1440", "2k")),
    (StreamQuality.HD_1080P, ("1080",)),
    (StreamQuality.HD_720P, ("720",)),
    (StreamQuality.SD_480P, ("480",)),
    (StreamQuality.CAM, ("cam",)),
)

# --- Seeder patterns ---
# Heuristic only: a year or episode number next to "s:" can match too,
# and single-digit counts are ignored.

_SEEDER_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\b(\d{2,6})\s*(?:seed(?:ers)?|seeds|s:|se:)", re.IGNORECASE),
    re.compile(r"\[(\d{2,6})\s*seeds?\]", re.IGNORECASE),
    re.compile(r"\bseeds?\s*[:\-]?\s*(\d{2,6})\b", re.IGNORECASE),
)

_LABEL_FIELDS = ("title", "name", "description")
_SEEDER_FIELDS = ("seeders", "seeds")

_DEFAULT_RANKING = RankingConfig()


def combined_label(record: Mapping[str, Any]) -> str:
    """Join title, name and description into one searchable label."""
    parts = [record.get(key) for key in _LABEL_FIELDS]
    return " ".join(str(p) for p in parts if p)


def parse_quality(label: str | None) -> StreamQuality:
    """Map a label to its quality tier (case-insensitive substring match).

    The order matters: "Movie 2160p 1080p-audio" is 2160p, and a year
    like "1999" never shadows a resolution keyword checked earlier.
    """
    text = (label or "").lower()
    for quality, keywords in _QUALITY_KEYWORDS:
        if any(k in text for k in keywords):
            return quality
    return StreamQuality.SD


def _as_count(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return max(0, int(value))


def extract_seeders(record: Mapping[str, Any]) -> int:
    """Seed count from explicit fields, else mined from the label text.

    Returns 0 when neither a numeric field nor a text pattern is found.
    """
    for key in _SEEDER_FIELDS:
        count = _as_count(record.get(key))
        if count is not None:
            return count

    text = combined_label(record)
    for pattern in _SEEDER_PATTERNS:
        m = pattern.search(text)
        if m:
            return int(m.group(1))
    return 0


def preference_bonus(label: str | None, ranking: RankingConfig | None = None) -> int:
    """Additive bonus for release type, debrid provider and codec hints.

    Keyword groups are cumulative: "BluRay REMUX x265" scores
    blu + bluray + remux + codec.
    """
    cfg = ranking or _DEFAULT_RANKING
    text = (label or "").lower()
    bonus = 0
    bonus += cfg.release_bonus * sum(1 for k in cfg.release_keywords if k in text)
    bonus += cfg.provider_bonus * sum(1 for k in cfg.provider_keywords if k in text)
    if any(k in text for k in cfg.codec_keywords):
        bonus += cfg.codec_bonus
    return bonus
