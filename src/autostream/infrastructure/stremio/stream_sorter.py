"""Stream ranking, sorting and per-quality bucket selection.

All weights are configurable via RankingConfig.
"""

from __future__ import annotations

import math
from dataclasses import replace

from autostream.domain.entities.stremio import (
    BUCKET_QUALITIES,
    StreamCandidate,
    StreamQuality,
)
from autostream.infrastructure.config.schema import RankingConfig


class StreamSorter:
    """Ranking: Quality + log-scaled seeders + keyword bonus.

    Score formula: quality_score + ln(1 + seeders) * seed_weight + bonus

    With default config a 2160p stream with 5 seeders (4000+358=4358)
    outranks a 1080p stream with 400 seeders (1080+1199=2279). The log
    term only reorders streams within a tier; moving between tiers is
    the job of the downgrade policy.
    """

    def __init__(self, config: RankingConfig) -> None:
        self._quality_scores = config.quality_scores
        self._default_quality_score = config.default_quality_score
        self._seed_weight = config.seed_weight

    def quality_score(self, quality: StreamQuality) -> int:
        return self._quality_scores.get(quality.tag, self._default_quality_score)

    def rank(self, candidate: StreamCandidate) -> float:
        """Calculate ranking score for a single candidate."""
        speed = math.log1p(max(candidate.seeders, 0)) * self._seed_weight
        return self.quality_score(candidate.quality) + speed + candidate.bonus

    def sort(self, candidates: list[StreamCandidate]) -> list[StreamCandidate]:
        """Sort descending by score. Returns new list with rank_score set.

        The sort is stable: equal scores keep their input order.
        """
        scored = [replace(c, rank_score=self.rank(c)) for c in candidates]
        scored.sort(key=lambda c: c.rank_score, reverse=True)
        return scored

    def best_of_quality(
        self,
        candidates: list[StreamCandidate],
        quality: StreamQuality,
    ) -> StreamCandidate | None:
        """Highest-ranked candidate of one tier, or None if the tier is empty.

        Ties go to the candidate that came first in ``candidates``.
        """
        bucket = [c for c in candidates if c.quality == quality]
        if not bucket:
            return None
        return self.sort(bucket)[0]

    def best_per_quality(
        self, candidates: list[StreamCandidate]
    ) -> dict[StreamQuality, StreamCandidate | None]:
        """Bucket champions for 2160p, 1440p, 1080p and 720p."""
        return {q: self.best_of_quality(candidates, q) for q in BUCKET_QUALITIES}
