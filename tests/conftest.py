"""Shared test fixtures for the AutoStream test suite."""

from __future__ import annotations

import pytest

from autostream.domain.entities.stremio import StremioStreamRequest
from autostream.infrastructure.config.schema import (
    PreferLowerQualityConfig,
    RankingConfig,
)

# ---------------------------------------------------------------------------
# Domain entity fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def movie_request() -> StremioStreamRequest:
    return StremioStreamRequest(
        stream_id="tt0133093", imdb_id="tt0133093", content_type="movie"
    )


@pytest.fixture()
def episode_request() -> StremioStreamRequest:
    return StremioStreamRequest(
        stream_id="tt0903747:1:2",
        imdb_id="tt0903747",
        content_type="series",
        season=1,
        episode=2,
    )


# ---------------------------------------------------------------------------
# Configuration fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def prefs() -> PreferLowerQualityConfig:
    """Default thresholds: 2.0/500 for 1080p, 3.0/1000 for 720p."""
    return PreferLowerQualityConfig()


@pytest.fixture()
def ranking() -> RankingConfig:
    return RankingConfig()
