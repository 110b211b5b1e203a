"""Tests for Stremio domain entities."""

from __future__ import annotations

import dataclasses

import pytest

from autostream.domain.entities.stremio import (
    BUCKET_QUALITIES,
    StreamCandidate,
    StreamQuality,
    UserConfig,
)


class TestStreamQuality:
    def test_ordering_follows_resolution(self) -> None:
        assert StreamQuality.UHD_2160P > StreamQuality.QHD_1440P
        assert StreamQuality.QHD_1440P > StreamQuality.HD_1080P
        assert StreamQuality.HD_1080P > StreamQuality.HD_720P
        assert StreamQuality.HD_720P > StreamQuality.SD_480P
        assert StreamQuality.SD > StreamQuality.CAM

    @pytest.mark.parametrize(
        ("quality", "tag"),
        [
            (StreamQuality.UHD_2160P, "2160p"),
            (StreamQuality.QHD_1440P, "1440p"),
            (StreamQuality.HD_1080P, "1080p"),
            (StreamQuality.HD_720P, "720p"),
            (StreamQuality.SD_480P, "480p"),
            (StreamQuality.CAM, "CAM"),
            (StreamQuality.SD, "SD"),
        ],
    )
    def test_tag(self, quality: StreamQuality, tag: str) -> None:
        assert quality.tag == tag

    def test_labels_for_high_tiers(self) -> None:
        assert StreamQuality.UHD_2160P.label == "4K"
        assert StreamQuality.QHD_1440P.label == "2K"

    def test_label_falls_back_to_tag(self) -> None:
        assert StreamQuality.HD_1080P.label == "1080p"
        assert StreamQuality.HD_720P.label == "720p"

    def test_bucket_qualities_best_first(self) -> None:
        assert list(BUCKET_QUALITIES) == sorted(BUCKET_QUALITIES, reverse=True)
        assert StreamQuality.SD_480P not in BUCKET_QUALITIES


class TestStreamCandidate:
    def test_defaults(self) -> None:
        c = StreamCandidate(label="Some Movie")
        assert c.quality is StreamQuality.SD
        assert c.seeders == 0
        assert c.bonus == 0
        assert c.reference is None
        assert c.rank_score == 0.0

    def test_frozen(self) -> None:
        c = StreamCandidate(label="x")
        with pytest.raises(dataclasses.FrozenInstanceError):
            c.seeders = 5  # type: ignore[misc]

    def test_raw_not_part_of_equality(self) -> None:
        a = StreamCandidate(label="x", raw={"a": 1})
        b = StreamCandidate(label="x", raw={"b": 2})
        assert a == b


class TestUserConfig:
    def test_empty_by_default(self) -> None:
        user = UserConfig()
        assert user.custom_source is None
        assert user.provider is None
        assert user.api_key is None
        assert user.cached is True
