"""Stremio stream selection use case.

Upstream addons (sequential) -> dedupe -> rank -> bucket champions
-> downgrade policy -> 1-2 curated streams with clean titles.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, Protocol
from urllib.parse import urlparse

import structlog

from autostream.domain.entities.stremio import (
    ResultEntry,
    StreamCandidate,
    StreamQuality,
    StremioStreamRequest,
    UserConfig,
)
from autostream.domain.exceptions import UpstreamError
from autostream.domain.ports.title_lookup import TitleLookupPort
from autostream.domain.ports.upstream import UpstreamClientPort

if TYPE_CHECKING:
    from autostream.infrastructure.config.schema import (
        DebridConfig,
        PreferLowerQualityConfig,
        RankingConfig,
    )

# ---------------------------------------------------------------------------
# Protocols — define what this use case needs from its dependencies.
# Infrastructure components satisfy these via structural subtyping.
# ---------------------------------------------------------------------------


class _StremioConfig(Protocol):
    """Configuration values consumed by StremioStreamUseCase."""

    sources: list[str]
    fallback_sources: list[str]
    prefer_lower_quality: PreferLowerQualityConfig
    debrid: DebridConfig
    ranking: RankingConfig


class _StreamSorter(Protocol):
    """Ranks candidates and picks per-quality champions."""

    def quality_score(self, quality: StreamQuality) -> int: ...

    def sort(self, candidates: list[StreamCandidate]) -> list[StreamCandidate]: ...

    def best_per_quality(
        self, candidates: list[StreamCandidate]
    ) -> dict[StreamQuality, StreamCandidate | None]: ...


class _DowngradePolicy(Protocol):
    """Decides whether a lower tier replaces the current pick."""

    def choose(
        self,
        pick: StreamCandidate,
        champions: dict[StreamQuality, StreamCandidate | None],
        prefs: PreferLowerQualityConfig,
    ) -> StreamCandidate: ...


# Type aliases for injected pure functions.
_ConvertFn = Callable[..., list[StreamCandidate]]
_NormalizeFn = Callable[[dict[str, Any]], dict[str, Any] | None]
_SourcePredicate = Callable[[str], bool]

log = structlog.get_logger(__name__)

PROVIDER_LABEL = "AutoStream"

_HTTP_RE = re.compile(r"^https?://", re.IGNORECASE)


def _source_label(url: str) -> str:
    """Host of an upstream URL; keeps API keys out of the logs."""
    return urlparse(url).hostname or "unknown"


def _candidate_key(candidate: StreamCandidate) -> str:
    if candidate.reference is not None:
        return candidate.reference
    return json.dumps(candidate.raw, sort_keys=True, default=str)


def _deduplicate_by_reference(
    candidates: list[StreamCandidate],
) -> list[StreamCandidate]:
    """Keep the first candidate per playable reference.

    Candidates without any reference field collapse only when their
    whole records are equal.
    """
    seen: set[str] = set()
    result: list[StreamCandidate] = []
    for c in candidates:
        key = _candidate_key(c)
        if key not in seen:
            seen.add(key)
            result.append(c)
    return result


def _has_http_link(candidate: StreamCandidate) -> bool:
    link = candidate.raw.get("url") or candidate.raw.get("externalUrl") or ""
    return isinstance(link, str) and bool(_HTTP_RE.match(link))


def _http_first(candidates: list[StreamCandidate]) -> list[StreamCandidate]:
    """Stable partition: candidates with HTTP links before magnets."""
    return [c for c in candidates if _has_http_link(c)] + [
        c for c in candidates if not _has_http_link(c)
    ]


def _is_same_reference(a: StreamCandidate, b: StreamCandidate) -> bool:
    """Two candidates point at the same playable item.

    Unknown identity on either side counts as distinct.
    """
    return a.reference is not None and a.reference == b.reference


def _format_stream(
    candidate: StreamCandidate,
    *,
    display_name: str,
    binge_group: str,
    normalize_fn: _NormalizeFn,
) -> dict[str, Any] | None:
    """Build the Stremio stream object for a candidate.

    The upstream record is passed through (player-normalized); only
    title, name and the binge group are replaced.
    """
    normalized = normalize_fn(candidate.raw)
    if normalized is None:
        return None
    raw_hints = normalized.get("behaviorHints")
    hints = dict(raw_hints) if isinstance(raw_hints, Mapping) else {}
    hints["bingeGroup"] = binge_group
    return {
        **normalized,
        "title": f"{display_name} — {candidate.quality.label}",
        "name": PROVIDER_LABEL,
        "behaviorHints": hints,
    }


def _assemble_results(
    pick: StreamCandidate,
    best_1080: StreamCandidate | None,
    *,
    display_name: str,
    binge_group: str,
    quality_score_fn: Callable[[StreamQuality], int],
    normalize_fn: _NormalizeFn,
) -> list[ResultEntry]:
    """Primary pick plus an optional distinct 1080p alternative.

    Ordered by quality score, then rank (both descending).
    """
    chosen = [pick]
    if (
        pick.quality != StreamQuality.HD_1080P
        and best_1080 is not None
        and not _is_same_reference(pick, best_1080)
    ):
        chosen.append(best_1080)

    entries: list[ResultEntry] = []
    for candidate in chosen:
        stream = _format_stream(
            candidate,
            display_name=display_name,
            binge_group=binge_group,
            normalize_fn=normalize_fn,
        )
        if stream is None:
            log.debug("stremio_candidate_unplayable", label=candidate.label[:80])
            continue
        entries.append(
            ResultEntry(
                stream=stream,
                quality_score=quality_score_fn(candidate.quality),
                rank_score=candidate.rank_score,
            )
        )

    entries.sort(key=lambda e: (e.quality_score, e.rank_score), reverse=True)
    return entries


class StremioStreamUseCase:
    """Pick the best one or two streams for a Stremio request.

    Flow:
        1. Query the user's custom source plus the primary sources.
        2. If nothing came back, query the fallback sources.
        3. Rank candidates and find the champion of each quality tier.
        4. Let the downgrade policy move the pick to a faster tier.
        5. Format the pick (and a 1080p alternative) with a clean title.

    ``execute`` never raises: any failure yields an empty list.
    """

    def __init__(
        self,
        *,
        upstream: UpstreamClientPort,
        titles: TitleLookupPort,
        config: _StremioConfig,
        sorter: _StreamSorter,
        policy: _DowngradePolicy,
        convert_fn: _ConvertFn,
        normalize_fn: _NormalizeFn,
        is_debrid_fn: _SourcePredicate,
    ) -> None:
        self._upstream = upstream
        self._titles = titles
        self._sorter = sorter
        self._policy = policy
        self._convert_fn = convert_fn
        self._normalize_fn = normalize_fn
        self._is_debrid_fn = is_debrid_fn
        self._sources = list(config.sources)
        self._fallback_sources = list(config.fallback_sources)
        self._prefs = config.prefer_lower_quality
        self._debrid = config.debrid
        self._ranking = config.ranking

    async def execute(
        self,
        request: StremioStreamRequest,
        *,
        user: UserConfig | None = None,
    ) -> list[ResultEntry]:
        """Resolve curated streams for a Stremio request.

        Returns:
            Zero, one or two entries, best first.
        """
        try:
            return await self._execute(request, user or UserConfig())
        except Exception:
            log.error(
                "stremio_stream_failed",
                stream_id=request.stream_id,
                content_type=request.content_type,
                exc_info=True,
            )
            return []

    async def _execute(
        self, request: StremioStreamRequest, user: UserConfig
    ) -> list[ResultEntry]:
        sources = self._resolve_sources(user)
        candidates = await self._collect(sources, request)

        if not candidates:
            log.info(
                "stremio_primary_empty",
                stream_id=request.stream_id,
                fallback_count=len(self._fallback_sources),
            )
            candidates = await self._collect(self._fallback_sources, request)

        if not candidates:
            log.info("stremio_no_candidates", stream_id=request.stream_id)
            return []

        debrid_preferred = any(self._is_debrid_fn(s) for s in sources)
        prefs = self._prefs
        if debrid_preferred:
            prefs = prefs.with_debrid_floor(
                ratio=self._debrid.prefer1080_ratio_floor,
                delta=self._debrid.prefer1080_delta_floor,
            )
            if self._debrid.http_first:
                candidates = _http_first(candidates)

        ranked = self._sorter.sort(candidates)
        champions = self._sorter.best_per_quality(ranked)

        log.info(
            "stremio_bucket_seeders",
            stream_id=request.stream_id,
            **{
                f"seeders_{q.tag}": (c.seeders if c is not None else None)
                for q, c in champions.items()
            },
            debrid_preferred=debrid_preferred,
        )

        pick = self._policy.choose(ranked[0], champions, prefs)
        display_name = await self._display_name(request)

        entries = _assemble_results(
            pick,
            champions.get(StreamQuality.HD_1080P),
            display_name=display_name,
            binge_group=request.stream_id,
            quality_score_fn=self._sorter.quality_score,
            normalize_fn=self._normalize_fn,
        )

        log.info(
            "stremio_stream_complete",
            stream_id=request.stream_id,
            candidate_count=len(candidates),
            pick_quality=pick.quality.tag,
            pick_seeders=pick.seeders,
            stream_count=len(entries),
        )
        return entries

    def _resolve_sources(self, user: UserConfig) -> list[str]:
        """Custom per-user source first, then the configured primaries."""
        if user.custom_source:
            return [user.custom_source, *self._sources]
        return list(self._sources)

    async def _collect(
        self,
        sources: list[str],
        request: StremioStreamRequest,
    ) -> list[StreamCandidate]:
        """Query sources one after another and merge their candidates.

        A failing source contributes nothing; the others still count.
        """
        collected: list[StreamCandidate] = []
        for source in sources:
            try:
                records = await self._upstream.fetch_streams(
                    source, request.content_type, request.stream_id
                )
            except UpstreamError as exc:
                log.warning(
                    "upstream_fetch_failed",
                    source=_source_label(source),
                    reason=exc.reason,
                )
                continue
            except Exception:
                log.warning(
                    "upstream_fetch_failed",
                    source=_source_label(source),
                    exc_info=True,
                )
                continue

            collected.extend(
                self._convert_fn(records, source=source, ranking=self._ranking)
            )

        return _deduplicate_by_reference(collected)

    async def _display_name(self, request: StremioStreamRequest) -> str:
        """Display name via the title service, or the raw id on failure."""
        try:
            name = await self._titles.get_display_name(
                request.content_type, request.stream_id
            )
        except Exception:
            log.warning(
                "title_lookup_failed",
                stream_id=request.stream_id,
                exc_info=True,
            )
            return request.stream_id
        return name or request.stream_id
