"""Convert raw upstream stream records into StreamCandidates.

Pure transformation logic — no I/O, no framework dependencies.
Upstream addons disagree on field names (``seeders`` vs ``seeds``,
``url`` vs ``externalUrl`` vs ``infoHash``); this module is the single
place where that shape is mapped onto the domain type.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any
from urllib.parse import quote

from autostream.domain.entities.stremio import StreamCandidate
from autostream.infrastructure.config.schema import RankingConfig
from autostream.infrastructure.stremio.release_parser import (
    combined_label,
    extract_seeders,
    parse_quality,
    preference_bonus,
)

# Identity fields, highest priority first.
_REFERENCE_FIELDS = ("url", "externalUrl", "magnet", "infoHash")
_HASH_FIELDS = ("infoHash", "infohash", "hash")

_HTTP_RE = re.compile(r"^https?://", re.IGNORECASE)

# Characters encodeURIComponent leaves alone; keeps magnets byte-compatible
# with what other Stremio addons produce.
URI_COMPONENT_SAFE = "-_.!~*'()"

COMMON_TRACKERS: tuple[str, ...] = (
    "udp://tracker.opentrackr.org:1337/announce",
    "udp://open.stealth.si:80/announce",
    "udp://tracker.torrent.eu.org:451/announce",
)


def is_http_url(value: Any) -> bool:
    return isinstance(value, str) and bool(_HTTP_RE.match(value))


def behavior_hints(record: Mapping[str, Any]) -> dict[str, Any]:
    """Copy of the record's ``behaviorHints``; anything but a mapping is dropped."""
    hints = record.get("behaviorHints")
    return dict(hints) if isinstance(hints, Mapping) else {}


def playable_reference(record: Mapping[str, Any]) -> str | None:
    """First non-empty identity field (url > externalUrl > magnet > infoHash)."""
    for key in _REFERENCE_FIELDS:
        value = record.get(key)
        if value:
            return str(value)
    return None


def to_candidate(
    record: Mapping[str, Any],
    *,
    source: str = "",
    ranking: RankingConfig | None = None,
) -> StreamCandidate:
    """Map one raw record onto a StreamCandidate (never raises)."""
    label = combined_label(record)
    return StreamCandidate(
        label=label,
        quality=parse_quality(label),
        seeders=extract_seeders(record),
        bonus=preference_bonus(label, ranking),
        reference=playable_reference(record),
        source=source,
        raw=dict(record),
    )


def convert_streams(
    records: Iterable[Any],
    *,
    source: str = "",
    ranking: RankingConfig | None = None,
) -> list[StreamCandidate]:
    """Convert an upstream ``streams`` list. Non-mapping entries are skipped."""
    return [
        to_candidate(r, source=source, ranking=ranking)
        for r in records
        if isinstance(r, Mapping)
    ]


def build_magnet(record: Mapping[str, Any]) -> str | None:
    """Return the record's magnet, or build one from its info hash."""
    magnet = record.get("magnet")
    if isinstance(magnet, str) and magnet.startswith("magnet:"):
        return magnet

    info_hash = next((record[k] for k in _HASH_FIELDS if record.get(k)), None)
    if not info_hash:
        return None

    name = record.get("title") or record.get("name") or "AutoStream"
    display = quote(" ".join(str(name).split()), safe=URI_COMPONENT_SAFE)
    trackers = "".join(
        f"&tr={quote(t, safe=URI_COMPONENT_SAFE)}" for t in COMMON_TRACKERS
    )
    return f"magnet:?xt=urn:btih:{info_hash}&dn={display}{trackers}"


def normalize_for_player(record: Mapping[str, Any]) -> dict[str, Any] | None:
    """Return a copy of ``record`` with a player-ready ``url``.

    HTTP links are kept and marked web-ready. Anything else is turned
    into a magnet for the player's torrent engine. ``None`` means the
    record has nothing playable.
    """
    out = dict(record)
    if not out.get("url") and out.get("externalUrl"):
        out["url"] = out["externalUrl"]

    hints = behavior_hints(out)

    if is_http_url(out.get("url")):
        out["behaviorHints"] = {**hints, "notWebReady": False}
        return out

    url = out.get("url")
    if isinstance(url, str) and url.startswith("magnet:"):
        magnet: str | None = url
    else:
        magnet = build_magnet(out)
    if magnet:
        out["magnet"] = magnet
        out["url"] = magnet
        out["behaviorHints"] = {**hints, "notWebReady": True}
        return out

    return None
