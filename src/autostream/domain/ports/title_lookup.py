"""Port for display-name lookups."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class TitleLookupPort(Protocol):
    """Async interface for resolving a media id to a display name."""

    async def get_display_name(self, content_type: str, stream_id: str) -> str:
        """Human-readable name, e.g. ``"Dark — Secrets"`` for an episode.

        Raises:
            TitleLookupError: When the metadata service cannot answer.
        """
        ...
