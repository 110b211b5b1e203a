"""Port for querying upstream stream providers."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class UpstreamClientPort(Protocol):
    """Async interface for fetching raw stream records from one upstream."""

    async def fetch_streams(
        self, base_url: str, content_type: str, stream_id: str
    ) -> list[dict[str, Any]]:
        """Return the upstream's stream records for a media id.

        Raises:
            UpstreamError: On network errors, timeouts, non-success
                status codes or malformed payloads.
        """
        ...
