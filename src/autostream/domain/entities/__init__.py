from .stremio import (
    BUCKET_QUALITIES,
    ResultEntry,
    StreamCandidate,
    StreamQuality,
    StremioContentType,
    StremioStreamRequest,
    UserConfig,
)

__all__ = [
    "BUCKET_QUALITIES",
    "ResultEntry",
    "StreamCandidate",
    "StreamQuality",
    "StremioContentType",
    "StremioStreamRequest",
    "UserConfig",
]
