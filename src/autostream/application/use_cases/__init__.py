from .stremio_stream import StremioStreamUseCase

__all__ = ["StremioStreamUseCase"]
