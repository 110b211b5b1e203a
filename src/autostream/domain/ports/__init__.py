from .title_lookup import TitleLookupPort
from .upstream import UpstreamClientPort

__all__ = ["TitleLookupPort", "UpstreamClientPort"]
