"""Host collaborators: the injected bundle and the in-memory reference host."""

from .content_host import ContentHost
from .records import SiteState
from .memory import MemorySite

__all__ = [
    "ContentHost",
    "SiteState",
    "MemorySite",
]
