"""YouTube Data API access for the subscription feed service."""

from .client import YouTubeClient
from .errors import (
    MalformedEntryError,
    PaginationError,
    RateLimitExhaustedError,
    TransportError,
    UnauthorizedError,
    UpstreamError,
    YouTubeAPIError,
)
from .executor import RateLimitedExecutor
from .models import VideoDetail, VideoEntry
from .pagination import iter_pages, paginate

__all__ = [
    "MalformedEntryError",
    "PaginationError",
    "RateLimitExhaustedError",
    "RateLimitedExecutor",
    "TransportError",
    "UnauthorizedError",
    "UpstreamError",
    "VideoDetail",
    "VideoEntry",
    "YouTubeAPIError",
    "YouTubeClient",
    "iter_pages",
    "paginate",
]
