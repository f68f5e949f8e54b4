"""Error taxonomy for YouTube Data API calls."""


class YouTubeAPIError(Exception):
    """Base class for failures talking to the YouTube Data API."""


class UnauthorizedError(YouTubeAPIError):
    """The credential was rejected, missing, or could not be refreshed."""


class RateLimitExhaustedError(YouTubeAPIError):
    """The request was rate limited again after the single allowed retry."""


class UpstreamError(YouTubeAPIError):
    """Non-2xx response other than a rate limit or an auth rejection."""

    def __init__(self, status_code: int, message: str = ""):
        self.status_code = status_code
        super().__init__(f"YouTube API returned HTTP {status_code}: {message}".rstrip(": "))


class TransportError(YouTubeAPIError):
    """Network-level failure before a response was received."""


class PaginationError(YouTubeAPIError):
    """The API handed back a continuation token that was already used."""


class MalformedEntryError(ValueError):
    """A single listing item could not be turned into a video entry."""
