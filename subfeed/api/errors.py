"""Translation of YouTube failures into HTTP responses."""

from fastapi import HTTPException

from subfeed.youtube.errors import (
    RateLimitExhaustedError,
    UnauthorizedError,
    YouTubeAPIError,
)


def to_http_exception(exc: YouTubeAPIError) -> HTTPException:
    """Map a YouTube API failure to the HTTP error returned to our caller."""
    if isinstance(exc, UnauthorizedError):
        return HTTPException(status_code=401, detail="YouTube credential rejected or expired")
    if isinstance(exc, RateLimitExhaustedError):
        return HTTPException(
            status_code=503,
            detail="YouTube rate limit reached, try again later",
            headers={"Retry-After": "60"},
        )
    return HTTPException(status_code=502, detail="Error communicating with YouTube")
