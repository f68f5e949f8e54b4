"""Pydantic models for videos returned to API callers."""

from datetime import datetime

from pydantic import BaseModel, computed_field

WATCH_URL = "https://www.youtube.com/watch?v={video_id}"

UNTITLED = "Untitled"
UNKNOWN_CHANNEL = "Unknown channel"


def watch_url(video_id: str) -> str:
    """Canonical watch URL for a video ID."""
    return WATCH_URL.format(video_id=video_id)


class VideoEntry(BaseModel):
    """A recent upload from one of the user's subscribed channels."""

    video_id: str
    channel_id: str | None = None
    published_at: datetime
    title: str = UNTITLED
    thumbnail: str = ""
    channel_title: str = UNKNOWN_CHANNEL

    @computed_field  # type: ignore[prop-decorator]
    @property
    def url(self) -> str:
        return watch_url(self.video_id)


class VideoDetail(BaseModel):
    """Video details returned by the search and per-channel listing endpoints."""

    video_id: str
    title: str = UNTITLED
    description: str = ""
    thumbnail: str = ""
    channel_title: str = UNKNOWN_CHANNEL
    published_at: datetime | None = None
    duration: str = "PT0S"
    view_count: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def url(self) -> str:
        return watch_url(self.video_id)
