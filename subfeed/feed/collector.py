"""Per-channel collection of recent uploads."""

import logging
from contextlib import aclosing
from functools import partial
from typing import Any

from pydantic import ValidationError

from subfeed.youtube.client import YouTubeClient
from subfeed.youtube.errors import MalformedEntryError, YouTubeAPIError
from subfeed.youtube.models import UNKNOWN_CHANNEL, UNTITLED, VideoEntry
from subfeed.youtube.pagination import iter_pages
from subfeed.youtube.parsing import as_mapping, parse_timestamp, pick_thumbnail

logger = logging.getLogger(__name__)


def parse_playlist_item(item: dict[str, Any], channel_id: str | None = None) -> VideoEntry:
    """Convert a playlistItems.list resource into a :class:`VideoEntry`.

    Title, thumbnail and channel title fall back to defaults when absent.

    Raises:
        MalformedEntryError: If the video ID or publish time is missing or invalid,
            or a field has the wrong type
    """
    snippet = as_mapping(as_mapping(item).get("snippet"))

    video_id = as_mapping(snippet.get("resourceId")).get("videoId")
    if not video_id or not isinstance(video_id, str):
        raise MalformedEntryError("Playlist item has no video ID")

    try:
        published = parse_timestamp(snippet.get("publishedAt"))
    except ValueError as e:
        raise MalformedEntryError(f"Video {video_id} has an invalid publish time: {e}") from e

    try:
        return VideoEntry(
            video_id=video_id,
            channel_id=snippet.get("channelId") or channel_id,
            published_at=published,
            title=snippet.get("title") or UNTITLED,
            thumbnail=pick_thumbnail(snippet.get("thumbnails")),
            channel_title=snippet.get("channelTitle") or UNKNOWN_CHANNEL,
        )
    except ValidationError as e:
        raise MalformedEntryError(
            f"Video {video_id} has {e.error_count()} invalid field(s)"
        ) from e


async def collect_channel_videos(
    client: YouTubeClient,
    playlist_id: str,
    max_items: int = 5,
    channel_id: str | None = None,
) -> list[VideoEntry]:
    """Collect recent videos from one channel's uploads playlist.

    Pages are requested until ``max_items`` entries have been collected or the
    playlist runs out. The cap is checked between pages, so the result can hold
    up to one page more than ``max_items``. A video seen on an earlier page is
    not added again.

    This never raises for API failures: if a page fails, the entries gathered
    from earlier pages are returned so one misbehaving channel cannot sink the
    whole feed.
    """
    videos: list[VideoEntry] = []
    seen: set[str] = set()
    fetch_page = partial(client.playlist_items_page, playlist_id, max_items)

    try:
        async with aclosing(iter_pages(fetch_page)) as pages:
            async for page in pages:
                for item in page:
                    try:
                        entry = parse_playlist_item(item, channel_id)
                    except MalformedEntryError as e:
                        logger.warning("Skipping entry in playlist %s: %s", playlist_id, e)
                        continue
                    if entry.video_id in seen:
                        logger.debug(
                            "Skipping repeated video %s in playlist %s",
                            entry.video_id,
                            playlist_id,
                        )
                        continue
                    seen.add(entry.video_id)
                    videos.append(entry)
                if len(videos) >= max_items:
                    break
    except YouTubeAPIError as e:
        logger.warning(
            "Stopped collecting playlist %s after %d videos: %s",
            playlist_id,
            len(videos),
            e,
        )

    return videos
