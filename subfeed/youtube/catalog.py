"""Stateless search and per-channel listing built on videos.list."""

import logging
from typing import Any

from pydantic import ValidationError

from .client import YouTubeClient
from .errors import MalformedEntryError
from .models import UNKNOWN_CHANNEL, UNTITLED, VideoDetail
from .parsing import as_mapping, parse_timestamp, pick_thumbnail

logger = logging.getLogger(__name__)

DETAIL_THUMBNAIL_ORDER = ("high", "medium", "default")


def parse_video_detail(item: dict[str, Any]) -> VideoDetail:
    """Convert a videos.list resource into a :class:`VideoDetail`.

    Raises:
        MalformedEntryError: If the item has no video ID or a field has the wrong type
    """
    item = as_mapping(item)
    video_id = item.get("id")
    if not video_id or not isinstance(video_id, str):
        raise MalformedEntryError("Video resource has no ID")

    snippet = as_mapping(item.get("snippet"))
    stats = as_mapping(item.get("statistics"))

    try:
        published = parse_timestamp(snippet.get("publishedAt"))
    except ValueError:
        published = None

    try:
        view_count = int(stats.get("viewCount", 0))
    except (TypeError, ValueError):
        view_count = 0

    try:
        return VideoDetail(
            video_id=video_id,
            title=snippet.get("title") or UNTITLED,
            description=snippet.get("description") or "",
            thumbnail=pick_thumbnail(snippet.get("thumbnails"), DETAIL_THUMBNAIL_ORDER),
            channel_title=snippet.get("channelTitle") or UNKNOWN_CHANNEL,
            published_at=published,
            duration=as_mapping(item.get("contentDetails")).get("duration") or "PT0S",
            view_count=view_count,
        )
    except ValidationError as e:
        raise MalformedEntryError(f"Video {video_id} has {e.error_count()} invalid field(s)") from e


async def _details(client: YouTubeClient, video_ids: list[str]) -> list[VideoDetail]:
    if not video_ids:
        return []
    details = []
    for item in await client.get_videos(video_ids):
        try:
            details.append(parse_video_detail(item))
        except MalformedEntryError as e:
            logger.warning("Skipping video resource: %s", e)
    return details


def _video_ids(ids: list[Any]) -> list[str]:
    return [vid for vid in ids if vid and isinstance(vid, str)]


async def search_videos(
    client: YouTubeClient, query: str, max_results: int = 25
) -> list[VideoDetail]:
    """Search videos by keyword and return their details."""
    items = await client.search(query, kind="video", max_results=max_results)
    video_ids = _video_ids([as_mapping(as_mapping(it).get("id")).get("videoId") for it in items])
    return await _details(client, video_ids)


async def channel_videos(
    client: YouTubeClient, query: str, max_results: int = 20
) -> list[VideoDetail]:
    """Find the channel best matching ``query`` and return its latest uploads."""
    channel_id = await client.find_channel_id(query)
    if channel_id is None:
        logger.info("No channel matches query %r", query)
        return []

    playlists = await client.get_uploads_playlists([channel_id])
    playlist_id = playlists.get(channel_id)
    if playlist_id is None:
        return []

    items, _ = await client.playlist_items_page(playlist_id, max_results)
    raw_ids = []
    for it in items:
        snippet = as_mapping(as_mapping(it).get("snippet"))
        raw_ids.append(as_mapping(snippet.get("resourceId")).get("videoId"))
    return await _details(client, _video_ids(raw_ids))
