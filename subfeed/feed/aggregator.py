"""Subscription feed aggregation.

Turns a user's credential into one feed of recent uploads from every channel
they follow:

1. Refresh the credential if it is about to expire
2. Resolve the followed channels (paginated subscriptions listing)
3. Resolve each channel's uploads playlist (batched channels lookup)
4. Collect recent videos from every playlist concurrently
5. Merge everything and sort newest first

Failures in steps 1-3 abort the request. A failure while collecting one
channel only costs that channel's videos.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime
from typing import Any

import httpx
from pydantic import BaseModel

from subfeed.auth.credential import Credential
from subfeed.auth.identity import IdentityProvider
from subfeed.config import Settings, get_settings
from subfeed.youtube.client import YouTubeClient
from subfeed.youtube.errors import UnauthorizedError
from subfeed.youtube.executor import RateLimitedExecutor
from subfeed.youtube.models import VideoEntry

from .collector import collect_channel_videos

logger = logging.getLogger(__name__)


class AggregatedFeed(BaseModel):
    """Result of a successful aggregation.

    ``credential`` is the credential the feed was fetched with; when
    ``refreshed`` is True it differs from the one passed in and the caller
    should keep it for later requests.
    """

    videos: list[VideoEntry]
    credential: Credential
    refreshed: bool = False


def merge_feeds(feeds: Sequence[Sequence[VideoEntry]]) -> list[VideoEntry]:
    """Flatten per-channel feeds and sort newest first.

    The sort is stable: entries with the same publish time keep the order in
    which they appear in ``feeds``.
    """
    items = [i for f in feeds for i in f]
    return sorted(items, key=lambda i: i.published_at, reverse=True)


async def ensure_fresh_credential(
    credential: Credential,
    identity: IdentityProvider,
    margin_seconds: int = 300,
    now: datetime | None = None,
) -> tuple[Credential, bool]:
    """Refresh ``credential`` if it expires within ``margin_seconds``.

    Returns:
        The credential to use and whether it was refreshed

    Raises:
        UnauthorizedError: If the refresh fails
    """
    if not credential.needs_refresh(margin_seconds, now):
        return credential, False

    logger.info("Access token expired or about to expire, refreshing")
    return await identity.refresh(credential.refresh_token), True  # type: ignore[arg-type]


async def _collect_all(
    youtube: YouTubeClient,
    playlists: dict[str, str],
    max_items: int,
    max_concurrency: int,
) -> list[list[VideoEntry]]:
    gate = asyncio.Semaphore(max_concurrency) if max_concurrency else None

    async def collect(channel_id: str, playlist_id: str) -> list[VideoEntry]:
        if gate is None:
            return await collect_channel_videos(youtube, playlist_id, max_items, channel_id)
        async with gate:
            return await collect_channel_videos(youtube, playlist_id, max_items, channel_id)

    # gather preserves argument order, so results line up with subscription order
    return await asyncio.gather(
        *(collect(channel_id, playlist_id) for channel_id, playlist_id in playlists.items())
    )


async def _run_pipeline(
    http_client: httpx.AsyncClient,
    credential: Credential,
    settings: Settings,
    sleep: Callable[[float], Awaitable[Any]],
) -> list[VideoEntry]:
    executor = RateLimitedExecutor(http_client, settings.rate_limit_backoff_seconds, sleep)
    youtube = YouTubeClient(executor, credential.access_token, settings.youtube_api_key)

    channel_ids = await youtube.list_subscribed_channel_ids()
    if not channel_ids:
        logger.info("User has no subscriptions, returning empty feed")
        return []

    playlists = await youtube.get_uploads_playlists(channel_ids, settings.channel_batch_size)
    if not playlists:
        logger.info("No uploads playlists found, returning empty feed")
        return []

    limit = settings.videos_per_channel
    feeds = await _collect_all(youtube, playlists, limit, settings.max_concurrent_channels)

    # Collectors may overshoot the cap by up to one page
    videos = merge_feeds([f[:limit] for f in feeds])
    logger.info(
        "Aggregated %d videos from %d channels", len(videos), len(playlists)
    )
    return videos


async def aggregate_subscription_feed(
    credential: Credential,
    identity: IdentityProvider,
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> AggregatedFeed:
    """Build the merged feed of recent uploads from every followed channel.

    Args:
        credential: The caller's credential
        identity: Identity provider used to refresh a stale credential
        settings: Settings to use (default: process settings)
        http_client: Shared HTTP client; one is created for the call if omitted
        sleep: Sleep used for rate-limit backoff

    Returns:
        The aggregated feed. An empty ``videos`` list is a successful result.

    Raises:
        UnauthorizedError: If the credential is missing, rejected, or cannot be refreshed
        RateLimitExhaustedError: If subscription or channel lookups stay rate limited
        UpstreamError: If subscription or channel lookups fail with another HTTP error
        TransportError: If subscription or channel lookups cannot reach YouTube
        PaginationError: If the subscriptions listing repeats a continuation token
    """
    settings = settings or get_settings()

    if not credential.access_token.strip():
        raise UnauthorizedError("No access token provided")

    credential, refreshed = await ensure_fresh_credential(
        credential, identity, settings.token_refresh_margin_seconds
    )

    if http_client is not None:
        videos = await _run_pipeline(http_client, credential, settings, sleep)
    else:
        async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
            videos = await _run_pipeline(client, credential, settings, sleep)

    return AggregatedFeed(videos=videos, credential=credential, refreshed=refreshed)
