"""YouTube Data API v3 client for subscriptions, channels and playlists."""

import logging
from collections.abc import Sequence
from typing import Any

from .errors import UnauthorizedError
from .executor import RateLimitedExecutor
from .pagination import paginate

logger = logging.getLogger(__name__)

Page = tuple[list[dict[str, Any]], str | None]


class YouTubeClient:
    """Client for interacting with YouTube Data API v3.

    Every request goes through a :class:`RateLimitedExecutor`, so all calls made
    by one client share its HTTP connection pool and rate-limit policy.
    Subscription listing is authenticated with the user's bearer token; channel,
    playlist, search and video lookups use the API key when one is configured
    and fall back to the bearer token otherwise.
    """

    BASE = "https://www.googleapis.com/youtube/v3"
    PAGE_SIZE = 50
    MAX_IDS_PER_CALL = 50

    def __init__(
        self,
        executor: RateLimitedExecutor,
        access_token: str | None = None,
        api_key: str = "",
    ):
        """Initialize the client.

        Args:
            executor: Executor performing the HTTP calls
            access_token: OAuth 2.0 access token with the youtube.readonly scope
            api_key: YouTube Data API key for public-data calls
        """
        self._executor = executor
        self._headers = {"Authorization": f"Bearer {access_token}"} if access_token else {}
        self._api_key = api_key

    def _user_auth(self) -> dict[str, str]:
        if not self._headers:
            raise UnauthorizedError("No access token available")
        return self._headers

    def _public_auth(self, params: dict[str, Any]) -> dict[str, str] | None:
        if self._api_key:
            params["key"] = self._api_key
            return None
        if self._headers:
            return self._headers
        raise UnauthorizedError("Neither an API key nor an access token is configured")

    async def _get(
        self,
        resource: str,
        params: dict[str, Any],
        headers: dict[str, str] | None,
    ) -> dict[str, Any]:
        return await self._executor.get_json(
            f"{self.BASE}/{resource}", params=params, headers=headers
        )

    # Subscriptions

    async def subscriptions_page(self, token: str | None = None) -> Page:
        """Fetch one page of the authenticated user's subscriptions."""
        params: dict[str, Any] = {"part": "snippet", "mine": "true", "maxResults": self.PAGE_SIZE}
        if token:
            params["pageToken"] = token

        data = await self._get("subscriptions", params, self._user_auth())
        return data.get("items", []), data.get("nextPageToken")

    async def list_subscriptions(self) -> list[dict[str, Any]]:
        """Fetch all channel subscriptions for the authenticated user.

        Returns:
            Deduplicated list of dicts with keys:
                - channel_id (str): YouTube channel ID
                - title (str | None): Channel title

        Raises:
            UnauthorizedError: If the access token is rejected
        """
        items = await paginate(self.subscriptions_page)

        seen: set[str] = set()
        unique: list[dict[str, Any]] = []
        for it in items:
            snippet = it.get("snippet", {})
            rid = snippet.get("resourceId", {})
            channel_id = rid.get("channelId")
            if rid.get("kind") != "youtube#channel" or not channel_id:
                continue
            if channel_id in seen:
                continue
            seen.add(channel_id)
            unique.append({"channel_id": channel_id, "title": snippet.get("title")})

        return unique

    async def list_subscribed_channel_ids(self) -> list[str]:
        """Fetch the IDs of every channel the user follows, in arrival order.

        Raises:
            UnauthorizedError: If the access token is rejected
        """
        items = await paginate(self.subscriptions_page)

        channel_ids = []
        for it in items:
            rid = it.get("snippet", {}).get("resourceId", {})
            if rid.get("kind") == "youtube#channel" and rid.get("channelId"):
                channel_ids.append(rid["channelId"])

        logger.info("Resolved %d subscribed channels", len(channel_ids))
        return channel_ids

    # Channels

    async def get_uploads_playlists(
        self, channel_ids: Sequence[str], batch_size: int | None = None
    ) -> dict[str, str]:
        """Map channel IDs to their uploads playlist IDs.

        Channels are looked up in batches of at most ``MAX_IDS_PER_CALL``.
        Channels without an uploads playlist are left out of the result.

        Returns:
            Mapping ordered like ``channel_ids``
        """
        size = min(batch_size or self.MAX_IDS_PER_CALL, self.MAX_IDS_PER_CALL)
        found: dict[str, str] = {}

        for start in range(0, len(channel_ids), size):
            batch = channel_ids[start : start + size]
            params: dict[str, Any] = {
                "part": "contentDetails",
                "id": ",".join(batch),
                "maxResults": len(batch),
            }
            data = await self._get("channels", params, self._public_auth(params))

            for item in data.get("items", []):
                uploads = (
                    item.get("contentDetails", {})
                    .get("relatedPlaylists", {})
                    .get("uploads")
                )
                if uploads:
                    found[item.get("id")] = uploads
                else:
                    logger.warning("Channel %s has no uploads playlist", item.get("id"))

        playlists = {cid: found[cid] for cid in channel_ids if cid in found}
        logger.info(
            "Resolved %d uploads playlists for %d channels", len(playlists), len(channel_ids)
        )
        return playlists

    async def find_channel_id(self, query: str) -> str | None:
        """Return the ID of the best channel match for a free-text query."""
        for item in await self.search(query, kind="channel", max_results=1):
            channel_id = item.get("id", {}).get("channelId")
            if channel_id:
                return channel_id
        return None

    # Playlist items

    async def playlist_items_page(
        self, playlist_id: str, page_size: int, token: str | None = None
    ) -> Page:
        """Fetch one page of a playlist's items."""
        params: dict[str, Any] = {
            "part": "snippet",
            "playlistId": playlist_id,
            "maxResults": page_size,
        }
        if token:
            params["pageToken"] = token

        data = await self._get("playlistItems", params, self._public_auth(params))
        return data.get("items", []), data.get("nextPageToken")

    # Search and video details

    async def search(
        self, query: str, kind: str = "video", max_results: int = 25
    ) -> list[dict[str, Any]]:
        """Run a single search.list call and return its raw items."""
        params: dict[str, Any] = {
            "part": "snippet",
            "type": kind,
            "q": query,
            "maxResults": max_results,
        }
        data = await self._get("search", params, self._public_auth(params))
        return data.get("items", [])

    async def get_videos(self, video_ids: Sequence[str]) -> list[dict[str, Any]]:
        """Fetch snippet, duration and statistics for up to 50 videos per call."""
        videos: list[dict[str, Any]] = []
        for start in range(0, len(video_ids), self.MAX_IDS_PER_CALL):
            batch = video_ids[start : start + self.MAX_IDS_PER_CALL]
            params: dict[str, Any] = {
                "part": "snippet,contentDetails,statistics",
                "id": ",".join(batch),
                "maxResults": len(batch),
            }
            data = await self._get("videos", params, self._public_auth(params))
            videos.extend(data.get("items", []))
        return videos
