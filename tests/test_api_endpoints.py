"""Tests for API endpoints."""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from subfeed.api import feed_router, health_router, search_router, subscriptions_router
from subfeed.api.dependencies import get_catalog_client, get_credential
from subfeed.auth.credential import Credential
from subfeed.auth.identity import get_identity_provider
from subfeed.config import Settings
from subfeed.feed.aggregator import AggregatedFeed
from subfeed.youtube.errors import (
    RateLimitExhaustedError,
    TransportError,
    UnauthorizedError,
    UpstreamError,
)
from subfeed.youtube.models import VideoEntry


@pytest.fixture
def mock_settings():
    """Create mock settings."""
    settings = MagicMock(spec=Settings)
    settings.token_refresh_margin_seconds = 300
    settings.rate_limit_backoff_seconds = 0
    settings.http_timeout_seconds = 5
    settings.feed_deadline_seconds = None
    settings.google_client_id = "test-client-id"
    settings.google_client_secret = "test-client-secret"
    settings.youtube_api_key = "test-api-key"
    return settings


@pytest.fixture
def identity():
    identity = MagicMock()
    identity.refresh = AsyncMock()
    return identity


@pytest.fixture
def catalog_client():
    youtube = MagicMock()
    youtube.search = AsyncMock(return_value=[])
    youtube.get_videos = AsyncMock(return_value=[])
    youtube.find_channel_id = AsyncMock(return_value=None)
    youtube.get_uploads_playlists = AsyncMock(return_value={})
    youtube.playlist_items_page = AsyncMock(return_value=([], None))
    return youtube


@pytest_asyncio.fixture
async def test_app(identity, catalog_client):
    """Create a test FastAPI app with all API routers."""
    app = FastAPI()
    app.include_router(health_router)
    app.include_router(subscriptions_router)
    app.include_router(feed_router)
    app.include_router(search_router)
    app.dependency_overrides[get_identity_provider] = lambda: identity

    async def _catalog():
        yield catalog_client

    app.dependency_overrides[get_catalog_client] = _catalog
    return app


@pytest_asyncio.fixture
async def client(test_app):
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


AUTH = {"Authorization": "Bearer test-access-token"}


def make_entry(video_id: str, day: int) -> VideoEntry:
    return VideoEntry(
        video_id=video_id,
        channel_id="UC1",
        published_at=datetime(2024, 1, day, tzinfo=timezone.utc),
        title=f"Video {video_id}",
        thumbnail="https://i.ytimg.com/vi/x/mqdefault.jpg",
        channel_title="Channel One",
    )


# Health check tests


@pytest.mark.asyncio
async def test_healthz_returns_200(client):
    """Test /healthz endpoint returns 200 with ok status."""
    response = await client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"ok": True}


@pytest.mark.asyncio
async def test_readyz_reports_configured_capabilities(client, mock_settings):
    """Test /readyz reports OAuth and catalog availability."""
    with patch("subfeed.api.routes_health.get_settings", return_value=mock_settings):
        response = await client.get("/readyz")

    assert response.status_code == 200
    assert response.json() == {"ok": True, "checks": {"oauth": True, "catalog": True}}


@pytest.mark.asyncio
async def test_readyz_without_api_key_reports_catalog_unavailable(client, mock_settings):
    mock_settings.youtube_api_key = ""

    with patch("subfeed.api.routes_health.get_settings", return_value=mock_settings):
        response = await client.get("/readyz")

    assert response.json() == {"ok": True, "checks": {"oauth": True, "catalog": False}}


# Credential header tests


def test_get_credential_from_headers():
    credential = get_credential(
        authorization="Bearer abc",
        x_refresh_token="rt",
        x_token_expires_at="1717243200",
    )

    assert credential.access_token == "abc"
    assert credential.refresh_token == "rt"
    assert credential.expires_at == datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def test_get_credential_access_token_only():
    credential = get_credential(authorization="bearer abc")

    assert credential.access_token == "abc"
    assert credential.refresh_token is None
    assert credential.expires_at is None


@pytest.mark.parametrize("header", [None, "", "Basic abc", "Bearer ", "Bearer"])
def test_get_credential_rejects_bad_authorization(header):
    from fastapi import HTTPException

    with pytest.raises(HTTPException) as exc_info:
        get_credential(authorization=header)

    assert exc_info.value.status_code == 401


@pytest.mark.parametrize("expires_at", ["soon", "99999999999999999999"])
def test_get_credential_rejects_bad_expiry(expires_at):
    from fastapi import HTTPException

    with pytest.raises(HTTPException) as exc_info:
        get_credential(authorization="Bearer abc", x_token_expires_at=expires_at)

    assert exc_info.value.status_code == 400


# /api/feed tests


@pytest.mark.asyncio
async def test_feed_returns_items(client, identity, mock_settings):
    credential = Credential(access_token="test-access-token")
    feed = AggregatedFeed(
        videos=[make_entry("b", 2), make_entry("a", 1)], credential=credential
    )

    with (
        patch("subfeed.api.routes_feed.get_settings", return_value=mock_settings),
        patch(
            "subfeed.api.routes_feed.aggregate_subscription_feed",
            AsyncMock(return_value=feed),
        ) as mock_aggregate,
    ):
        response = await client.get(
            "/api/feed",
            headers={**AUTH, "X-Refresh-Token": "rt", "X-Token-Expires-At": "1717243200"},
        )

    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 2
    assert data["credential"] is None
    assert [i["video_id"] for i in data["items"]] == ["b", "a"]
    assert data["items"][0]["url"] == "https://www.youtube.com/watch?v=b"
    assert data["items"][0]["published_at"].startswith("2024-01-02T00:00:00")

    passed = mock_aggregate.call_args[0][0]
    assert passed.access_token == "test-access-token"
    assert passed.refresh_token == "rt"
    assert mock_aggregate.call_args[0][1] is identity


@pytest.mark.asyncio
async def test_feed_empty_is_success(client, mock_settings):
    feed = AggregatedFeed(videos=[], credential=Credential(access_token="t"))

    with (
        patch("subfeed.api.routes_feed.get_settings", return_value=mock_settings),
        patch(
            "subfeed.api.routes_feed.aggregate_subscription_feed",
            AsyncMock(return_value=feed),
        ),
    ):
        response = await client.get("/api/feed", headers=AUTH)

    assert response.status_code == 200
    assert response.json() == {"items": [], "count": 0, "credential": None}


@pytest.mark.asyncio
async def test_feed_returns_refreshed_credential(client, mock_settings):
    fresh = Credential(
        access_token="new-at",
        refresh_token="rt",
        expires_at=datetime(2024, 6, 1, 13, 0, tzinfo=timezone.utc),
    )
    feed = AggregatedFeed(videos=[], credential=fresh, refreshed=True)

    with (
        patch("subfeed.api.routes_feed.get_settings", return_value=mock_settings),
        patch(
            "subfeed.api.routes_feed.aggregate_subscription_feed",
            AsyncMock(return_value=feed),
        ),
    ):
        response = await client.get("/api/feed", headers=AUTH)

    assert response.json()["credential"] == {
        "access_token": "new-at",
        "refresh_token": "rt",
        "expires_at": 1717246800,
    }


@pytest.mark.asyncio
async def test_feed_requires_authorization(client):
    response = await client.get("/api/feed")

    assert response.status_code == 401


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error, status",
    [
        (UnauthorizedError("rejected"), 401),
        (RateLimitExhaustedError("limited"), 503),
        (UpstreamError(500, "Backend Error"), 502),
        (TransportError("unreachable"), 502),
    ],
)
async def test_feed_errors_are_mapped(client, mock_settings, error, status):
    with (
        patch("subfeed.api.routes_feed.get_settings", return_value=mock_settings),
        patch(
            "subfeed.api.routes_feed.aggregate_subscription_feed",
            AsyncMock(side_effect=error),
        ),
    ):
        response = await client.get("/api/feed", headers=AUTH)

    assert response.status_code == status


@pytest.mark.asyncio
async def test_feed_deadline_returns_504(client, mock_settings):
    mock_settings.feed_deadline_seconds = 0.01

    async def slow(*args, **kwargs):
        await asyncio.sleep(1)

    with (
        patch("subfeed.api.routes_feed.get_settings", return_value=mock_settings),
        patch("subfeed.api.routes_feed.aggregate_subscription_feed", side_effect=slow),
    ):
        response = await client.get("/api/feed", headers=AUTH)

    assert response.status_code == 504


# /api/subscriptions tests


@pytest.mark.asyncio
async def test_subscriptions_lists_channels(client, mock_settings):
    with (
        patch("subfeed.api.routes_subscriptions.get_settings", return_value=mock_settings),
        patch("subfeed.api.routes_subscriptions.YouTubeClient") as mock_client_class,
    ):
        youtube = MagicMock()
        youtube.list_subscriptions = AsyncMock(
            return_value=[{"channel_id": "UC1", "title": "Channel One"}]
        )
        mock_client_class.return_value = youtube

        response = await client.get("/api/subscriptions", headers=AUTH)

    assert response.status_code == 200
    assert response.json() == {
        "count": 1,
        "channels": [{"channel_id": "UC1", "title": "Channel One"}],
        "credential": None,
    }
    assert mock_client_class.call_args[0][1] == "test-access-token"


@pytest.mark.asyncio
async def test_subscriptions_token_rejected(client, mock_settings):
    with (
        patch("subfeed.api.routes_subscriptions.get_settings", return_value=mock_settings),
        patch("subfeed.api.routes_subscriptions.YouTubeClient") as mock_client_class,
    ):
        youtube = MagicMock()
        youtube.list_subscriptions = AsyncMock(side_effect=UnauthorizedError("expired"))
        mock_client_class.return_value = youtube

        response = await client.get("/api/subscriptions", headers=AUTH)

    assert response.status_code == 401


# /api/search and /api/videos tests


def video_resource(video_id: str) -> dict:
    return {
        "id": video_id,
        "snippet": {
            "title": f"Video {video_id}",
            "description": "desc",
            "publishedAt": "2024-01-15T10:30:00Z",
            "channelTitle": "Channel One",
            "thumbnails": {"high": {"url": f"https://i.ytimg.com/vi/{video_id}/hq.jpg"}},
        },
        "contentDetails": {"duration": "PT4M13S"},
        "statistics": {"viewCount": "1234"},
    }


@pytest.mark.asyncio
async def test_search_returns_video_details(client, catalog_client):
    catalog_client.search = AsyncMock(
        return_value=[
            {"id": {"kind": "youtube#video", "videoId": "v1"}},
            {"id": {"kind": "youtube#channel", "channelId": "UC1"}},
        ]
    )
    catalog_client.get_videos = AsyncMock(return_value=[video_resource("v1")])

    response = await client.get("/api/search/lofi", params={"limit": 10})

    assert response.status_code == 200
    data = response.json()
    assert len(data) == 1
    assert data[0]["video_id"] == "v1"
    assert data[0]["duration"] == "PT4M13S"
    assert data[0]["view_count"] == 1234
    catalog_client.search.assert_awaited_once_with("lofi", kind="video", max_results=10)
    catalog_client.get_videos.assert_awaited_once_with(["v1"])


@pytest.mark.asyncio
async def test_search_without_api_key_is_503(client, catalog_client):
    catalog_client.search = AsyncMock(side_effect=UnauthorizedError("no key"))

    response = await client.get("/api/search/lofi")

    assert response.status_code == 503


@pytest.mark.asyncio
async def test_channel_videos_unknown_channel_is_empty(client, catalog_client):
    response = await client.get("/api/videos/nobody")

    assert response.status_code == 200
    assert response.json() == []
    catalog_client.get_videos.assert_not_awaited()


@pytest.mark.asyncio
async def test_channel_videos_lists_uploads(client, catalog_client):
    catalog_client.find_channel_id = AsyncMock(return_value="UC1")
    catalog_client.get_uploads_playlists = AsyncMock(return_value={"UC1": "UU1"})
    catalog_client.playlist_items_page = AsyncMock(
        return_value=(
            [{"snippet": {"resourceId": {"videoId": "v1"}}}, {"snippet": {}}],
            "next",
        )
    )
    catalog_client.get_videos = AsyncMock(return_value=[video_resource("v1")])

    response = await client.get("/api/videos/somechannel")

    assert response.status_code == 200
    assert [v["video_id"] for v in response.json()] == ["v1"]
    catalog_client.playlist_items_page.assert_awaited_once_with("UU1", 20)
