"""Keyword search and per-channel listing endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from subfeed.api.dependencies import get_catalog_client
from subfeed.api.errors import to_http_exception
from subfeed.youtube import catalog
from subfeed.youtube.client import YouTubeClient
from subfeed.youtube.errors import UnauthorizedError, YouTubeAPIError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["search"])
limiter = Limiter(key_func=get_remote_address)


def _translate(e: YouTubeAPIError) -> HTTPException:
    # Key-authenticated calls: a rejection means our API key, not the user
    if isinstance(e, UnauthorizedError):
        logger.error("YouTube API key missing or rejected", exc_info=True)
        return HTTPException(status_code=503, detail="Service configuration error")
    logger.error("YouTube lookup failed: %s", e, exc_info=True)
    return to_http_exception(e)


@router.get("/search/{query}")
@limiter.limit("60/minute")
async def search(
    request: Request,
    query: str,
    limit: int = Query(default=25, ge=1, le=50, description="Max results (1-50)"),
    youtube: YouTubeClient = Depends(get_catalog_client),
):
    """
    Search videos by keyword.

    Returns:
        List of videos with title, description, thumbnail, channel title,
        publish time, duration and view count
    """
    try:
        videos = await catalog.search_videos(youtube, query, max_results=limit)
    except YouTubeAPIError as e:
        raise _translate(e)
    return [v.model_dump(mode="json") for v in videos]


@router.get("/videos/{query}")
@limiter.limit("60/minute")
async def channel_videos(
    request: Request,
    query: str,
    limit: int = Query(default=20, ge=1, le=50, description="Max results (1-50)"),
    youtube: YouTubeClient = Depends(get_catalog_client),
):
    """
    Latest uploads from the channel that best matches ``query``.

    Returns:
        List of videos in playlist order, empty if no channel matches
    """
    try:
        videos = await catalog.channel_videos(youtube, query, max_results=limit)
    except YouTubeAPIError as e:
        raise _translate(e)
    return [v.model_dump(mode="json") for v in videos]
