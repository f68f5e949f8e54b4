"""Subscription feed endpoint for the subscription feed API."""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from subfeed.api.dependencies import get_credential
from subfeed.api.errors import to_http_exception
from subfeed.auth.credential import Credential
from subfeed.auth.identity import IdentityProvider, get_identity_provider
from subfeed.config import get_settings
from subfeed.feed.aggregator import aggregate_subscription_feed
from subfeed.youtube.errors import YouTubeAPIError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/feed", tags=["feed"])
limiter = Limiter(key_func=get_remote_address)


@router.get("")
@limiter.limit("30/minute")
async def get_feed(
    request: Request,
    credential: Credential = Depends(get_credential),
    identity: IdentityProvider = Depends(get_identity_provider),
):
    """
    Recent uploads from every channel the user follows, newest first.

    The credential is refreshed first if it is about to expire; the refreshed
    credential is returned in the response and should replace the caller's copy.

    Returns:
        JSON response with:
            - items: List of videos sorted by publish time, newest first
            - count: Number of items
            - credential: The refreshed credential, or null if unchanged
    """
    settings = get_settings()
    aggregation = aggregate_subscription_feed(credential, identity, settings=settings)

    try:
        if settings.feed_deadline_seconds:
            feed = await asyncio.wait_for(aggregation, settings.feed_deadline_seconds)
        else:
            feed = await aggregation
    except asyncio.TimeoutError:
        logger.warning("Feed aggregation exceeded %ss deadline", settings.feed_deadline_seconds)
        raise HTTPException(status_code=504, detail="Feed aggregation timed out")
    except YouTubeAPIError as e:
        logger.error("Feed aggregation failed: %s", e, exc_info=True)
        raise to_http_exception(e)

    return {
        "items": [v.model_dump(mode="json") for v in feed.videos],
        "count": len(feed.videos),
        "credential": feed.credential.as_payload() if feed.refreshed else None,
    }
