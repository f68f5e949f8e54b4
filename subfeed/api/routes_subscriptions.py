"""Subscription listing endpoint for the subscription feed API."""

import logging

import httpx
from fastapi import APIRouter, Depends, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from subfeed.api.dependencies import get_credential
from subfeed.api.errors import to_http_exception
from subfeed.auth.credential import Credential
from subfeed.auth.identity import IdentityProvider, get_identity_provider
from subfeed.config import get_settings
from subfeed.feed.aggregator import ensure_fresh_credential
from subfeed.youtube.client import YouTubeClient
from subfeed.youtube.errors import YouTubeAPIError
from subfeed.youtube.executor import RateLimitedExecutor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/subscriptions", tags=["subscriptions"])
limiter = Limiter(key_func=get_remote_address)


@router.get("")
@limiter.limit("30/minute")
async def list_subscriptions(
    request: Request,
    credential: Credential = Depends(get_credential),
    identity: IdentityProvider = Depends(get_identity_provider),
):
    """
    List the channels the user is subscribed to.

    Returns:
        A response with count of channels, list of channels, and the refreshed
        credential (or null if unchanged)
    """
    settings = get_settings()

    try:
        credential, refreshed = await ensure_fresh_credential(
            credential, identity, settings.token_refresh_margin_seconds
        )
        async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as http_client:
            executor = RateLimitedExecutor(http_client, settings.rate_limit_backoff_seconds)
            youtube = YouTubeClient(executor, credential.access_token)
            subscriptions = await youtube.list_subscriptions()
    except YouTubeAPIError as e:
        logger.error("Failed to fetch subscriptions from YouTube: %s", e, exc_info=True)
        raise to_http_exception(e)

    return {
        "count": len(subscriptions),
        "channels": subscriptions,
        "credential": credential.as_payload() if refreshed else None,
    }
