"""Liveness and readiness endpoints."""

from fastapi import APIRouter

from subfeed.config import get_settings

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def health_check():
    """Liveness check; answers as long as the process serves requests."""
    return {"ok": True}


@router.get("/readyz")
async def readiness_check():
    """
    Report which upstream capabilities are configured.

    The feed and subscriptions endpoints need only the OAuth client. Search and
    per-channel listing also need a YouTube API key, so the service is ready
    without one but reports ``catalog`` as unavailable.

    Returns:
        ``ok`` plus a per-capability breakdown
    """
    settings = get_settings()
    oauth = bool(settings.google_client_id and settings.google_client_secret)
    catalog = bool(settings.youtube_api_key)
    return {"ok": oauth, "checks": {"oauth": oauth, "catalog": catalog}}
