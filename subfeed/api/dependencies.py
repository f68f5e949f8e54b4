"""FastAPI dependencies for API routers."""

from collections.abc import AsyncGenerator
from typing import Annotated

import httpx
from fastapi import Header, HTTPException

from subfeed.auth.credential import Credential, parse_expiry
from subfeed.config import get_settings
from subfeed.youtube.client import YouTubeClient
from subfeed.youtube.executor import RateLimitedExecutor


def get_credential(
    authorization: Annotated[str | None, Header()] = None,
    x_refresh_token: Annotated[str | None, Header()] = None,
    x_token_expires_at: Annotated[str | None, Header()] = None,
) -> Credential:
    """
    Build the caller's credential from request headers.

    Headers:
        - Authorization: ``Bearer <access token>`` (required)
        - X-Refresh-Token: refresh token (optional)
        - X-Token-Expires-At: access token expiry, epoch seconds or ISO-8601 (optional)

    Raises:
        HTTPException: 401 if the access token is missing, 400 if the expiry is malformed
    """
    if not authorization:
        raise HTTPException(status_code=401, detail="Not authenticated")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="Invalid authorization header")

    try:
        expires_at = parse_expiry(x_token_expires_at)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid X-Token-Expires-At header")

    return Credential(
        access_token=token.strip(),
        refresh_token=x_refresh_token or None,
        expires_at=expires_at,
    )


async def get_catalog_client() -> AsyncGenerator[YouTubeClient, None]:
    """Dependency yielding an API-key authenticated YouTube client.

    Yields:
        YouTubeClient bound to a request-scoped HTTP connection pool
    """
    settings = get_settings()
    async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as http_client:
        executor = RateLimitedExecutor(http_client, settings.rate_limit_backoff_seconds)
        yield YouTubeClient(executor, api_key=settings.youtube_api_key)
