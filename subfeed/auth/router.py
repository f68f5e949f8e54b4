"""FastAPI router for the Google OAuth login flow."""

import logging
import secrets
import time
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from jose import JWTError, jwt
from slowapi import Limiter
from slowapi.util import get_remote_address

from subfeed.config import get_settings
from subfeed.youtube.errors import UnauthorizedError

from .credential import Credential
from .identity import IdentityProvider, get_identity_provider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])
limiter = Limiter(key_func=get_remote_address)

STATE_TTL_SECONDS = 600
STATE_PURPOSE = "oauth_state"


def _create_state_token() -> str:
    """Create a signed, short-lived OAuth state value."""
    settings = get_settings()
    now = int(time.time())
    payload = {
        "nonce": secrets.token_urlsafe(16),
        "purpose": STATE_PURPOSE,
        "iat": now,
        "exp": now + STATE_TTL_SECONDS,
    }
    return jwt.encode(payload, settings.app_secret_key, algorithm="HS256")


def _verify_state_token(state: str) -> bool:
    """Return True if the state was issued by this service and has not expired."""
    settings = get_settings()
    try:
        payload = jwt.decode(state, settings.app_secret_key, algorithms=["HS256"])
    except JWTError:
        return False
    return payload.get("purpose") == STATE_PURPOSE


def _frontend_redirect(fragment: dict[str, str]) -> RedirectResponse:
    # Tokens go in the fragment so they never reach server logs
    settings = get_settings()
    url = f"{settings.frontend_origin.rstrip('/')}/#{urlencode(fragment)}"
    return RedirectResponse(url, status_code=302)


def credential_fragment(credential: Credential) -> dict[str, str]:
    return {k: str(v) for k, v in credential.as_payload().items() if v is not None}


@router.get("/login")
@limiter.limit("10/minute")
async def login(
    request: Request,
    identity: IdentityProvider = Depends(get_identity_provider),
):
    """
    Initiate the OAuth login flow with Google.

    Redirects to Google consent with the youtube.readonly scope and offline
    access so that a refresh token is issued.
    """
    ip_address = request.client.host if request.client else "unknown"
    logger.info(f"Login attempt initiated from IP: {ip_address}")

    url = await identity.authorization_url(_create_state_token())
    return RedirectResponse(url, status_code=302)


@router.get("/callback")
@limiter.limit("10/minute")
async def callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    identity: IdentityProvider = Depends(get_identity_provider),
):
    """
    Handle the OAuth callback from Google.

    Exchanges the authorization code for a credential and hands it to the
    frontend in the URL fragment. The service keeps no copy of it.
    """
    ip_address = request.client.host if request.client else "unknown"

    if error or not code:
        logger.info(f"OAuth callback without code from ip={ip_address}: {error}")
        return _frontend_redirect({"error": "auth_denied"})

    if not state or not _verify_state_token(state):
        logger.warning(f"OAuth callback with invalid state from ip={ip_address}")
        return _frontend_redirect({"error": "invalid_state"})

    try:
        credential = await identity.exchange_code(code)
    except UnauthorizedError:
        logger.error(f"OAuth code exchange failed from IP: {ip_address}", exc_info=True)
        return _frontend_redirect({"error": "auth_failed"})

    logger.info(
        f"User authenticated: refresh_token={'present' if credential.refresh_token else 'absent'}, "
        f"ip={ip_address}"
    )
    return _frontend_redirect(credential_fragment(credential))
