"""Google OAuth 2.0 identity provider."""

import logging

import httpx
from authlib.integrations.base_client import OAuthError
from authlib.integrations.httpx_client import AsyncOAuth2Client

from subfeed.config import Settings, get_settings
from subfeed.youtube.errors import UnauthorizedError

from .credential import Credential

logger = logging.getLogger(__name__)

GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
YOUTUBE_READONLY_SCOPE = "https://www.googleapis.com/auth/youtube.readonly"


class IdentityProvider:
    """Issues and refreshes YouTube credentials through Google OAuth."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        scope: str = YOUTUBE_READONLY_SCOPE,
        timeout: float = 15.0,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.scope = scope
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "IdentityProvider":
        return cls(
            client_id=settings.google_client_id,
            client_secret=settings.google_client_secret,
            redirect_uri=str(settings.google_redirect_uri),
            timeout=settings.http_timeout_seconds,
        )

    def _client(self) -> AsyncOAuth2Client:
        return AsyncOAuth2Client(
            client_id=self.client_id,
            client_secret=self.client_secret,
            scope=self.scope,
            redirect_uri=self.redirect_uri,
            timeout=self.timeout,
        )

    async def authorization_url(self, state: str) -> str:
        """Build the consent URL, requesting offline access so a refresh token is issued."""
        async with self._client() as client:
            url, _ = client.create_authorization_url(
                GOOGLE_AUTHORIZE_URL,
                state=state,
                access_type="offline",
                prompt="consent",
            )
        return url

    async def exchange_code(self, code: str) -> Credential:
        """Exchange an authorization code for a credential.

        Raises:
            UnauthorizedError: If Google rejects the code or cannot be reached
        """
        try:
            async with self._client() as client:
                token = await client.fetch_token(GOOGLE_TOKEN_URL, code=code)
        except (OAuthError, httpx.HTTPError) as e:
            logger.warning("Authorization code exchange failed: %s", e)
            raise UnauthorizedError("Authorization code exchange failed") from e

        return Credential.from_token_response(token)

    async def refresh(self, refresh_token: str) -> Credential:
        """Obtain a new credential from a refresh token.

        Raises:
            UnauthorizedError: If the refresh token is rejected or Google cannot be reached
        """
        try:
            async with self._client() as client:
                token = await client.refresh_token(GOOGLE_TOKEN_URL, refresh_token=refresh_token)
        except (OAuthError, httpx.HTTPError) as e:
            logger.warning("Credential refresh failed: %s", e)
            raise UnauthorizedError("Failed to refresh access token") from e

        return Credential.from_token_response(token, fallback_refresh_token=refresh_token)


def get_identity_provider() -> IdentityProvider:
    """Dependency returning an identity provider configured from settings."""
    return IdentityProvider.from_settings(get_settings())
