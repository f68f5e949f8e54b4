"""Per-request OAuth credential value."""

from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Credential(BaseModel):
    """A user's delegated YouTube credential.

    Credentials are immutable and travel with a single request. Refreshing one
    produces a new instance that the caller is responsible for keeping.
    """

    model_config = ConfigDict(frozen=True)

    access_token: str = Field(repr=False)
    refresh_token: str | None = Field(default=None, repr=False)
    expires_at: datetime | None = None

    def needs_refresh(self, margin_seconds: int = 300, now: datetime | None = None) -> bool:
        """Return True if the credential can and should be refreshed.

        Only credentials carrying both a refresh token and an expiry qualify;
        they need refreshing once ``now`` is within ``margin_seconds`` of expiry.
        """
        if not self.refresh_token or self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at - timedelta(seconds=margin_seconds)

    def as_payload(self) -> dict[str, Any]:
        """Serialize for handing back to the client that owns the credential."""
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expires_at": int(self.expires_at.timestamp()) if self.expires_at else None,
        }

    @classmethod
    def from_token_response(
        cls,
        token: Mapping[str, Any],
        fallback_refresh_token: str | None = None,
        now: datetime | None = None,
    ) -> "Credential":
        """Build a credential from an OAuth token endpoint response.

        Google omits ``refresh_token`` on refresh responses, in which case
        ``fallback_refresh_token`` is carried over.
        """
        now = now or datetime.now(timezone.utc)

        expires_at = None
        if token.get("expires_at") is not None:
            expires_at = datetime.fromtimestamp(int(token["expires_at"]), tz=timezone.utc)
        elif token.get("expires_in") is not None:
            expires_at = now + timedelta(seconds=int(token["expires_in"]))

        return cls(
            access_token=token["access_token"],
            refresh_token=token.get("refresh_token") or fallback_refresh_token,
            expires_at=expires_at,
        )


def parse_expiry(value: str | None) -> datetime | None:
    """Parse an expiry given as epoch seconds or an ISO-8601 timestamp.

    Naive ISO timestamps are taken to be UTC.

    Raises:
        ValueError: If the value is neither, or is out of range
    """
    if value is None or not value.strip():
        return None
    value = value.strip()

    if value.isdigit():
        try:
            return datetime.fromtimestamp(int(value), tz=timezone.utc)
        except (OverflowError, OSError) as e:
            raise ValueError(f"Expiry out of range: {value}") from e

    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
