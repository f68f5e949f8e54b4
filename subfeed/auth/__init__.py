"""Authentication module for the subscription feed service."""

from subfeed.auth.credential import Credential
from subfeed.auth.identity import IdentityProvider, get_identity_provider
from subfeed.auth.router import router

__all__ = ["Credential", "IdentityProvider", "get_identity_provider", "router"]
