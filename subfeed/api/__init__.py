"""API routers for the subscription feed service."""

from subfeed.api.routes_feed import router as feed_router
from subfeed.api.routes_health import router as health_router
from subfeed.api.routes_search import router as search_router
from subfeed.api.routes_subscriptions import router as subscriptions_router

__all__ = [
    "feed_router",
    "health_router",
    "search_router",
    "subscriptions_router",
]
