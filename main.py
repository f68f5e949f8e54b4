"""Subscription Feed - Main application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware

from subfeed.api import feed_router, health_router, search_router, subscriptions_router
from subfeed.auth.router import router as auth_router
from subfeed.config import get_settings
from subfeed.logging import setup_logging


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"

        # Prevent clickjacking attacks
        response.headers["X-Frame-Options"] = "DENY"

        # The API serves JSON and redirects only
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"

        response.headers["Referrer-Policy"] = "no-referrer"

        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    setup_logging()
    yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Subscription Feed",
        description="Recent uploads from every YouTube channel you follow, in one feed",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Configure rate limiting
    limiter = Limiter(key_func=get_remote_address)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_middleware(SecurityHeadersMiddleware)

    # Credentials travel in headers rather than cookies
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_origin],
        allow_credentials=False,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Authorization", "X-Refresh-Token", "X-Token-Expires-At", "Accept"],
    )

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(subscriptions_router)
    app.include_router(feed_router)
    app.include_router(search_router)

    return app


app = create_app()


def main():
    """Entry point for running the application."""
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8080,
        reload=get_settings().env == "dev",
    )


if __name__ == "__main__":
    main()
