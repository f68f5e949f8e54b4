"""Single-call executor with rate-limit classification and one retry."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from .errors import (
    RateLimitExhaustedError,
    TransportError,
    UnauthorizedError,
    UpstreamError,
)

logger = logging.getLogger(__name__)

# 403 reasons YouTube uses for short-term throttling (quotaExceeded is not one of them)
RATE_LIMIT_REASONS = frozenset({"rateLimitExceeded", "userRateLimitExceeded"})


def _error_payload(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    if not isinstance(data, dict):
        return {}
    error = data.get("error")
    return error if isinstance(error, dict) else {}


def _error_reasons(response: httpx.Response) -> set[str]:
    errors = _error_payload(response).get("errors") or []
    return {e.get("reason") for e in errors if isinstance(e, dict) and e.get("reason")}


def is_rate_limited(response: httpx.Response) -> bool:
    """Return True if the response asks the caller to slow down."""
    if response.status_code == 429:
        return True
    if response.status_code == 403:
        return bool(_error_reasons(response) & RATE_LIMIT_REASONS)
    return False


class RateLimitedExecutor:
    """Execute GET requests against the YouTube API.

    Each call is classified as success, rate limited, unauthorized, other HTTP
    error, or transport error. A rate-limited call is retried exactly once after
    sleeping ``backoff_seconds``; every other failure surfaces immediately.

    The retry adds up to ``backoff_seconds`` of latency to the caller.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        backoff_seconds: float = 60.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._client = client
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep

    async def get_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Perform a GET and return the decoded JSON body.

        Raises:
            UnauthorizedError: On HTTP 401
            RateLimitExhaustedError: If the retry is rate limited as well
            UpstreamError: On any other non-2xx status or a non-JSON body
            TransportError: On network-level failures
        """
        response = await self._send(url, params, headers)

        if is_rate_limited(response):
            logger.warning(
                "Rate limited by %s (HTTP %s), retrying once in %ss",
                _endpoint(url),
                response.status_code,
                self.backoff_seconds,
            )
            await self._sleep(self.backoff_seconds)
            response = await self._send(url, params, headers)
            if is_rate_limited(response):
                raise RateLimitExhaustedError(
                    f"Still rate limited by {_endpoint(url)} after retry"
                )

        return self._decode(url, response)

    async def _send(
        self,
        url: str,
        params: dict[str, Any] | None,
        headers: dict[str, str] | None,
    ) -> httpx.Response:
        try:
            return await self._client.get(url, params=params, headers=headers)
        except httpx.TransportError as e:
            raise TransportError(f"Request to {_endpoint(url)} failed: {e}") from e

    @staticmethod
    def _decode(url: str, response: httpx.Response) -> dict[str, Any]:
        if response.status_code == 401:
            raise UnauthorizedError("Access token rejected by YouTube")

        if not 200 <= response.status_code < 300:
            message = _error_payload(response).get("message", "")
            logger.error(
                "HTTP %s from %s: %s", response.status_code, _endpoint(url), message
            )
            raise UpstreamError(response.status_code, message)

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(response.status_code, "response body is not JSON") from e

        if not isinstance(data, dict):
            raise UpstreamError(response.status_code, "unexpected response shape")
        return data


def _endpoint(url: str) -> str:
    """Last path segment, for log lines that must not carry query strings."""
    return url.rstrip("/").rsplit("/", 1)[-1]
