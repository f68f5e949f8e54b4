"""Continuation-token pagination over YouTube listing endpoints."""

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import aclosing
from typing import Any, TypeVar

from .errors import PaginationError

T = TypeVar("T")

# One page request: given the continuation token (None for the first page),
# return that page's items and the next token, if any.
FetchPage = Callable[[str | None], Awaitable[tuple[list[T], str | None]]]


async def iter_pages(fetch_page: FetchPage[T]) -> AsyncIterator[list[T]]:
    """Yield each page's items in order until no continuation token is returned.

    Errors raised by ``fetch_page`` propagate unchanged; pages already yielded
    stay with the consumer.

    Raises:
        PaginationError: If the API returns a token that was already followed
    """
    token: str | None = None
    seen: set[str] = set()

    while True:
        items, next_token = await fetch_page(token)
        yield items

        if not next_token:
            return
        if next_token in seen:
            raise PaginationError(f"Continuation token repeated: {next_token!r}")
        seen.add(next_token)
        token = next_token


async def paginate(fetch_page: FetchPage[T], max_items: int | None = None) -> list[T]:
    """Concatenate every page's items in page order.

    Args:
        fetch_page: Callable performing a single page request
        max_items: Stop requesting further pages once at least this many items
            have been collected. The check runs between pages, so the final page
            is kept whole and the result may exceed ``max_items``.

    Returns:
        All collected items
    """
    items: list[Any] = []
    async with aclosing(iter_pages(fetch_page)) as pages:
        async for page in pages:
            items.extend(page)
            if max_items is not None and len(items) >= max_items:
                break
    return items
