"""Incremental "load more" extension of a post listing."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from backend.schemas.post import PostListing, PostSummary

logger = logging.getLogger(__name__)


class PaginationCursor:
    """Walk a listing's ``next_page_cursor`` and append each page in order.

    Concurrency: safe under asyncio's single-threaded cooperative model.
    ``load_more`` holds a lock across the fetch, and the cursor is read only
    after the lock is acquired, so overlapping triggers queue up and each one
    fetches the page after the one before it. The cursor advances only after
    its own fetch resolves. A failed fetch leaves posts and cursor unchanged.
    """

    def __init__(
        self,
        listing: PostListing,
        fetch_page: Callable[[str], Awaitable[PostListing]],
    ) -> None:
        self._posts: list[PostSummary] = list(listing.posts)
        self._cursor = listing.next_page_cursor
        self._fetch_page = fetch_page
        self._lock = asyncio.Lock()

    @property
    def posts(self) -> tuple[PostSummary, ...]:
        return tuple(self._posts)

    @property
    def cursor(self) -> str | None:
        return self._cursor

    @property
    def has_more(self) -> bool:
        """Whether ``load_more`` would fetch anything."""
        return self._cursor is not None

    async def load_more(self) -> bool:
        """Fetch and append the next page. Returns False when exhausted."""
        if self._cursor is None:
            return False
        async with self._lock:
            cursor = self._cursor
            if cursor is None:
                return False
            page = await self._fetch_page(cursor)
            self._posts.extend(page.posts)
            self._cursor = page.next_page_cursor
            logger.debug(
                "Loaded %d more posts (total=%d, more=%s)",
                len(page.posts),
                len(self._posts),
                self._cursor is not None,
            )
            return True
