"""Fetch-on-scroll paging state for one feed at a time.

States::

    idle -> fetching_initial -> idle_with_data | reached_end | error
    idle_with_data -> fetching_more -> idle_with_data | reached_end | error

At most one fetch is in flight for the active key; triggers that arrive while
one is running are ignored rather than queued. Switching keys discards the
accumulated pages and bumps a generation counter, so a fetch that completes
for an abandoned key is dropped instead of being merged into the new feed.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum

from rankshare.core.errors import InvalidCursorError, RankshareError, TransientStoreError
from rankshare.core.settings import settings
from rankshare.schemas.feed import FeedItemView, FeedPage, ResolvedReference

from .cache import TagCacheRegistry
from .feed_client import FeedKey
from .optimistic import OptimisticValue

logger = logging.getLogger(__name__)

PageFetcher = Callable[[FeedKey, str | None, int], Awaitable[FeedPage]]


class PaginationState(str, Enum):
    IDLE = "idle"
    FETCHING_INITIAL = "fetching_initial"
    IDLE_WITH_DATA = "idle_with_data"
    FETCHING_MORE = "fetching_more"
    REACHED_END = "reached_end"
    ERROR = "error"


@dataclass
class LoadedFeed:
    """Pages accumulated for one key, as stored in the cache."""

    pages: list[FeedPage] = field(default_factory=list)
    next_cursor: str | None = None
    exhausted: bool = False


class FeedPaginationController:
    """Drives incremental page loading for the active feed key."""

    def __init__(
        self,
        fetch_page: PageFetcher,
        *,
        limit: int | None = None,
        cache: TagCacheRegistry[FeedKey, LoadedFeed] | None = None,
    ) -> None:
        self.fetch_page = fetch_page
        self.limit = limit or settings.feed_default_page_size
        self.cache = cache
        self.key: FeedKey | None = None
        self.state = PaginationState.IDLE
        self.error: RankshareError | None = None
        self._loaded = LoadedFeed()
        self._generation = 0
        self._in_flight: int | None = None

    @property
    def pages(self) -> list[FeedPage]:
        return self._loaded.pages

    @property
    def next_cursor(self) -> str | None:
        return self._loaded.next_cursor

    @property
    def items(self) -> list[FeedItemView]:
        return [item for page in self._loaded.pages for item in page.items]

    @property
    def is_fetching(self) -> bool:
        return self._in_flight == self._generation

    async def set_key(self, key: FeedKey) -> None:
        """Make ``key`` the active feed, restarting from its first page.

        A cached page sequence for ``key`` is restored without a request.
        """
        if key == self.key and self.state != PaginationState.IDLE:
            return
        self._reset(key)
        cached = self.cache.get(key) if self.cache is not None else None
        if cached is not None:
            self._loaded = LoadedFeed(list(cached.pages), cached.next_cursor, cached.exhausted)
            self.state = (
                PaginationState.REACHED_END if cached.exhausted else PaginationState.IDLE_WITH_DATA
            )
            return
        await self._fetch(None, PaginationState.FETCHING_INITIAL)

    async def load_more(self) -> None:
        """Scroll-proximity trigger: fetch the next page when one is due."""
        if self.is_fetching or self.state != PaginationState.IDLE_WITH_DATA:
            return
        await self._fetch(self._loaded.next_cursor, PaginationState.FETCHING_MORE)

    async def retry(self) -> None:
        """Repeat the failed fetch; already loaded pages are kept.

        A rejected cursor cannot be retried, so the feed restarts from the top.
        """
        if self.is_fetching or self.state != PaginationState.ERROR:
            return
        if isinstance(self.error, InvalidCursorError):
            # The cursor item is gone; start the feed over.
            await self.refresh()
        elif self._loaded.pages:
            await self._fetch(self._loaded.next_cursor, PaginationState.FETCHING_MORE)
        else:
            await self._fetch(None, PaginationState.FETCHING_INITIAL)

    async def refresh(self) -> None:
        """Drop everything loaded for the active key and fetch it again.

        Ignored while a fetch is in flight; that fetch's page is applied.
        """
        if self.key is None or self.is_fetching:
            return
        if self.cache is not None:
            self.cache.discard(self.key)
        key = self.key
        self._reset(key)
        await self._fetch(None, PaginationState.FETCHING_INITIAL)

    def abandon(self) -> None:
        """Forget the active key; any fetch still running for it is discarded."""
        self._reset(None)

    def apply_local(self, feed_item_id: str, mutate: Callable[[FeedItemView], None]) -> int:
        """Apply a local edit to every loaded view of ``feed_item_id``.

        The edit lives only in memory and is superseded by the next refetch.

        Returns:
            How many views were changed.
        """
        changed = 0
        for view in self._views():
            if view.id == feed_item_id:
                mutate(view)
                changed += 1
        return changed

    async def toggle_like(
        self,
        feed_item_id: str,
        liked: bool,
        send: Callable[[], Awaitable[int]],
        invalidate_tags: Iterable[str] = ("feed",),
    ) -> int:
        """Optimistically adjust the like count of loaded views of an item.

        Args:
            feed_item_id: Feed item being liked or unliked.
            liked: True to like, False to unlike.
            send: Performs the request and returns the server's like count.
            invalidate_tags: Cache tags dropped once the server confirms, so
                other feeds showing the item refetch it. The active feed is
                stored again with the confirmed count.

        Returns:
            The confirmed like count.

        Raises:
            RankshareError: If the server rejected the change; the count is restored.
        """
        current = next((v.like_count for v in self._views() if v.id == feed_item_id), 0)

        def write(count: int) -> None:
            self.apply_local(feed_item_id, lambda view: setattr(view, "like_count", count))

        value = OptimisticValue(current, on_rollback=write)
        tentative = max(0, current + (1 if liked else -1))
        write(tentative)
        confirmed = await value.apply(tentative, send)
        write(confirmed)
        if self.cache is not None:
            for tag in invalidate_tags:
                self.cache.invalidate(tag)
            self._store()
        return confirmed

    def _views(self) -> Iterator[FeedItemView]:
        for page in self._loaded.pages:
            for view in page.items:
                yield view
                reference = view.reference
                while isinstance(reference, ResolvedReference):
                    yield reference.item
                    reference = reference.item.reference

    def _reset(self, key: FeedKey | None) -> None:
        self._generation += 1
        self.key = key
        self._loaded = LoadedFeed()
        self.error = None
        self.state = PaginationState.IDLE

    async def _fetch(self, cursor: str | None, state: PaginationState) -> None:
        key = self.key
        if key is None:
            return
        generation = self._generation
        self._in_flight = generation
        self.state = state
        try:
            page = await self.fetch_page(key, cursor, self.limit)
        except asyncio.CancelledError:
            if generation == self._generation:
                self.error = TransientStoreError("Feed fetch was cancelled")
                self.state = PaginationState.ERROR
            raise
        except Exception as exc:
            if generation != self._generation:
                return
            if isinstance(exc, RankshareError):
                error = exc
            else:
                logger.error("Unexpected error fetching %s after %s", key, cursor, exc_info=True)
                error = TransientStoreError(f"Feed fetch failed: {exc}")
            logger.warning("Fetching %s after %s failed: %s", key, cursor, error)
            self.error = error
            self.state = PaginationState.ERROR
            return
        finally:
            if self._in_flight == generation:
                self._in_flight = None

        if generation != self._generation:
            logger.debug("Discarding page for abandoned key %s", key)
            return

        self._loaded.pages.append(page)
        self._loaded.next_cursor = page.next_cursor
        self._loaded.exhausted = page.next_cursor is None
        self.error = None
        self.state = (
            PaginationState.REACHED_END
            if self._loaded.exhausted
            else PaginationState.IDLE_WITH_DATA
        )
        self._store()

    def _store(self) -> None:
        if self.cache is None or self.key is None or not self._loaded.pages:
            return
        self.cache.set(
            self.key,
            LoadedFeed(list(self._loaded.pages), self._loaded.next_cursor, self._loaded.exhausted),
            self.key.tags,
        )
