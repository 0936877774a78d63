"""Cursor-paginated feed composition.

Pages are ordered by ``(created_at desc, id desc)``, a strict total order, and
the cursor is the id of the last item of the previous page (exclusive bound).
One extra row is fetched to tell whether another page exists, so a null
``next_cursor`` always means the stream is exhausted and never hides a
failure: store errors are raised as :class:`TransientStoreError`.

Known limitation: if an item before the cursor is deleted between page
fetches, the next page may shift relative to a naive reader's expectation.
Items inserted behind an already-advanced cursor are not revisited.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any, Literal

from sqlalchemy.exc import DBAPIError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from rankshare.core.errors import (
    InvalidCursorError,
    NotFoundOrForbidden,
    TransientStoreError,
    ValidationError,
)
from rankshare.core.settings import settings
from rankshare.models.feed import FeedItem
from rankshare.repositories.feed_repo import FeedRepository
from rankshare.schemas.feed import (
    FeedItemView,
    FeedPage,
    PostView,
    RankedItemView,
    RankingListView,
    ResolvedReference,
    Tombstone,
    UserSnippet,
)
from rankshare.services.media import MediaContext, MediaUrlBroker, get_media_broker
from rankshare.services.references import (
    Resolution,
    ResolvedRoot,
    TombstoneRef,
    outgoing_ids,
    resolve_reference,
)

logger = logging.getLogger(__name__)

STORE_ERRORS = (DBAPIError, PoolTimeoutError)


@dataclass(frozen=True)
class FeedAudience:
    """Selects whose items a feed shows."""

    kind: Literal["home", "profile"]
    user_id: str

    @classmethod
    def home(cls, viewer_id: str) -> FeedAudience:
        """Items authored by accounts the viewer follows."""
        return cls("home", viewer_id)

    @classmethod
    def profile(cls, author_id: str) -> FeedAudience:
        """Items authored by one account."""
        return cls("profile", author_id)


class FeedComposer:
    """Build feed pages with resolved references and signed media URLs."""

    def __init__(
        self,
        session: Session,
        broker: MediaUrlBroker | None = None,
        *,
        max_page_size: int | None = None,
        max_hops: int | None = None,
        include_self: bool | None = None,
    ) -> None:
        self.repo = FeedRepository(session)
        self.broker = broker or get_media_broker()
        self.max_page_size = max_page_size or settings.feed_max_page_size
        self.max_hops = max_hops if max_hops is not None else settings.feed_reference_max_hops
        self.include_self = (
            include_self if include_self is not None else settings.feed_include_self
        )

    async def fetch_feed(
        self,
        audience: FeedAudience,
        cursor: str | None,
        limit: int,
        context: MediaContext = MediaContext.FEED,
    ) -> FeedPage:
        """Return one page of the audience's feed.

        Args:
            audience: Home or profile filter.
            cursor: Id of the last item of the previous page, or None.
            limit: Page size, between 1 and the configured maximum.
            context: Validity window for issued media URLs.

        Raises:
            ValidationError: If ``limit`` is out of range.
            InvalidCursorError: If ``cursor`` names no existing feed item.
            TransientStoreError: If the store could not be read.
        """
        if limit < 1 or limit > self.max_page_size:
            raise ValidationError(f"limit must be between 1 and {self.max_page_size}")

        try:
            after = None
            if cursor:
                after = self.repo.get_by_id(cursor)
                if after is None:
                    raise InvalidCursorError(f"Unknown cursor {cursor!r}")

            if audience.kind == "home":
                clause = self.repo.home_clause(audience.user_id, include_self=self.include_self)
            else:
                clause = self.repo.profile_clause(audience.user_id)

            rows = self.repo.list_page(clause, after, limit + 1)
            next_cursor = None
            if len(rows) > limit:
                rows = rows[:limit]
                next_cursor = rows[-1].id
            index = self._load_references(rows)
        except STORE_ERRORS as exc:
            logger.warning("Feed read failed for %s: %s", audience, exc)
            raise TransientStoreError("Feed temporarily unavailable") from exc

        views = [self._build_view(item, index) for item in rows]
        await self._sign_media(views, context)
        return FeedPage(items=views, next_cursor=next_cursor)

    async def fetch_item(
        self,
        feed_item_id: str,
        context: MediaContext = MediaContext.FEED,
    ) -> FeedItemView:
        """Return a single feed item rendered like a page entry."""
        try:
            item = self.repo.get_by_id(feed_item_id)
            if item is None:
                raise NotFoundOrForbidden()
            index = self._load_references([item])
        except STORE_ERRORS as exc:
            logger.warning("Feed item read failed for %s: %s", feed_item_id, exc)
            raise TransientStoreError("Feed temporarily unavailable") from exc

        view = self._build_view(item, index)
        await self._sign_media([view], context)
        return view

    def _load_references(self, rows: list[FeedItem]) -> dict[str, FeedItem]:
        """Load every item reachable within the hop budget into an id index."""
        index: dict[str, FeedItem] = {item.id: item for item in rows}
        frontier = outgoing_ids(rows) - index.keys()
        for _ in range(self.max_hops):
            if not frontier:
                break
            loaded = self.repo.get_many(frontier)
            index.update(loaded)
            frontier = outgoing_ids(loaded.values()) - index.keys()
        return index

    def _build_view(self, item: FeedItem, index: dict[str, FeedItem]) -> FeedItemView:
        resolution = resolve_reference(item, index, self.max_hops)
        return _to_view(item, resolution)

    async def _sign_media(self, views: list[FeedItemView], context: MediaContext) -> None:
        slots = [slot for view in views for slot in _media_slots(view)]
        if not slots:
            return
        resolved = await self.broker.resolve_many(
            (getattr(owner, attr) for owner, attr in slots),
            context,
        )
        for owner, attr in slots:
            key = getattr(owner, attr)
            if key:
                setattr(owner, attr, resolved.get(key, key))


def _to_view(item: FeedItem, resolution: Resolution | None) -> FeedItemView:
    """Convert a feed item to its view; media fields still hold storage keys."""
    user = item.user
    post = item.post
    ranking = item.ranking_list
    return FeedItemView(
        id=item.id,
        type=item.type,
        created_at=item.created_at,
        like_count=item.like_count,
        user=UserSnippet(
            id=user.id,
            username=user.username,
            name=user.name,
            avatar_url=user.avatar_key,
        ),
        post=PostView(
            id=post.id,
            content=post.content,
            image_url=post.image_key,
            like_count=post.like_count,
            created_at=post.created_at,
        ) if post is not None else None,
        ranking_list=RankingListView(
            id=ranking.id,
            subject=ranking.subject,
            sentiment=ranking.sentiment,
            description=ranking.description,
            status=ranking.status,
            tags=sorted(tag.name for tag in ranking.tags),
            items=[
                RankedItemView(
                    rank=entry.rank,
                    item_name=entry.item_name,
                    item_description=entry.item_description,
                    image_url=entry.image_key,
                )
                for entry in ranking.items
            ],
            like_count=ranking.like_count,
            created_at=ranking.created_at,
        ) if ranking is not None else None,
        reference=_to_reference(resolution),
    )


def _to_reference(resolution: Resolution | None) -> ResolvedReference | Tombstone | None:
    if resolution is None:
        return None
    if isinstance(resolution, TombstoneRef):
        return Tombstone(feed_item_id=resolution.feed_item_id, reason=resolution.reason)
    assert isinstance(resolution, ResolvedRoot)
    return ResolvedReference(item=_to_view(resolution.item, resolution.reference))


def _media_slots(view: FeedItemView) -> Iterator[tuple[Any, str]]:
    """Yield (object, attribute) pairs holding media keys, recursing into references."""
    yield view.user, "avatar_url"
    if view.post is not None:
        yield view.post, "image_url"
    if view.ranking_list is not None:
        for entry in view.ranking_list.items:
            yield entry, "image_url"
    if isinstance(view.reference, ResolvedReference):
        yield from _media_slots(view.reference.item)
