"""Data access helpers for working with feed items."""
from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.sql.elements import ColumnElement

from rankshare.models import FeedItem, Follow, RankingList, User

__all__ = ["FeedRepository"]

_LOAD_OPTIONS = (
    selectinload(FeedItem.user),
    selectinload(FeedItem.post),
    selectinload(FeedItem.ranking_list).selectinload(RankingList.items),
    selectinload(FeedItem.ranking_list).selectinload(RankingList.tags),
)


class FeedRepository:
    """Thin wrapper around database access for feed entities."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_by_id(self, feed_item_id: str) -> FeedItem | None:
        """Return a feed item by identifier with its content loaded."""
        result = self.session.execute(
            select(FeedItem).options(*_LOAD_OPTIONS).where(FeedItem.id == feed_item_id)
        )
        return result.scalars().first()

    def get_many(self, feed_item_ids: Iterable[str]) -> dict[str, FeedItem]:
        """Return feed items keyed by id; missing ids are simply absent."""
        ids = list(set(feed_item_ids))
        if not ids:
            return {}
        result = self.session.execute(
            select(FeedItem).options(*_LOAD_OPTIONS).where(FeedItem.id.in_(ids))
        )
        return {item.id: item for item in result.scalars()}

    def get_user_by_username(self, username: str) -> User | None:
        """Return a user by unique username."""
        result = self.session.execute(select(User).where(User.username == username))
        return result.scalars().first()

    def home_clause(self, user_id: str, *, include_self: bool) -> ColumnElement[bool]:
        """Filter matching items authored by accounts ``user_id`` follows."""
        followed = select(Follow.following_id).where(Follow.follower_id == user_id)
        clause = FeedItem.user_id.in_(followed)
        if include_self:
            clause = or_(clause, FeedItem.user_id == user_id)
        return clause

    @staticmethod
    def profile_clause(user_id: str) -> ColumnElement[bool]:
        """Filter matching items authored by ``user_id``."""
        return FeedItem.user_id == user_id

    def list_page(
        self,
        audience: ColumnElement[bool],
        after: FeedItem | None,
        take: int,
    ) -> list[FeedItem]:
        """Return up to ``take`` items ordered by (created_at desc, id desc).

        Args:
            audience: Filter selecting whose items are visible.
            after: Exclusive lower bound in the ordering; None starts at the top.
            take: Maximum number of rows to fetch.
        """
        stmt = select(FeedItem).options(*_LOAD_OPTIONS).where(audience)
        if after is not None:
            stmt = stmt.where(
                or_(
                    FeedItem.created_at < after.created_at,
                    and_(FeedItem.created_at == after.created_at, FeedItem.id < after.id),
                )
            )
        stmt = stmt.order_by(FeedItem.created_at.desc(), FeedItem.id.desc()).limit(take)
        return list(self.session.execute(stmt).scalars())
