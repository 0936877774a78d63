"""SQLAlchemy model for timeline entries."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rankshare.db.session import Base
from rankshare.db.time import utcnow
from rankshare.models.common import new_id
from rankshare.models.post import Post
from rankshare.models.ranking import RankingList
from rankshare.models.user import User


class FeedType(str, Enum):
    """Kind of timeline entry; selects which content pointer is set."""

    POST = "POST"
    RANKING_UPDATE = "RANKING_UPDATE"
    RETWEET = "RETWEET"
    QUOTE_RETWEET = "QUOTE_RETWEET"


# Pointers that belong to other types must stay unset. Reference pointers may
# become NULL when the referenced item is deleted.
_POINTER_CHECK = (
    "(type = 'POST' AND ranking_list_id IS NULL"
    " AND retweet_of_feed_item_id IS NULL AND quoted_feed_item_id IS NULL)"
    " OR (type = 'RANKING_UPDATE' AND post_id IS NULL"
    " AND retweet_of_feed_item_id IS NULL AND quoted_feed_item_id IS NULL)"
    " OR (type = 'RETWEET' AND post_id IS NULL AND ranking_list_id IS NULL"
    " AND quoted_feed_item_id IS NULL)"
    " OR (type = 'QUOTE_RETWEET' AND ranking_list_id IS NULL"
    " AND retweet_of_feed_item_id IS NULL)"
)


class FeedItem(Base):
    """Timeline entry pointing at exactly one piece of content.

    POST items point at a post, RANKING_UPDATE items at a ranking list,
    RETWEET items at another feed item, and QUOTE_RETWEET items at another
    feed item plus the post holding the quote text.
    """

    __tablename__ = "feed_item"
    __table_args__ = (
        CheckConstraint(_POINTER_CHECK, name="ck_feed_item_pointers"),
        Index("ix_feed_item_user_created", "user_id", "created_at", "id"),
        Index("ix_feed_item_created", "created_at", "id"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("app_user.id", ondelete="CASCADE"),
        nullable=False,
    )
    type: Mapped[FeedType] = mapped_column(
        SAEnum(FeedType, native_enum=False, length=20),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    like_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    post_id: Mapped[str | None] = mapped_column(
        String(32),
        ForeignKey("post.id", ondelete="CASCADE"),
        nullable=True,
    )
    ranking_list_id: Mapped[str | None] = mapped_column(
        String(32),
        ForeignKey("ranking_list.id", ondelete="CASCADE"),
        nullable=True,
    )
    retweet_of_feed_item_id: Mapped[str | None] = mapped_column(
        String(32),
        ForeignKey("feed_item.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    quoted_feed_item_id: Mapped[str | None] = mapped_column(
        String(32),
        ForeignKey("feed_item.id", ondelete="SET NULL"),
        nullable=True,
    )

    user: Mapped[User] = relationship("User")
    post: Mapped[Post | None] = relationship("Post")
    ranking_list: Mapped[RankingList | None] = relationship("RankingList")

    @property
    def reference_id(self) -> str | None:
        """Return the id of the feed item this entry points at, if any."""
        if self.type == FeedType.RETWEET:
            return self.retweet_of_feed_item_id
        if self.type == FeedType.QUOTE_RETWEET:
            return self.quoted_feed_item_id
        return None

    @property
    def is_reference(self) -> bool:
        """Return True for reposts and quotes."""
        return self.type in (FeedType.RETWEET, FeedType.QUOTE_RETWEET)
