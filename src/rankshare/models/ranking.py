"""SQLAlchemy models for ranking lists, their items and tags."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rankshare.db.session import Base
from rankshare.db.time import utcnow
from rankshare.models.common import new_id
from rankshare.models.user import User


class Sentiment(str, Enum):
    """Whether a list ranks things the author likes or dislikes."""

    LIKE = "LIKE"
    DISLIKE = "DISLIKE"


class ListStatus(str, Enum):
    """Publication state of a ranking list."""

    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"


ranking_list_tag = Table(
    "ranking_list_tag",
    Base.metadata,
    Column(
        "list_id",
        String(32),
        ForeignKey("ranking_list.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "tag_id",
        String(32),
        ForeignKey("tag.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Tag(Base):
    """Free-form label attached to ranking lists."""

    __tablename__ = "tag"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)


class RankingList(Base):
    """Ordered list of items on a subject authored by one user."""

    __tablename__ = "ranking_list"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    author_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("app_user.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    subject: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    sentiment: Mapped[Sentiment] = mapped_column(
        SAEnum(Sentiment, native_enum=False, length=16),
        nullable=False,
        default=Sentiment.LIKE,
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[ListStatus] = mapped_column(
        SAEnum(ListStatus, native_enum=False, length=16),
        nullable=False,
        default=ListStatus.DRAFT,
    )
    like_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    author: Mapped[User] = relationship("User")
    items: Mapped[list[RankedItem]] = relationship(
        "RankedItem",
        back_populates="ranking_list",
        cascade="all, delete-orphan",
        order_by="RankedItem.rank",
    )
    tags: Mapped[list[Tag]] = relationship("Tag", secondary=ranking_list_tag)


class RankedItem(Base):
    """One position within a ranking list. Ranks are 1..N and contiguous."""

    __tablename__ = "ranked_item"
    __table_args__ = (
        UniqueConstraint("list_id", "rank", name="uq_ranked_item_list_rank"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    list_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("ranking_list.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    rank: Mapped[int] = mapped_column(Integer, nullable=False)
    item_name: Mapped[str] = mapped_column(String(200), nullable=False)
    item_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_key: Mapped[str | None] = mapped_column(Text, nullable=True)

    ranking_list: Mapped[RankingList] = relationship("RankingList", back_populates="items")
