"""SQLAlchemy model for likes on posts, ranking lists and feed items."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from rankshare.db.session import Base
from rankshare.db.time import utcnow
from rankshare.models.common import new_id


class LikeTargetType(str, Enum):
    """Kinds of content that can be liked."""

    POST = "POST"
    RANKING_LIST = "RANKING_LIST"
    FEED_ITEM = "FEED_ITEM"


class Like(Base):
    """A user's like of one target.

    The target's ``like_count`` column is denormalized and must always equal
    the number of rows referencing it.
    """

    __tablename__ = "content_like"
    __table_args__ = (
        UniqueConstraint("user_id", "target_type", "target_id", name="uq_like_target"),
        Index("ix_like_target", "target_type", "target_id"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("app_user.id", ondelete="CASCADE"),
        nullable=False,
    )
    target_type: Mapped[LikeTargetType] = mapped_column(
        SAEnum(LikeTargetType, native_enum=False, length=20),
        nullable=False,
    )
    target_id: Mapped[str] = mapped_column(String(32), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
