"""SQLAlchemy models for discussion threads."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rankshare.db.session import Base
from rankshare.db.time import utcnow
from rankshare.models.common import new_id
from rankshare.models.user import User


class RankingListComment(Base):
    """Comment attached to a single ranking list."""

    __tablename__ = "ranking_list_comment"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    list_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("ranking_list.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("app_user.id", ondelete="CASCADE"),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    user: Mapped[User] = relationship("User")


class ItemComment(Base):
    """Comment on an aggregated subject, or on one item within it."""

    __tablename__ = "item_comment"
    __table_args__ = (Index("ix_item_comment_scope", "subject", "item_name"),)

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    subject: Mapped[str] = mapped_column(String(200), nullable=False)
    item_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    user_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("app_user.id", ondelete="CASCADE"),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    user: Mapped[User] = relationship("User")
