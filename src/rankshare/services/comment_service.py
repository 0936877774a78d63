"""Comment threads on ranking lists and on aggregated items.

Deleting enforces ownership; a comment that does not exist, belongs to a
different scope, or belongs to someone else produces the same
:class:`NotFoundOrForbidden` so callers cannot discover other users' comments.
"""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from rankshare.core.errors import NotFoundOrForbidden, ValidationError
from rankshare.core.settings import settings
from rankshare.models import ItemComment, RankingList, RankingListComment, User


def _clean_content(content: str) -> str:
    text = (content or "").strip()
    if not text:
        raise ValidationError("Comment must not be empty")
    if len(text) > settings.comment_max_length:
        raise ValidationError(
            f"Comments are limited to {settings.comment_max_length} characters"
        )
    return text


def list_ranking_comments(db: Session, list_id: str) -> list[RankingListComment]:
    """Return a list's comments, newest first."""
    result = db.execute(
        select(RankingListComment)
        .options(selectinload(RankingListComment.user))
        .where(RankingListComment.list_id == list_id)
        .order_by(RankingListComment.created_at.desc(), RankingListComment.id.desc())
    )
    return list(result.scalars())


def create_ranking_comment(
    db: Session,
    user: User,
    list_id: str,
    content: str,
) -> RankingListComment:
    """Attach a comment to an existing ranking list."""
    text = _clean_content(content)
    if db.get(RankingList, list_id) is None:
        raise NotFoundOrForbidden()
    comment = RankingListComment(list_id=list_id, user_id=user.id, content=text)
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return comment


def delete_ranking_comment(db: Session, user: User, list_id: str, comment_id: str) -> None:
    """Delete the caller's own comment from a ranking list."""
    comment = db.get(RankingListComment, comment_id)
    if comment is None or comment.list_id != list_id or comment.user_id != user.id:
        raise NotFoundOrForbidden()
    db.delete(comment)
    db.commit()


def list_item_comments(
    db: Session,
    subject: str,
    item_name: str | None = None,
) -> list[ItemComment]:
    """Return comments on a subject (or one of its items), oldest first."""
    stmt = (
        select(ItemComment)
        .options(selectinload(ItemComment.user))
        .where(ItemComment.subject == subject)
    )
    if item_name is None:
        stmt = stmt.where(ItemComment.item_name.is_(None))
    else:
        stmt = stmt.where(ItemComment.item_name == item_name)
    stmt = stmt.order_by(ItemComment.created_at.asc(), ItemComment.id.asc())
    return list(db.execute(stmt).scalars())


def create_item_comment(
    db: Session,
    user: User,
    subject: str,
    content: str,
    item_name: str | None = None,
) -> ItemComment:
    """Comment on a subject, or on one item within it."""
    text = _clean_content(content)
    comment = ItemComment(subject=subject, item_name=item_name, user_id=user.id, content=text)
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return comment


def delete_item_comment(db: Session, user: User, subject: str, comment_id: str) -> None:
    """Delete the caller's own comment within a subject."""
    comment = db.get(ItemComment, comment_id)
    if comment is None or comment.subject != subject or comment.user_id != user.id:
        raise NotFoundOrForbidden()
    db.delete(comment)
    db.commit()
