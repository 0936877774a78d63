"""Like toggles with a denormalized counter on the target."""
from __future__ import annotations

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rankshare.core.errors import NotFoundOrForbidden
from rankshare.models import FeedItem, Like, LikeTargetType, Post, RankingList, User
from rankshare.schemas.like import LikeState

_TARGET_MODELS: dict[LikeTargetType, type[Post] | type[RankingList] | type[FeedItem]] = {
    LikeTargetType.POST: Post,
    LikeTargetType.RANKING_LIST: RankingList,
    LikeTargetType.FEED_ITEM: FeedItem,
}


def _require_target(db: Session, target_type: LikeTargetType, target_id: str):
    model = _TARGET_MODELS[target_type]
    target = db.get(model, target_id)
    if target is None:
        raise NotFoundOrForbidden()
    return model, target


def _has_like(db: Session, user: User, target_type: LikeTargetType, target_id: str) -> bool:
    return db.execute(
        select(Like.id).where(
            Like.user_id == user.id,
            Like.target_type == target_type,
            Like.target_id == target_id,
        )
    ).first() is not None


def like(db: Session, user: User, target_type: LikeTargetType, target_id: str) -> LikeState:
    """Like a target; liking twice is a no-op."""
    model, target = _require_target(db, target_type, target_id)
    if not _has_like(db, user, target_type, target_id):
        try:
            db.add(Like(user_id=user.id, target_type=target_type, target_id=target_id))
            db.flush()
            db.execute(
                update(model)
                .where(model.id == target_id)
                .values(like_count=model.like_count + 1)
            )
            db.commit()
        except IntegrityError:
            # A concurrent request recorded the same like first.
            db.rollback()
    db.refresh(target)
    return LikeState(liked=True, like_count=target.like_count)


def unlike(db: Session, user: User, target_type: LikeTargetType, target_id: str) -> LikeState:
    """Remove a like; unliking something not liked is a no-op."""
    model, target = _require_target(db, target_type, target_id)
    result = db.execute(
        delete(Like).where(
            Like.user_id == user.id,
            Like.target_type == target_type,
            Like.target_id == target_id,
        )
    )
    if result.rowcount:
        db.execute(
            update(model)
            .where(model.id == target_id)
            .values(like_count=model.like_count - result.rowcount)
        )
    db.commit()
    db.refresh(target)
    return LikeState(liked=False, like_count=target.like_count)
