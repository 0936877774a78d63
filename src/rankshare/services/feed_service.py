"""Service-level helpers that create and remove feed items.

Every feed item is created in the same transaction as the content it points
at, so a committed item always has its content pointer set.
"""
from __future__ import annotations

import logging

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rankshare.core.errors import NotFoundOrForbidden, ValidationError
from rankshare.core.settings import settings
from rankshare.models import (
    FeedItem,
    FeedType,
    Like,
    LikeTargetType,
    ListStatus,
    Post,
    RankingList,
    User,
)

logger = logging.getLogger(__name__)


def _clean_post_content(content: str, image_key: str | None) -> str:
    text = (content or "").strip()
    if not text and not image_key:
        raise ValidationError("Enter some text or attach an image")
    if len(text) > settings.post_max_length:
        raise ValidationError(f"Posts are limited to {settings.post_max_length} characters")
    return text


def _commit(db: Session) -> None:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


def create_post(
    db: Session,
    author: User,
    content: str,
    image_key: str | None = None,
) -> FeedItem:
    """Create a post together with its POST feed item.

    Args:
        db: Database session.
        author: Posting user.
        content: Post text, at most ``POST_MAX_LENGTH`` characters after trimming.
        image_key: Optional storage key of an uploaded image.

    Returns:
        The new feed item.

    Raises:
        ValidationError: If the text is empty without an image, or too long.
    """
    text = _clean_post_content(content, image_key)
    post = Post(author_id=author.id, content=text, image_key=image_key)
    db.add(post)
    db.flush()
    item = FeedItem(user_id=author.id, type=FeedType.POST, post_id=post.id)
    db.add(item)
    _commit(db)
    logger.info("User %s created post %s", author.id, post.id)
    return item


def _validate_ranks(ranking: RankingList) -> None:
    ranks = sorted(entry.rank for entry in ranking.items)
    if not ranks:
        raise ValidationError("A ranking list needs at least one item")
    if ranks != list(range(1, len(ranks) + 1)):
        raise ValidationError("Ranks must be unique and contiguous starting at 1")


def publish_ranking_list(db: Session, author: User, list_id: str) -> FeedItem:
    """Publish a ranking list and announce it with a RANKING_UPDATE item.

    Raises:
        NotFoundOrForbidden: If the list is missing or owned by someone else.
        ValidationError: If the list's ranks are not 1..N.
    """
    ranking = db.get(RankingList, list_id)
    if ranking is None or ranking.author_id != author.id:
        raise NotFoundOrForbidden()
    _validate_ranks(ranking)

    ranking.status = ListStatus.PUBLISHED
    item = FeedItem(user_id=author.id, type=FeedType.RANKING_UPDATE, ranking_list_id=ranking.id)
    db.add(item)
    _commit(db)
    logger.info("User %s published ranking list %s", author.id, ranking.id)
    return item


def _require_feed_item(db: Session, feed_item_id: str) -> FeedItem:
    target = db.get(FeedItem, feed_item_id)
    if target is None:
        raise NotFoundOrForbidden()
    return target


def retweet(db: Session, user: User, feed_item_id: str) -> FeedItem:
    """Repost a feed item; reposting the same item twice returns the first repost."""
    target = _require_feed_item(db, feed_item_id)
    existing = db.execute(
        select(FeedItem).where(
            FeedItem.user_id == user.id,
            FeedItem.type == FeedType.RETWEET,
            FeedItem.retweet_of_feed_item_id == target.id,
        )
    ).scalars().first()
    if existing is not None:
        return existing

    item = FeedItem(user_id=user.id, type=FeedType.RETWEET, retweet_of_feed_item_id=target.id)
    db.add(item)
    _commit(db)
    logger.info("User %s retweeted %s as %s", user.id, target.id, item.id)
    return item


def undo_retweet(db: Session, user: User, feed_item_id: str) -> int:
    """Remove the user's reposts of a feed item and return how many were removed."""
    result = db.execute(
        delete(FeedItem).where(
            FeedItem.user_id == user.id,
            FeedItem.type == FeedType.RETWEET,
            FeedItem.retweet_of_feed_item_id == feed_item_id,
        )
    )
    _commit(db)
    return result.rowcount or 0


def quote_retweet(
    db: Session,
    user: User,
    feed_item_id: str,
    content: str,
    image_key: str | None = None,
) -> FeedItem:
    """Quote a feed item with a comment stored as a new post."""
    target = _require_feed_item(db, feed_item_id)
    text = _clean_post_content(content, image_key)

    post = Post(author_id=user.id, content=text, image_key=image_key)
    db.add(post)
    db.flush()
    item = FeedItem(
        user_id=user.id,
        type=FeedType.QUOTE_RETWEET,
        post_id=post.id,
        quoted_feed_item_id=target.id,
    )
    db.add(item)
    _commit(db)
    logger.info("User %s quoted %s as %s", user.id, target.id, item.id)
    return item


def delete_feed_item(db: Session, user: User, feed_item_id: str) -> None:
    """Delete one of the user's own feed items.

    POST and QUOTE_RETWEET items take their post with them. Items that
    referenced the deleted one keep existing and render a tombstone.

    Raises:
        NotFoundOrForbidden: If the item is missing or owned by someone else.
    """
    item = db.get(FeedItem, feed_item_id)
    if item is None or item.user_id != user.id:
        raise NotFoundOrForbidden()

    post_id = item.post_id
    db.execute(
        delete(Like).where(
            or_(
                (Like.target_type == LikeTargetType.FEED_ITEM) & (Like.target_id == item.id),
                (Like.target_type == LikeTargetType.POST) & (Like.target_id == post_id),
            )
        )
    )
    db.delete(item)
    db.flush()
    if post_id is not None:
        post = db.get(Post, post_id)
        if post is not None:
            db.delete(post)
    _commit(db)
    logger.info("User %s deleted feed item %s", user.id, feed_item_id)
