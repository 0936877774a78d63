# src/rankshare/api/v1/endpoints/posts.py
"""Post creation endpoint."""

from fastapi import APIRouter, status

from rankshare.schemas.post import FeedItemCreated, PostCreate
from rankshare.services.feed_service import create_post

from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(prefix="/posts", tags=["posts"])


@router.post("", response_model=FeedItemCreated, status_code=status.HTTP_201_CREATED)
async def create(
    payload: PostCreate,
    db: SessionDep,
    current_user: CurrentUserDep,
) -> FeedItemCreated:
    """Create a post and its feed item.

    Args:
        payload: Post text and optional image key
        db: Database session
        current_user: Authenticated author

    Returns:
        Identifiers of the created feed item and post
    """
    item = create_post(db, current_user, payload.content, payload.image_key)
    return FeedItemCreated(feed_item_id=item.id, post_id=item.post_id)
