# src/rankshare/api/v1/endpoints/likes.py
"""Like toggle endpoints."""

from fastapi import APIRouter

from rankshare.models import LikeTargetType
from rankshare.schemas.like import LikeState
from rankshare.services import like_service

from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(prefix="/likes", tags=["likes"])


@router.put("/{target_type}/{target_id}", response_model=LikeState)
async def like(
    target_type: LikeTargetType,
    target_id: str,
    db: SessionDep,
    current_user: CurrentUserDep,
) -> LikeState:
    """Like a post, ranking list or feed item. Repeating is a no-op."""
    return like_service.like(db, current_user, target_type, target_id)


@router.delete("/{target_type}/{target_id}", response_model=LikeState)
async def unlike(
    target_type: LikeTargetType,
    target_id: str,
    db: SessionDep,
    current_user: CurrentUserDep,
) -> LikeState:
    """Remove the caller's like. Repeating is a no-op."""
    return like_service.unlike(db, current_user, target_type, target_id)
