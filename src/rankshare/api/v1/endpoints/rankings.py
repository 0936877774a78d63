# src/rankshare/api/v1/endpoints/rankings.py
"""Ranking list publishing and comment endpoints."""

from fastapi import APIRouter, Response, status

from rankshare.schemas.comment import CommentCreate, RankingListCommentOut
from rankshare.schemas.post import FeedItemCreated
from rankshare.services import comment_service
from rankshare.services.feed_service import publish_ranking_list

from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(prefix="/rankings", tags=["rankings"])


@router.post(
    "/{list_id}/publish",
    response_model=FeedItemCreated,
    status_code=status.HTTP_201_CREATED,
)
async def publish(list_id: str, db: SessionDep, current_user: CurrentUserDep) -> FeedItemCreated:
    """Publish one of the caller's ranking lists to followers' feeds."""
    item = publish_ranking_list(db, current_user, list_id)
    return FeedItemCreated(feed_item_id=item.id)


@router.get("/{list_id}/comments", response_model=list[RankingListCommentOut])
async def list_comments(list_id: str, db: SessionDep) -> list[RankingListCommentOut]:
    """List comments on a ranking list, newest first."""
    return [
        RankingListCommentOut.model_validate(comment)
        for comment in comment_service.list_ranking_comments(db, list_id)
    ]


@router.post(
    "/{list_id}/comments",
    response_model=RankingListCommentOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    list_id: str,
    payload: CommentCreate,
    db: SessionDep,
    current_user: CurrentUserDep,
) -> RankingListCommentOut:
    comment = comment_service.create_ranking_comment(db, current_user, list_id, payload.content)
    return RankingListCommentOut.model_validate(comment)


@router.delete("/{list_id}/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    list_id: str,
    comment_id: str,
    db: SessionDep,
    current_user: CurrentUserDep,
) -> Response:
    comment_service.delete_ranking_comment(db, current_user, list_id, comment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
