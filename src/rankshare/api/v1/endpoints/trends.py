# src/rankshare/api/v1/endpoints/trends.py
"""Trend snapshot reads and item discussion endpoints."""

from typing import Literal

from fastapi import APIRouter, Query, Response, status

from rankshare.core.errors import ValidationError
from rankshare.core.settings import settings
from rankshare.models import TrendAggregate, TrendPeriod
from rankshare.schemas.comment import CommentCreate, ItemCommentOut
from rankshare.schemas.trend import TrendResponse
from rankshare.services import comment_service
from rankshare.services.trend_aggregator import read_trend

from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(prefix="/trends", tags=["trends"])


def _parse_period(value: str) -> TrendPeriod:
    try:
        return TrendPeriod(value.upper())
    except ValueError as err:
        raise ValidationError(f"Unknown trend period {value!r}") from err


def _parse_kind(value: str) -> TrendAggregate:
    try:
        return TrendAggregate(value.lower())
    except ValueError as err:
        raise ValidationError(f"Unknown trend kind {value!r}") from err


@router.get("/{period}/{kind}", response_model=TrendResponse)
async def get_trend(
    period: str,
    kind: str,
    db: SessionDep,
    subject: str | None = Query(None, description="Restrict item scores to one subject"),
    score: Literal["borda", "average"] = Query("borda", description="Item score ordering"),
    limit: int | None = Query(None, ge=1, le=settings.trends_top_n),
) -> TrendResponse:
    """Return the latest committed snapshot of one aggregate.

    Args:
        period: ``weekly`` or ``monthly``
        kind: ``subject``, ``tag`` or ``item``
        db: Database session
        subject: Subject filter for item scores
        score: ``borda`` (higher is better) or ``average`` (lower is better)
        limit: Maximum number of entries

    Returns:
        Ranked entries and the calculation date they come from
    """
    return read_trend(
        db,
        _parse_period(period),
        _parse_kind(kind),
        subject=subject,
        score=score,
        limit=limit,
    )


@router.get("/subjects/{subject}/comments", response_model=list[ItemCommentOut])
async def list_item_comments(
    subject: str,
    db: SessionDep,
    item_name: str | None = Query(None, description="Item within the subject"),
) -> list[ItemCommentOut]:
    """List comments on a subject or one of its items, oldest first."""
    return [
        ItemCommentOut.model_validate(comment)
        for comment in comment_service.list_item_comments(db, subject, item_name)
    ]


@router.post(
    "/subjects/{subject}/comments",
    response_model=ItemCommentOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_item_comment(
    subject: str,
    payload: CommentCreate,
    db: SessionDep,
    current_user: CurrentUserDep,
    item_name: str | None = Query(None, description="Item within the subject"),
) -> ItemCommentOut:
    comment = comment_service.create_item_comment(
        db, current_user, subject, payload.content, item_name
    )
    return ItemCommentOut.model_validate(comment)


@router.delete(
    "/subjects/{subject}/comments/{comment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_item_comment(
    subject: str,
    comment_id: str,
    db: SessionDep,
    current_user: CurrentUserDep,
) -> Response:
    comment_service.delete_item_comment(db, current_user, subject, comment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
