"""Prefix suggestions for subjects and item names."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from rankshare.core.settings import settings
from rankshare.models import ListStatus, RankedItem, RankingList


def _bounded(prefix: str, limit: int | None) -> tuple[str, int] | None:
    text = (prefix or "").strip()
    if len(text) < settings.suggestions_min_prefix:
        return None
    cap = settings.suggestions_max_results
    return text, max(1, min(limit or cap, cap))


def suggest_subjects(db: Session, prefix: str, limit: int | None = None) -> list[str]:
    """Return distinct published subjects starting with ``prefix`` (case-insensitive)."""
    bounded = _bounded(prefix, limit)
    if bounded is None:
        return []
    text, take = bounded
    stmt = (
        select(RankingList.subject)
        .where(
            RankingList.status == ListStatus.PUBLISHED,
            RankingList.subject.istartswith(text, autoescape=True),
        )
        .distinct()
        .order_by(RankingList.subject)
        .limit(take)
    )
    return list(db.execute(stmt).scalars())


def suggest_items(
    db: Session,
    prefix: str,
    subject: str | None = None,
    limit: int | None = None,
) -> list[str]:
    """Return distinct item names starting with ``prefix``, optionally within one subject."""
    bounded = _bounded(prefix, limit)
    if bounded is None:
        return []
    text, take = bounded
    stmt = (
        select(RankedItem.item_name)
        .join(RankingList, RankingList.id == RankedItem.list_id)
        .where(
            RankingList.status == ListStatus.PUBLISHED,
            RankedItem.item_name.istartswith(text, autoescape=True),
        )
    )
    if subject:
        stmt = stmt.where(RankingList.subject == subject)
    stmt = stmt.distinct().order_by(RankedItem.item_name).limit(take)
    return list(db.execute(stmt).scalars())
