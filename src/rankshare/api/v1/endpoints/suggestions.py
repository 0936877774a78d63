# src/rankshare/api/v1/endpoints/suggestions.py
"""Autocomplete endpoints for subjects and item names."""

from fastapi import APIRouter, Query

from rankshare.services.suggestions import suggest_items, suggest_subjects

from ..dependencies import SessionDep

router = APIRouter(prefix="/suggestions", tags=["suggestions"])


@router.get("/subjects", response_model=list[str])
async def subjects(
    db: SessionDep,
    q: str = Query("", description="Case-insensitive prefix"),
) -> list[str]:
    return suggest_subjects(db, q)


@router.get("/items", response_model=list[str])
async def items(
    db: SessionDep,
    q: str = Query("", description="Case-insensitive prefix"),
    subject: str | None = Query(None, description="Restrict to one subject"),
) -> list[str]:
    return suggest_items(db, q, subject)
