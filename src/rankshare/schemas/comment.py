"""Comment-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CommentCreate(BaseModel):
    """Schema for posting a comment."""

    content: str = Field(..., min_length=1, description="Comment text")


class _CommentOut(BaseModel):
    id: str
    user_id: str
    username: str | None = None
    name: str | None = None
    content: str
    created_at: datetime

    @model_validator(mode="before")
    @classmethod
    def _flatten_user(cls, data: object) -> object:
        if isinstance(data, dict):
            return data
        extracted: dict[str, object | None] = {}
        for field_name in cls.model_fields:
            extracted[field_name] = getattr(data, field_name, None)
        user = getattr(data, "user", None)
        if user is not None:
            extracted["username"] = user.username
            extracted["name"] = user.name
        return extracted

    model_config = ConfigDict(from_attributes=True)


class RankingListCommentOut(_CommentOut):
    """Comment on a ranking list."""

    list_id: str


class ItemCommentOut(_CommentOut):
    """Comment on a subject or an item within it."""

    subject: str
    item_name: str | None = None
