"""Schemas for like toggles."""

from pydantic import BaseModel


class LikeState(BaseModel):
    """Like status of one target for the calling user."""

    liked: bool
    like_count: int
