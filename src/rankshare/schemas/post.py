"""Schemas for creating posts and quotes."""

from pydantic import BaseModel, Field


class PostCreate(BaseModel):
    """Schema for creating a new post."""

    content: str = Field("", max_length=1000, description="Post text")
    image_key: str | None = Field(None, description="Storage key of an uploaded image")


class QuoteCreate(PostCreate):
    """Schema for quoting an existing feed item with a comment."""


class FeedItemCreated(BaseModel):
    """Identifiers of a newly created feed item."""

    feed_item_id: str
    post_id: str | None = None
