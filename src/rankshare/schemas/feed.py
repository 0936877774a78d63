"""Feed view schemas returned by the feed endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from rankshare.models.feed import FeedType
from rankshare.models.ranking import ListStatus, Sentiment


class UserSnippet(BaseModel):
    """Author information embedded in feed views."""

    id: str
    username: str
    name: str | None = None
    avatar_url: str | None = None


class PostView(BaseModel):
    """Post content of a POST or QUOTE_RETWEET item."""

    id: str
    content: str
    image_url: str | None = None
    like_count: int = 0
    created_at: datetime


class RankedItemView(BaseModel):
    """One ranked entry of a ranking list."""

    rank: int
    item_name: str
    item_description: str | None = None
    image_url: str | None = None


class RankingListView(BaseModel):
    """Ranking list content of a RANKING_UPDATE item."""

    id: str
    subject: str
    sentiment: Sentiment
    description: str | None = None
    status: ListStatus
    tags: list[str] = Field(default_factory=list)
    items: list[RankedItemView] = Field(default_factory=list)
    like_count: int = 0
    created_at: datetime


class ResolvedReference(BaseModel):
    """A reference that resolved to displayable content."""

    kind: Literal["resolved"] = "resolved"
    item: FeedItemView


class Tombstone(BaseModel):
    """Placeholder for a reference whose content is gone or out of reach."""

    kind: Literal["tombstone"] = "tombstone"
    feed_item_id: str | None = None
    reason: Literal["deleted", "depth_limit"] = "deleted"


Reference = Annotated[ResolvedReference | Tombstone, Field(discriminator="kind")]


class FeedItemView(BaseModel):
    """A timeline entry with its content and, for reposts, the resolved reference."""

    id: str
    type: FeedType
    created_at: datetime
    like_count: int = 0
    user: UserSnippet
    post: PostView | None = None
    ranking_list: RankingListView | None = None
    reference: Reference | None = None

    model_config = ConfigDict(use_enum_values=False)


class FeedPage(BaseModel):
    """One page of a cursor-paginated feed."""

    items: list[FeedItemView] = Field(default_factory=list)
    next_cursor: str | None = None


ResolvedReference.model_rebuild()
FeedItemView.model_rebuild()
