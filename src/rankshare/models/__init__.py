# src/rankshare/models/__init__.py
"""SQLAlchemy models for the Rankshare application."""

from .comment import ItemComment, RankingListComment
from .feed import FeedItem, FeedType
from .like import Like, LikeTargetType
from .post import Post
from .ranking import ListStatus, RankedItem, RankingList, Sentiment, Tag, ranking_list_tag
from .trend import (
    TrendAggregate,
    TrendingItemScore,
    TrendingSubject,
    TrendingTag,
    TrendPeriod,
    TrendSnapshotRun,
)
from .user import Follow, User

__all__ = [
    "ItemComment", "RankingListComment",
    "FeedItem", "FeedType",
    "Like", "LikeTargetType",
    "Post",
    "ListStatus", "RankedItem", "RankingList", "Sentiment", "Tag", "ranking_list_tag",
    "TrendAggregate", "TrendingItemScore", "TrendingSubject", "TrendingTag",
    "TrendPeriod", "TrendSnapshotRun",
    "Follow", "User",
]
