"""Client-side feed consumption: HTTP access, paging state and local caches."""

from .cache import TagCacheRegistry
from .feed_client import FeedClient, FeedKey
from .optimistic import OptimisticValue
from .pagination import FeedPaginationController, PaginationState

__all__ = [
    "FeedClient",
    "FeedKey",
    "FeedPaginationController",
    "OptimisticValue",
    "PaginationState",
    "TagCacheRegistry",
]
