# src/rankshare/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    feed_router,
    likes_router,
    posts_router,
    rankings_router,
    suggestions_router,
    trends_router,
)

__all__ = [
    "feed_router",
    "posts_router",
    "rankings_router",
    "likes_router",
    "trends_router",
    "suggestions_router",
]
