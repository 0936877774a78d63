# src/rankshare/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .feed import router as feed_router
from .likes import router as likes_router
from .posts import router as posts_router
from .rankings import router as rankings_router
from .suggestions import router as suggestions_router
from .trends import router as trends_router

__all__ = [
    "feed_router",
    "posts_router",
    "rankings_router",
    "likes_router",
    "trends_router",
    "suggestions_router",
]
