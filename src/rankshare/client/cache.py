"""Tag-addressed in-memory cache.

Entries carry a set of tags (for example ``"feed"``, ``"feed:home"``) and can
be dropped by tag after a mutation instead of matching key patterns.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Hashable, Iterable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class TagCacheRegistry(Generic[K, V]):
    """Cache whose entries can be invalidated by any of their tags."""

    def __init__(self) -> None:
        self._entries: dict[K, V] = {}
        self._tags_by_key: dict[K, frozenset[str]] = {}
        self._keys_by_tag: defaultdict[str, set[K]] = defaultdict(set)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: K) -> V | None:
        return self._entries.get(key)

    def set(self, key: K, value: V, tags: Iterable[str] = ()) -> None:
        """Store ``value`` under ``key``, replacing any previous entry and its tags."""
        self.discard(key)
        tag_set = frozenset(tags)
        self._entries[key] = value
        self._tags_by_key[key] = tag_set
        for tag in tag_set:
            self._keys_by_tag[tag].add(key)

    def tags_of(self, key: K) -> frozenset[str]:
        return self._tags_by_key.get(key, frozenset())

    def discard(self, key: K) -> bool:
        """Remove one entry; returns False when it was not cached."""
        if key not in self._entries:
            return False
        del self._entries[key]
        for tag in self._tags_by_key.pop(key):
            keys = self._keys_by_tag[tag]
            keys.discard(key)
            if not keys:
                del self._keys_by_tag[tag]
        return True

    def invalidate(self, tag: str) -> list[K]:
        """Remove every entry carrying ``tag`` and return the removed keys."""
        keys = list(self._keys_by_tag.get(tag, ()))
        for key in keys:
            self.discard(key)
        if keys:
            logger.debug("Invalidated %d cache entries tagged %s", len(keys), tag)
        return keys

    def clear(self) -> None:
        self._entries.clear()
        self._tags_by_key.clear()
        self._keys_by_tag.clear()
