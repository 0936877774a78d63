"""Bounded resolution of repost and quote references.

Feed items form a graph through their retweet/quote pointers. Resolution
works over an id-addressed index of already-loaded items and consumes one
hop per pointer followed, so it terminates even if the stored graph contains
a cycle. Missing targets resolve to a tombstone instead of failing.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Literal

from rankshare.models.feed import FeedItem, FeedType

TombstoneReason = Literal["deleted", "depth_limit"]


@dataclass(frozen=True)
class ResolvedRoot:
    """A reference chain ending at displayable content."""

    item: FeedItem
    # Set when the root is itself a quote.
    reference: Resolution | None = None


@dataclass(frozen=True)
class TombstoneRef:
    """A reference chain that ended at missing content or ran out of hops."""

    feed_item_id: str | None
    reason: TombstoneReason = "deleted"


Resolution = ResolvedRoot | TombstoneRef


def outgoing_ids(items: Iterable[FeedItem]) -> set[str]:
    """Return the ids referenced by ``items``."""
    return {item.reference_id for item in items if item.reference_id}


def has_content(item: FeedItem) -> bool:
    """Return True if the item's own content still exists."""
    if item.type in (FeedType.POST, FeedType.QUOTE_RETWEET):
        return item.post is not None
    if item.type == FeedType.RANKING_UPDATE:
        return item.ranking_list is not None
    return False


def resolve_reference(
    item: FeedItem,
    index: Mapping[str, FeedItem],
    max_hops: int,
) -> Resolution | None:
    """Resolve what ``item`` points at.

    Args:
        item: The referencing feed item.
        index: Loaded feed items keyed by id.
        max_hops: Maximum number of pointers followed in total, including
            any nested quote.

    Returns:
        None when ``item`` is not a reference, else a resolved root or a tombstone.
    """
    if not item.is_reference:
        return None
    return _follow(item.reference_id, index, max_hops, {item.id})


def _follow(
    target_id: str | None,
    index: Mapping[str, FeedItem],
    budget: int,
    visited: set[str],
) -> Resolution:
    if budget <= 0:
        return TombstoneRef(target_id, "depth_limit")
    if target_id is None or target_id not in index:
        return TombstoneRef(target_id, "deleted")
    if target_id in visited:
        return TombstoneRef(target_id, "depth_limit")

    target = index[target_id]
    seen = visited | {target_id}
    if target.type == FeedType.RETWEET:
        return _follow(target.retweet_of_feed_item_id, index, budget - 1, seen)
    if not has_content(target):
        return TombstoneRef(target_id, "deleted")
    if target.type == FeedType.QUOTE_RETWEET:
        nested = _follow(target.quoted_feed_item_id, index, budget - 1, seen)
        return ResolvedRoot(target, nested)
    return ResolvedRoot(target)
