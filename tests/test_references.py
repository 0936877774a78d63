"""Tests for repost and quote resolution, including tombstones."""

import pytest

from rankshare.models import FeedItem, FeedType
from rankshare.schemas.feed import ResolvedReference, Tombstone
from rankshare.services.feed_composer import FeedAudience, FeedComposer
from rankshare.services.references import ResolvedRoot, TombstoneRef, resolve_reference
from tests.conftest import T0, minutes


@pytest.fixture
def composer(db_session, broker):
    return FeedComposer(db_session, broker, max_hops=2)


def _retweet(item_id: str, target: str | None) -> FeedItem:
    return FeedItem(id=item_id, user_id="u", type=FeedType.RETWEET, retweet_of_feed_item_id=target)


def test_non_reference_resolves_to_none() -> None:
    item = FeedItem(id="a", user_id="u", type=FeedType.POST, post_id="p")
    assert resolve_reference(item, {}, 2) is None


def test_missing_target_is_deleted_tombstone() -> None:
    item = _retweet("a", "gone")
    assert resolve_reference(item, {"a": item}, 2) == TombstoneRef("gone", "deleted")


def test_cycle_terminates_with_tombstone() -> None:
    a = _retweet("a", "b")
    b = _retweet("b", "a")
    result = resolve_reference(a, {"a": a, "b": b}, 10)
    assert isinstance(result, TombstoneRef)
    assert result.reason == "depth_limit"


def test_self_reference_terminates() -> None:
    a = _retweet("a", "a")
    result = resolve_reference(a, {"a": a}, 2)
    assert result == TombstoneRef("a", "depth_limit")


def test_chain_beyond_hop_budget_is_depth_limited() -> None:
    a = _retweet("a", "b")
    b = _retweet("b", "c")
    c = _retweet("c", "d")
    index = {"a": a, "b": b, "c": c}
    assert resolve_reference(a, index, 2) == TombstoneRef("d", "depth_limit")


@pytest.mark.asyncio
async def test_retweet_resolves_to_post(composer, alice, bob, follow, post_item, reference_item):
    follow(alice, bob)
    original = post_item(alice, "original", created_at=T0)
    reference_item(bob, original.id, created_at=T0 + minutes(1))

    page = await composer.fetch_feed(FeedAudience.home(alice.id), None, 10)

    (repost,) = page.items
    assert isinstance(repost.reference, ResolvedReference)
    assert repost.reference.item.id == original.id
    assert repost.reference.item.post.content == "original"


@pytest.mark.asyncio
async def test_retweet_of_retweet_resolves_to_root(
    composer, carol, bob, alice, follow, post_item, reference_item
):
    follow(carol, bob)
    root = post_item(alice, "root", created_at=T0)
    middle = reference_item(alice, root.id, created_at=T0 + minutes(1))
    reference_item(bob, middle.id, created_at=T0 + minutes(2))

    page = await composer.fetch_feed(FeedAudience.home(carol.id), None, 10)

    assert page.items[0].reference.kind == "resolved"
    assert page.items[0].reference.item.id == root.id


@pytest.mark.asyncio
async def test_quote_of_deleted_ranking_list_renders_tombstone(
    composer, db_session, alice, bob, follow, ranking_list, ranking_item, reference_item
):
    follow(alice, bob)
    ranking = ranking_list(bob, "Ramen shops", ["Ichiran"], created_at=T0)
    announced = ranking_item(ranking)
    quote = reference_item(bob, announced.id, quote="so wrong", created_at=T0 + minutes(5))

    db_session.delete(ranking)
    db_session.flush()
    db_session.expire_all()

    page = await composer.fetch_feed(FeedAudience.home(alice.id), None, 10)

    quoted = next(item for item in page.items if item.id == quote.id)
    assert quoted.post.content == "so wrong"
    assert isinstance(quoted.reference, Tombstone)
    assert quoted.reference.reason == "deleted"


@pytest.mark.asyncio
async def test_quote_of_quote_shares_hop_budget(
    composer, alice, bob, follow, post_item, reference_item
):
    follow(alice, bob)
    root = post_item(bob, "root", created_at=T0)
    inner = reference_item(bob, root.id, quote="inner", created_at=T0 + minutes(1))
    outer = reference_item(bob, inner.id, quote="outer", created_at=T0 + minutes(2))

    view = await composer.fetch_item(outer.id)

    assert view.reference.item.id == inner.id
    nested = view.reference.item.reference
    assert nested.kind == "resolved"
    assert nested.item.id == root.id


def test_quote_without_text_post_is_tombstone() -> None:
    quote = FeedItem(
        id="q", user_id="u", type=FeedType.QUOTE_RETWEET, post_id="p", quoted_feed_item_id="x"
    )
    quote.post = None
    retweet = _retweet("r", "q")
    result = resolve_reference(retweet, {"q": quote, "r": retweet}, 2)
    # The quote's own text post is gone, so the quote itself is a tombstone.
    assert result == TombstoneRef("q", "deleted")
    assert not isinstance(result, ResolvedRoot)
