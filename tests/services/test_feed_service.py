import pytest
from sqlalchemy import select

from rankshare.core.errors import NotFoundOrForbidden, ValidationError
from rankshare.models import FeedItem, FeedType, Like, LikeTargetType, ListStatus, Post
from rankshare.services import feed_service, like_service


def test_create_post_adds_post_and_feed_item(db_session, alice):
    item = feed_service.create_post(db_session, alice, "  hello world  ")

    assert item.type == FeedType.POST
    assert item.user_id == alice.id
    post = db_session.get(Post, item.post_id)
    assert post.content == "hello world"


def test_create_post_accepts_image_only(db_session, alice):
    item = feed_service.create_post(db_session, alice, "", image_key="posts/a.jpg")

    assert db_session.get(Post, item.post_id).image_key == "posts/a.jpg"


@pytest.mark.parametrize("content", ["", "   ", "x" * 281])
def test_create_post_rejects_bad_content(db_session, alice, content):
    with pytest.raises(ValidationError):
        feed_service.create_post(db_session, alice, content)


def test_publish_creates_ranking_update(db_session, alice, ranking_list):
    ranking = ranking_list(alice, "Pizza", ["Margherita", "Diavola"], status=ListStatus.DRAFT)

    item = feed_service.publish_ranking_list(db_session, alice, ranking.id)

    assert item.type == FeedType.RANKING_UPDATE
    assert item.ranking_list_id == ranking.id
    assert ranking.status == ListStatus.PUBLISHED


def test_publish_foreign_list_is_not_found(db_session, alice, bob, ranking_list):
    ranking = ranking_list(alice, "Pizza", ["Margherita"], status=ListStatus.DRAFT)

    with pytest.raises(NotFoundOrForbidden):
        feed_service.publish_ranking_list(db_session, bob, ranking.id)
    with pytest.raises(NotFoundOrForbidden):
        feed_service.publish_ranking_list(db_session, alice, "missing")


def test_publish_rejects_gapped_ranks(db_session, alice, ranking_list):
    ranking = ranking_list(alice, "Pizza", ["Margherita", "Diavola"], status=ListStatus.DRAFT)
    ranking.items[1].rank = 3
    db_session.flush()

    with pytest.raises(ValidationError):
        feed_service.publish_ranking_list(db_session, alice, ranking.id)


def test_retweet_is_idempotent(db_session, alice, bob, post_item):
    original = post_item(alice)

    first = feed_service.retweet(db_session, bob, original.id)
    second = feed_service.retweet(db_session, bob, original.id)

    assert first.id == second.id
    assert first.retweet_of_feed_item_id == original.id


def test_undo_retweet_removes_only_own_reposts(db_session, alice, bob, carol, post_item):
    original = post_item(alice)
    feed_service.retweet(db_session, bob, original.id)
    carols = feed_service.retweet(db_session, carol, original.id)

    assert feed_service.undo_retweet(db_session, bob, original.id) == 1
    assert feed_service.undo_retweet(db_session, bob, original.id) == 0
    assert db_session.get(FeedItem, carols.id) is not None


def test_retweet_of_missing_item_is_not_found(db_session, bob):
    with pytest.raises(NotFoundOrForbidden):
        feed_service.retweet(db_session, bob, "missing")


def test_quote_retweet_stores_comment(db_session, alice, bob, post_item):
    original = post_item(alice)

    quote = feed_service.quote_retweet(db_session, bob, original.id, "hot take")

    assert quote.type == FeedType.QUOTE_RETWEET
    assert quote.quoted_feed_item_id == original.id
    assert db_session.get(Post, quote.post_id).content == "hot take"


def test_delete_feed_item_removes_post_and_likes(db_session, alice, bob, post_item):
    item = post_item(alice)
    post_id = item.post_id
    like_service.like(db_session, bob, LikeTargetType.POST, post_id)

    feed_service.delete_feed_item(db_session, alice, item.id)

    assert db_session.get(FeedItem, item.id) is None
    assert db_session.get(Post, post_id) is None
    assert db_session.execute(select(Like)).scalars().all() == []


def test_delete_feed_item_of_someone_else_is_not_found(db_session, alice, bob, post_item):
    item = post_item(alice)

    with pytest.raises(NotFoundOrForbidden):
        feed_service.delete_feed_item(db_session, bob, item.id)
    assert db_session.get(FeedItem, item.id) is not None
