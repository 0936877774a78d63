from datetime import timedelta

import pytest

from rankshare.core.errors import NotFoundOrForbidden, ValidationError
from rankshare.services import comment_service
from tests.conftest import T0


def test_ranking_comments_list_newest_first(db_session, alice, bob, ranking_list):
    ranking = ranking_list(alice, "Pizza", ["Margherita"])
    first = comment_service.create_ranking_comment(db_session, bob, ranking.id, "first")
    second = comment_service.create_ranking_comment(db_session, alice, ranking.id, "second")
    first.created_at = T0
    second.created_at = T0 + timedelta(minutes=1)
    db_session.flush()

    comments = comment_service.list_ranking_comments(db_session, ranking.id)

    assert [c.id for c in comments] == [second.id, first.id]


def test_comment_on_missing_list_is_not_found(db_session, bob):
    with pytest.raises(NotFoundOrForbidden):
        comment_service.create_ranking_comment(db_session, bob, "missing", "hello")


@pytest.mark.parametrize("content", ["", "   ", "x" * 501])
def test_comment_content_is_validated(db_session, alice, bob, ranking_list, content):
    ranking = ranking_list(alice, "Pizza", ["Margherita"])
    with pytest.raises(ValidationError):
        comment_service.create_ranking_comment(db_session, bob, ranking.id, content)


def test_delete_collapses_missing_foreign_and_wrong_scope(db_session, alice, bob, ranking_list):
    ranking = ranking_list(alice, "Pizza", ["Margherita"])
    other = ranking_list(alice, "Tacos", ["Al pastor"])
    comment = comment_service.create_ranking_comment(db_session, bob, ranking.id, "mine")

    cases = [
        (alice, ranking.id, comment.id),
        (bob, other.id, comment.id),
        (bob, ranking.id, "missing"),
    ]
    messages = set()
    for user, list_id, comment_id in cases:
        with pytest.raises(NotFoundOrForbidden) as excinfo:
            comment_service.delete_ranking_comment(db_session, user, list_id, comment_id)
        messages.add(str(excinfo.value))

    assert messages == {"Not found or forbidden"}
    comment_service.delete_ranking_comment(db_session, bob, ranking.id, comment.id)
    assert comment_service.list_ranking_comments(db_session, ranking.id) == []


def test_item_comments_are_scoped_by_subject_and_item(db_session, alice, bob):
    on_subject = comment_service.create_item_comment(db_session, alice, "Ramen", "subject talk")
    on_item = comment_service.create_item_comment(
        db_session, bob, "Ramen", "best bowl", item_name="Ichiran"
    )

    assert [c.id for c in comment_service.list_item_comments(db_session, "Ramen")] == [
        on_subject.id
    ]
    assert [
        c.id for c in comment_service.list_item_comments(db_session, "Ramen", "Ichiran")
    ] == [on_item.id]

    with pytest.raises(NotFoundOrForbidden):
        comment_service.delete_item_comment(db_session, bob, "Udon", on_item.id)
    with pytest.raises(NotFoundOrForbidden):
        comment_service.delete_item_comment(db_session, alice, "Ramen", on_item.id)
    comment_service.delete_item_comment(db_session, bob, "Ramen", on_item.id)
