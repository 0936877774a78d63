# tests/v1/test_posts.py
"""Tests for post and ranking publication endpoints."""

from fastapi import status

from rankshare.models import FeedItem, ListStatus


def test_create_post_success(client, db_session, alice, auth_headers):
    response = client.post(
        "/api/v1/posts",
        json={"content": "First post"},
        headers=auth_headers(alice),
    )

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    item = db_session.get(FeedItem, data["feed_item_id"])
    assert item.post_id == data["post_id"]
    assert item.post.content == "First post"


def test_create_post_too_long(client, alice, auth_headers):
    response = client.post(
        "/api/v1/posts",
        json={"content": "x" * 281},
        headers=auth_headers(alice),
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_create_post_requires_auth(client):
    response = client.post("/api/v1/posts", json={"content": "hello"})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_publish_ranking_list(client, alice, ranking_list, auth_headers):
    ranking = ranking_list(alice, "Pizza", ["Margherita"], status=ListStatus.DRAFT)

    response = client.post(f"/api/v1/rankings/{ranking.id}/publish", headers=auth_headers(alice))

    assert response.status_code == status.HTTP_201_CREATED
    assert ranking.status == ListStatus.PUBLISHED


def test_publish_someone_elses_list_is_404(client, alice, bob, ranking_list, auth_headers):
    ranking = ranking_list(alice, "Pizza", ["Margherita"], status=ListStatus.DRAFT)

    response = client.post(f"/api/v1/rankings/{ranking.id}/publish", headers=auth_headers(bob))

    assert response.status_code == status.HTTP_404_NOT_FOUND
