# tests/v1/test_comments.py
"""Tests for ranking list and item comment endpoints."""

from fastapi import status


def test_ranking_comment_lifecycle(client, alice, bob, ranking_list, auth_headers):
    ranking = ranking_list(alice, "Pizza", ["Margherita"])
    url = f"/api/v1/rankings/{ranking.id}/comments"

    response = client.post(url, json={"content": "Great list"}, headers=auth_headers(bob))
    assert response.status_code == status.HTTP_201_CREATED
    comment = response.json()
    assert comment["username"] == "bob"
    assert comment["list_id"] == ranking.id

    listed = client.get(url).json()
    assert [c["id"] for c in listed] == [comment["id"]]

    forbidden = client.delete(f"{url}/{comment['id']}", headers=auth_headers(alice))
    missing = client.delete(f"{url}/does-not-exist", headers=auth_headers(bob))
    assert forbidden.status_code == missing.status_code == status.HTTP_404_NOT_FOUND
    assert forbidden.json() == missing.json()

    response = client.delete(f"{url}/{comment['id']}", headers=auth_headers(bob))
    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert client.get(url).json() == []


def test_item_comments_by_subject(client, alice, auth_headers):
    url = "/api/v1/trends/subjects/Ramen/comments"

    response = client.post(
        url,
        params={"item_name": "Ichiran"},
        json={"content": "Rich broth"},
        headers=auth_headers(alice),
    )
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["item_name"] == "Ichiran"

    assert client.get(url).json() == []
    listed = client.get(url, params={"item_name": "Ichiran"}).json()
    assert [c["content"] for c in listed] == ["Rich broth"]


def test_empty_comment_is_400(client, alice, ranking_list, auth_headers):
    ranking = ranking_list(alice, "Pizza", ["Margherita"])

    response = client.post(
        f"/api/v1/rankings/{ranking.id}/comments",
        json={"content": "   "},
        headers=auth_headers(alice),
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
