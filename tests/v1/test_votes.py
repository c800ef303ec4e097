# tests/v1/test_votes.py
"""Tests for vote-related endpoints."""

from unittest.mock import patch

from fastapi import status

from bulletin_board.services.votes import VoteOutcome


def test_like_comment_then_cancel(client, auth_headers, comment) -> None:
    url = f"/api/v1/board/comments/{comment.id}/vote"

    first = client.post(url, json={"vote_type": "like"}, headers=auth_headers)
    assert first.status_code == status.HTTP_200_OK
    assert first.json() == {
        "success": True,
        "likes": 3,
        "dislikes": 0,
        "user_vote": "like",
        "error": None,
    }

    second = client.post(url, json={"vote_type": "like"}, headers=auth_headers)
    assert second.json()["likes"] == 2
    assert second.json()["user_vote"] is None


def test_switch_comment_vote(client, auth_headers, comment) -> None:
    url = f"/api/v1/board/comments/{comment.id}/vote"
    client.post(url, json={"vote_type": "dislike"}, headers=auth_headers)

    response = client.post(url, json={"vote_type": "like"}, headers=auth_headers)
    body = response.json()
    assert (body["likes"], body["dislikes"], body["user_vote"]) == (3, 0, "like")

    mine = client.get(f"/api/v1/board/comments/{comment.id}/my-vote", headers=auth_headers)
    assert mine.json() == {"user_vote": "like"}


def test_vote_is_per_employee(client, auth_headers, other_auth_headers, comment) -> None:
    url = f"/api/v1/board/comments/{comment.id}/vote"
    client.post(url, json={"vote_type": "like"}, headers=auth_headers)
    response = client.post(url, json={"vote_type": "like"}, headers=other_auth_headers)

    assert response.json()["likes"] == 4
    mine = client.get(f"/api/v1/board/comments/{comment.id}/my-vote", headers=auth_headers)
    assert mine.json()["user_vote"] == "like"


def test_vote_post(client, other_auth_headers, post) -> None:
    response = client.post(
        f"/api/v1/board/posts/{post.id}/vote",
        json={"vote_type": "dislike"},
        headers=other_auth_headers,
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["dislikes"] == 1

    mine = client.get(f"/api/v1/board/posts/{post.id}/my-vote", headers=other_auth_headers)
    assert mine.json() == {"user_vote": "dislike"}


def test_vote_invalid_type(client, auth_headers, comment) -> None:
    response = client.post(
        f"/api/v1/board/comments/{comment.id}/vote",
        json={"vote_type": "love"},
        headers=auth_headers,
    )
    assert response.status_code == 422


def test_vote_nonexistent_comment(client, auth_headers) -> None:
    response = client.post(
        "/api/v1/board/comments/99999/vote",
        json={"vote_type": "like"},
        headers=auth_headers,
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_vote_requires_authentication(client, comment) -> None:
    response = client.post(f"/api/v1/board/comments/{comment.id}/vote", json={"vote_type": "like"})
    assert response.status_code in {status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN}


def test_failed_vote_surfaces_as_503(client, auth_headers, comment) -> None:
    failed = VoteOutcome(success=False, likes=2, dislikes=0, user_vote=None, error="Could not record vote")
    with patch("bulletin_board.services.votes.vote_comment", return_value=failed):
        response = client.post(
            f"/api/v1/board/comments/{comment.id}/vote",
            json={"vote_type": "like"},
            headers=auth_headers,
        )
    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert response.json()["detail"] == "Could not record vote"
