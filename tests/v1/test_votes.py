# mypy: ignore-errors
"""Tests for vote endpoints."""

from fastapi import status


def test_vote_requires_registered_wallet(client, make_post) -> None:
    post = make_post()

    response = client.post("/api/v1/votes", json={"content_id": post.id, "direction": "up"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_vote_flow(client, make_post, viewer_headers) -> None:
    post = make_post()

    up = client.post(
        "/api/v1/votes",
        json={"content_type": "post", "content_id": post.id, "direction": "up"},
        headers=viewer_headers,
    )
    assert up.status_code == status.HTTP_200_OK
    assert up.json() == {
        "upvote_count": 1,
        "downvote_count": 0,
        "has_upvoted": True,
        "has_downvoted": False,
    }

    down = client.post(
        "/api/v1/votes",
        json={"content_id": post.id, "direction": "down"},
        headers=viewer_headers,
    ).json()
    assert (down["upvote_count"], down["downvote_count"]) == (0, 1)
    assert down["has_downvoted"] is True

    mine = client.get(f"/api/v1/votes/post/{post.id}/my-vote", headers=viewer_headers)
    assert mine.json() == {"direction": "down"}

    stats = client.get(f"/api/v1/votes/post/{post.id}/stats")
    assert stats.json() == {"upvote_count": 0, "downvote_count": 1}


def test_toggle_removes_vote(client, make_post, viewer_headers) -> None:
    post = make_post()
    payload = {"content_id": post.id, "direction": "up"}

    client.post("/api/v1/votes", json=payload, headers=viewer_headers)
    result = client.post("/api/v1/votes", json=payload, headers=viewer_headers).json()

    assert result["upvote_count"] == 0
    assert result["has_upvoted"] is False
    mine = client.get(f"/api/v1/votes/post/{post.id}/my-vote", headers=viewer_headers)
    assert mine.json() == {"direction": None}


def test_vote_invalid_direction(client, make_post, viewer_headers) -> None:
    post = make_post()
    response = client.post(
        "/api/v1/votes",
        json={"content_id": post.id, "direction": "sideways"},
        headers=viewer_headers,
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_vote_nonexistent_post(client, viewer_headers) -> None:
    response = client.post(
        "/api/v1/votes",
        json={"content_id": 31337, "direction": "up"},
        headers=viewer_headers,
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_my_vote_without_wallet(client, make_post) -> None:
    post = make_post()
    response = client.get(f"/api/v1/votes/post/{post.id}/my-vote")
    assert response.json() == {"direction": None}
