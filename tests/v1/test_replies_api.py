# mypy: ignore-errors
"""Tests for reply endpoints."""

from fastapi import status


def _reply(client, post_id, content, headers, parent_id=None):
    return client.post(
        f"/api/v1/content/{post_id}/replies",
        json={"content": content, "parent_id": parent_id},
        headers=headers,
    )


def test_reply_tree(client, make_post, viewer_headers, author_headers) -> None:
    post = make_post()
    a = _reply(client, post.id, "A", viewer_headers)
    assert a.status_code == status.HTTP_201_CREATED
    a_id = a.json()["id"]
    b_id = _reply(client, post.id, "B", author_headers, parent_id=a_id).json()["id"]
    c_id = _reply(client, post.id, "C", viewer_headers).json()["id"]

    tree = client.get(f"/api/v1/content/{post.id}/replies").json()

    assert [node["id"] for node in tree] == [a_id, c_id]
    assert [child["id"] for child in tree[0]["children"]] == [b_id]
    assert tree[0]["children"][0]["content"] == "B"
    assert tree[0]["children"][0]["depth"] == 1

    counts = client.get(f"/api/v1/content/{post.id}/replies/counts").json()
    assert counts == {"total_replies": 3, "total_upvotes": 0, "total_downvotes": 0}


def test_reply_requires_wallet(client, make_post) -> None:
    post = make_post()
    response = _reply(client, post.id, "hello", headers={})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_reply_depth_limit(client, make_post, viewer_headers) -> None:
    post = make_post()
    parent_id = None
    for level in range(4):
        response = _reply(client, post.id, f"level {level}", viewer_headers, parent_id)
        assert response.status_code == status.HTTP_201_CREATED
        parent_id = response.json()["id"]

    too_deep = _reply(client, post.id, "level 4", viewer_headers, parent_id)
    assert too_deep.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_reply_to_missing_post(client, viewer_headers) -> None:
    assert _reply(client, 8080, "hi", viewer_headers).status_code == status.HTTP_404_NOT_FOUND
    assert client.get("/api/v1/content/8080/replies").status_code == status.HTTP_404_NOT_FOUND
    counts = client.get("/api/v1/content/8080/replies/counts")
    assert counts.status_code == status.HTTP_404_NOT_FOUND


def test_reply_vote(client, make_post, viewer_headers) -> None:
    post = make_post()
    reply_id = _reply(client, post.id, "vote on me", viewer_headers).json()["id"]

    result = client.post(
        "/api/v1/votes",
        json={"content_type": "reply", "content_id": reply_id, "direction": "up"},
        headers=viewer_headers,
    ).json()
    assert result["upvote_count"] == 1

    tree = client.get(f"/api/v1/content/{post.id}/replies").json()
    assert tree[0]["upvote_count"] == 1
