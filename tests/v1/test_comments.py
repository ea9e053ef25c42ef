# mypy: ignore-errors
# tests/v1/test_comments.py
"""Tests for comment endpoints and post comment threads."""

from fastapi import status


def _comment(client, headers, post_id, content, parent_id=None):
    payload = {"postId": post_id, "content": content}
    if parent_id is not None:
        payload["parentId"] = parent_id
    return client.post("/api/v1/comments/", json=payload, headers=headers)


def test_create_comment(client, auth_token, test_post) -> None:
    """Test commenting on a post."""
    response = _comment(client, auth_token, test_post.id, "Great post")

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["depth"] == 0
    assert data["parentId"] is None
    assert data["username"] == "test_user"
    post = client.get(f"/api/v1/posts/{test_post.id}").json()
    assert post["commentCount"] == 1


def test_reply_nesting_limit(client, auth_token, test_post) -> None:
    """Test that replies stop at the maximum depth."""
    parent_id = None
    for _ in range(6):
        response = _comment(client, auth_token, test_post.id, "deeper", parent_id)
        assert response.status_code == status.HTTP_201_CREATED
        parent_id = response.json()["id"]

    response = _comment(client, auth_token, test_post.id, "too deep", parent_id)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Maximum nesting depth of 5 exceeded"
    post = client.get(f"/api/v1/posts/{test_post.id}").json()
    assert post["commentCount"] == 6


def test_comment_on_missing_post(client, auth_token) -> None:
    """Test commenting on a post that does not exist."""
    response = _comment(client, auth_token, 99999, "hello?")

    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_reply_to_missing_parent(client, auth_token, test_post) -> None:
    """Test replying to a comment that does not exist."""
    response = _comment(client, auth_token, test_post.id, "hello?", parent_id=99999)

    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_comment_thread(client, auth_token, other_auth_token, test_post) -> None:
    """Test reading a post's comments as a nested thread."""
    first = _comment(client, auth_token, test_post.id, "first").json()
    second = _comment(client, other_auth_token, test_post.id, "second").json()
    reply = _comment(client, other_auth_token, test_post.id, "reply", first["id"]).json()
    client.post(
        "/api/v1/votes/",
        json={"targetId": second["id"], "targetType": "comment", "voteType": 1},
        headers=auth_token,
    )

    response = client.get(f"/api/v1/posts/{test_post.id}/comments", headers=auth_token)

    assert response.status_code == status.HTTP_200_OK
    comments = response.json()["comments"]
    assert [comment["id"] for comment in comments] == [second["id"], first["id"]]
    assert comments[0]["userVote"] == 1
    assert comments[0]["voteScore"] == 1
    assert [child["id"] for child in comments[1]["replies"]] == [reply["id"]]


def test_comment_thread_sort_new(client, auth_token, test_post) -> None:
    """Test the newest-first thread ordering."""
    ids = [_comment(client, auth_token, test_post.id, f"c{i}").json()["id"] for i in range(3)]

    response = client.get(f"/api/v1/posts/{test_post.id}/comments", params={"sort": "new"})

    assert [comment["id"] for comment in response.json()["comments"]] == list(reversed(ids))


def test_comment_thread_invalid_sort(client, test_post) -> None:
    """Test that an unknown sort is rejected."""
    response = client.get(f"/api/v1/posts/{test_post.id}/comments", params={"sort": "hot"})

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_delete_comment_subtree(client, auth_token, other_auth_token, test_post) -> None:
    """Test deleting a comment removes its replies and adjusts the count."""
    root = _comment(client, auth_token, test_post.id, "root").json()
    child = _comment(client, other_auth_token, test_post.id, "child", root["id"]).json()
    _comment(client, auth_token, test_post.id, "grandchild", child["id"])

    response = client.delete(f"/api/v1/comments/{root['id']}", headers=auth_token)

    assert response.status_code == status.HTTP_204_NO_CONTENT
    thread = client.get(f"/api/v1/posts/{test_post.id}/comments").json()
    assert thread["comments"] == []
    post = client.get(f"/api/v1/posts/{test_post.id}").json()
    assert post["commentCount"] == 0


def test_delete_comment_not_author(client, other_auth_token, test_post, auth_token) -> None:
    """Test that other users cannot delete a comment."""
    comment = _comment(client, auth_token, test_post.id, "mine").json()

    response = client.delete(f"/api/v1/comments/{comment['id']}", headers=other_auth_token)

    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_admin_can_delete_comment(client, auth_token, admin_auth_token, test_post) -> None:
    """Test that admins can delete any comment."""
    comment = _comment(client, auth_token, test_post.id, "moderate me").json()

    response = client.delete(f"/api/v1/comments/{comment['id']}", headers=admin_auth_token)

    assert response.status_code == status.HTTP_204_NO_CONTENT
