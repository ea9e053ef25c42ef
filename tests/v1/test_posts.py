# mypy: ignore-errors
# tests/v1/test_posts.py
"""Tests for post-related endpoints."""

from fastapi import status


def test_create_post(client, auth_token, community) -> None:
    """Test creating a new post."""
    response = client.post(
        "/api/v1/posts/",
        json={
            "title": "My first real post",
            "content": "Hello forum, this is a post.",
            "communityId": community.id,
            "tags": ["Intro", "intro"],
        },
        headers=auth_token,
    )

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["title"] == "My first real post"
    assert data["username"] == "test_user"
    assert data["communityName"] == "testing"
    assert data["voteScore"] == 0
    assert data["commentCount"] == 0
    assert data["tags"] == ["intro"]
    assert data["userVote"] == 0


def test_create_post_short_title(client, auth_token) -> None:
    """Test that request validation rejects a short title."""
    response = client.post(
        "/api/v1/posts/",
        json={"title": "short", "content": "Long enough content"},
        headers=auth_token,
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_create_post_unknown_community(client, auth_token) -> None:
    """Test posting into a community that does not exist."""
    response = client.post(
        "/api/v1/posts/",
        json={"title": "Lost in the void", "content": "Long enough content", "communityId": 999},
        headers=auth_token,
    )

    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_create_post_requires_auth(client) -> None:
    """Test that anonymous users cannot post."""
    response = client.post(
        "/api/v1/posts/",
        json={"title": "Anonymous posting", "content": "Long enough content"},
    )

    assert response.status_code in {status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN}


def test_get_post(client, test_post) -> None:
    """Test retrieving a specific post."""
    response = client.get(f"/api/v1/posts/{test_post.id}")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["id"] == test_post.id
    assert data["content"] == "Test post content"


def test_get_post_shows_viewer_vote(client, auth_token, test_post) -> None:
    """Test that an authenticated viewer sees their own vote."""
    client.post(
        "/api/v1/votes/",
        json={"targetId": test_post.id, "targetType": "post", "voteType": 1},
        headers=auth_token,
    )

    response = client.get(f"/api/v1/posts/{test_post.id}", headers=auth_token)

    assert response.json()["userVote"] == 1
    assert response.json()["voteScore"] == 1


def test_get_nonexistent_post(client) -> None:
    """Test retrieving a non-existent post."""
    response = client.get("/api/v1/posts/99999")

    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_update_post(client, auth_token, test_post) -> None:
    """Test editing a post as its author."""
    response = client.patch(
        f"/api/v1/posts/{test_post.id}",
        json={"content": "Freshly edited content"},
        headers=auth_token,
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["content"] == "Freshly edited content"


def test_update_post_not_author(client, other_auth_token, test_post) -> None:
    """Test that only the author can edit."""
    response = client.patch(
        f"/api/v1/posts/{test_post.id}",
        json={"content": "Someone else's words"},
        headers=other_auth_token,
    )

    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_delete_post(client, auth_token, test_post) -> None:
    """Test deleting a post as its author."""
    response = client.delete(f"/api/v1/posts/{test_post.id}", headers=auth_token)

    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert client.get(f"/api/v1/posts/{test_post.id}").status_code == status.HTTP_404_NOT_FOUND


def test_delete_post_not_author(client, other_auth_token, test_post) -> None:
    """Test that other users cannot delete the post."""
    response = client.delete(f"/api/v1/posts/{test_post.id}", headers=other_auth_token)

    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_add_post_file(client, auth_token, test_post) -> None:
    """Test attaching file metadata to a post."""
    response = client.post(
        f"/api/v1/posts/{test_post.id}/files",
        json={
            "fileUrl": "https://cdn.example.test/diagram.png",
            "fileName": "diagram.png",
            "fileType": "image/png",
            "fileSize": 2048,
        },
        headers=auth_token,
    )

    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["fileName"] == "diagram.png"
    files = client.get(f"/api/v1/posts/{test_post.id}").json()["files"]
    assert [item["fileName"] for item in files] == ["diagram.png"]


def test_list_posts(client, test_post) -> None:
    """Test the default feed."""
    response = client.get("/api/v1/posts/")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["total"] == 1
    assert data["hasMore"] is False
    assert [post["id"] for post in data["posts"]] == [test_post.id]


def test_list_posts_pagination(client, auth_token) -> None:
    """Test paging through the feed."""
    for i in range(3):
        client.post(
            "/api/v1/posts/",
            json={"title": f"Paginated post {i}", "content": "Long enough content"},
            headers=auth_token,
        )

    first = client.get("/api/v1/posts/", params={"page": 1, "limit": 2}).json()
    second = client.get("/api/v1/posts/", params={"page": 2, "limit": 2}).json()

    assert len(first["posts"]) == 2
    assert first["hasMore"] is True
    assert len(second["posts"]) == 1
    assert second["hasMore"] is False
    assert first["total"] == second["total"] == 3


def test_list_posts_by_community(client, test_post, community) -> None:
    """Test filtering the feed by community."""
    response = client.get("/api/v1/posts/", params={"communityId": community.id, "sort": "top"})

    assert response.status_code == status.HTTP_200_OK
    assert [post["id"] for post in response.json()["posts"]] == [test_post.id]

    missing = client.get("/api/v1/posts/", params={"communityId": 999})
    assert missing.status_code == status.HTTP_200_OK
    assert missing.json() == {"posts": [], "total": 0, "hasMore": False}


def test_list_posts_trending(client, test_post) -> None:
    """Test the trending feed."""
    response = client.get("/api/v1/posts/", params={"sort": "trending"})

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["posts"][0]["id"] == test_post.id


def test_list_posts_invalid_params(client) -> None:
    """Test that bad sort and page values are rejected."""
    assert client.get("/api/v1/posts/", params={"sort": "hot"}).status_code == 422
    assert client.get("/api/v1/posts/", params={"page": 0}).status_code == 422
    assert client.get("/api/v1/posts/", params={"limit": 500}).status_code == 400
