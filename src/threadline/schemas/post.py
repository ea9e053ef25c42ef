"""Post-related Pydantic schemas."""

from datetime import datetime

from pydantic import Field

from threadline.models import Post, PostFile

from .common import CamelModel


class PostCreate(CamelModel):
    """Schema for creating a new post."""

    title: str = Field(..., min_length=10, max_length=200)
    content: str = Field(..., min_length=10, max_length=10_000)
    community_id: int | None = Field(None, description="Community the post belongs to")
    tags: list[str] = Field(default_factory=list, max_length=20)
    is_encrypted: bool = Field(False, description="Content was encrypted client-side")


class PostUpdate(CamelModel):
    """Schema for editing a post's title and/or content."""

    title: str | None = Field(None, min_length=10, max_length=200)
    content: str | None = Field(None, min_length=10, max_length=10_000)


class PostFileCreate(CamelModel):
    """Schema for attaching uploaded file metadata to a post."""

    file_url: str = Field(..., min_length=1, max_length=2048)
    file_name: str = Field(..., min_length=1, max_length=255)
    file_type: str = Field(..., min_length=1, max_length=255)
    file_size: int = Field(..., ge=0)


class PostFileResponse(CamelModel):
    """Schema for a post attachment."""

    id: int
    file_url: str
    file_name: str
    file_type: str
    file_size: int
    created_at: datetime


class PostResponse(CamelModel):
    """Schema for post information returned by the API."""

    id: int
    author_id: int
    username: str
    community_id: int | None
    community_name: str | None
    title: str
    content: str
    is_encrypted: bool
    vote_score: int
    comment_count: int
    created_at: datetime
    updated_at: datetime
    tags: list[str]
    files: list[PostFileResponse]
    user_vote: int = 0


class FeedResponse(CamelModel):
    """Schema for one page of the post feed."""

    posts: list[PostResponse]
    total: int
    has_more: bool


def to_file_response(attachment: PostFile) -> PostFileResponse:
    """Convert a PostFile ORM instance to an API schema."""
    return PostFileResponse(
        id=attachment.id,
        file_url=attachment.file_url,
        file_name=attachment.file_name,
        file_type=attachment.file_type,
        file_size=attachment.file_size,
        created_at=attachment.created_at,
    )


def to_post_response(post: Post, user_vote: int = 0) -> PostResponse:
    """Convert a Post ORM instance (with details loaded) to an API schema."""
    return PostResponse(
        id=post.id,
        author_id=post.author_id,
        username=post.author.username,
        community_id=post.community_id,
        community_name=post.community.name if post.community is not None else None,
        title=post.title,
        content=post.content,
        is_encrypted=post.is_encrypted,
        vote_score=post.vote_score,
        comment_count=post.comment_count,
        created_at=post.created_at,
        updated_at=post.updated_at,
        tags=[tag.name for tag in post.tags],
        files=[to_file_response(attachment) for attachment in post.files],
        user_vote=user_vote,
    )
