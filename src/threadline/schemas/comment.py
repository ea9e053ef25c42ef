"""Comment-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from threadline.models import Comment
from threadline.services.comment_tree import CommentNode

from .common import CamelModel


class CommentCreate(CamelModel):
    """Schema for creating a comment or a reply."""

    post_id: int
    content: str = Field(..., min_length=1, max_length=10_000)
    parent_id: int | None = Field(None, description="Comment being replied to")


class CommentResponse(CamelModel):
    """Schema for a comment and, when listed as a thread, its replies."""

    id: int
    post_id: int
    author_id: int
    username: str
    parent_id: int | None
    content: str
    depth: int
    vote_score: int
    created_at: datetime
    updated_at: datetime
    user_vote: int = 0
    replies: list[CommentResponse] = Field(default_factory=list)


class CommentThreadResponse(CamelModel):
    """Schema for a post's comment tree."""

    comments: list[CommentResponse]


def to_comment_response(comment: Comment, user_vote: int = 0) -> CommentResponse:
    """Convert a Comment ORM instance to an API schema without replies."""
    return CommentResponse(
        id=comment.id,
        post_id=comment.post_id,
        author_id=comment.author_id,
        username=comment.author.username,
        parent_id=comment.parent_id,
        content=comment.content,
        depth=comment.depth,
        vote_score=comment.vote_score,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
        user_vote=user_vote,
    )


def to_thread_response(roots: list[CommentNode], votes: dict[int, int]) -> list[CommentResponse]:
    """Convert built tree nodes to nested API schemas."""
    responses: list[CommentResponse] = []
    for node in roots:
        response = to_comment_response(node.comment, votes.get(node.comment.id, 0))
        response.replies = to_thread_response(node.replies, votes)
        responses.append(response)
    return responses
