# src/threadline/models/__init__.py
"""SQLAlchemy models for the Threadline application."""

from .comment import Comment
from .community import Community
from .post import Post, PostFile, PostTag, Tag
from .user import User
from .vote import Vote

__all__ = [
    "Comment",
    "Community",
    "Post", "PostFile", "PostTag", "Tag",
    "User",
    "Vote",
]
