# src/threadline/services/__init__.py
"""Business logic services for the Threadline application."""

from .comments import CommentService
from .posts import PostService
from .votes import VoteService

__all__ = [
    "CommentService",
    "PostService",
    "VoteService",
]
