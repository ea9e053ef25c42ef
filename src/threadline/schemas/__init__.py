"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .comment import CommentCreate, CommentResponse, CommentThreadResponse
from .community import CommunityCreate, CommunityResponse
from .post import FeedResponse, PostCreate, PostFileCreate, PostResponse, PostUpdate
from .vote import UserVoteResponse, VoteCountsResponse, VoteCreate, VoteResponse

__all__ = [
    "CommentCreate", "CommentResponse", "CommentThreadResponse",
    "CommunityCreate", "CommunityResponse",
    "FeedResponse", "PostCreate", "PostFileCreate", "PostResponse", "PostUpdate",
    "UserVoteResponse", "VoteCountsResponse", "VoteCreate", "VoteResponse",
]
