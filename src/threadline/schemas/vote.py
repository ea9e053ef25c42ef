"""Vote-related Pydantic schemas."""

from typing import Literal

from pydantic import Field

from .common import CamelModel


class VoteCreate(CamelModel):
    """Schema for casting, changing or removing a vote.

    The client decides the final value: re-clicking the current direction
    is sent as ``0``.
    """

    target_id: int
    target_type: Literal["post", "comment"]
    vote_type: Literal[-1, 0, 1] = Field(
        ...,
        description="1 for upvote, -1 for downvote, 0 to remove the vote",
    )


class VoteResponse(CamelModel):
    """Schema for the target's score after a vote."""

    vote_score: int
    user_vote: int


class UserVoteResponse(CamelModel):
    """Schema for the current user's vote on a target."""

    user_vote: int


class VoteCountsResponse(CamelModel):
    """Schema for ledger-derived vote tallies."""

    upvotes: int
    downvotes: int
    score: int
