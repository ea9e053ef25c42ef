"""Vote-related endpoints for the Threadline API."""

from typing import Literal

from fastapi import APIRouter, status

from threadline.schemas.vote import (
    UserVoteResponse,
    VoteCountsResponse,
    VoteCreate,
    VoteResponse,
)
from threadline.services.exceptions import ThreadlineError, raise_http_exception
from threadline.services.votes import VoteService

from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(prefix="/votes", tags=["votes"])

TargetType = Literal["post", "comment"]


@router.post("/", response_model=VoteResponse, status_code=status.HTTP_200_OK)
def cast_vote(
    vote_data: VoteCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> VoteResponse:
    """Set the current user's vote on a post or comment.

    The client sends the final value; clicking the active direction again is
    sent as ``voteType: 0``.
    """
    try:
        result = VoteService(db).apply_vote(
            current_user.id,
            vote_data.target_id,
            vote_data.target_type,
            vote_data.vote_type,
        )
    except ThreadlineError as err:
        raise_http_exception(err)
    return VoteResponse(vote_score=result.vote_score, user_vote=result.user_vote)


@router.get("/{target_type}/{target_id}/me", response_model=UserVoteResponse)
def get_my_vote(
    target_type: TargetType,
    target_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> UserVoteResponse:
    """Get the current user's vote on a post or comment (0 when none)."""
    user_vote = VoteService(db).get_user_vote(current_user.id, target_id, target_type)
    return UserVoteResponse(user_vote=user_vote)


@router.get("/{target_type}/{target_id}/counts", response_model=VoteCountsResponse)
def get_vote_counts(
    target_type: TargetType,
    target_id: int,
    db: SessionDep,
) -> VoteCountsResponse:
    """Tally the vote ledger for a post or comment."""
    counts = VoteService(db).get_vote_counts(target_id, target_type)
    return VoteCountsResponse(
        upvotes=counts.upvotes,
        downvotes=counts.downvotes,
        score=counts.score,
    )
