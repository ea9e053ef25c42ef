"""Vote ledger and aggregate score maintenance.

Every vote is a ledger row keyed by ``(voter, target)``; the target's
``vote_score`` is a cache of the signed sum of those rows. Both are written in
one transaction while the target row is held with ``SELECT ... FOR UPDATE``,
so concurrent votes on the same target serialize and never lose an update.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy import case, func, select, update
from sqlalchemy.orm import InstrumentedAttribute, Session

from threadline.db.time import utcnow
from threadline.models import Comment, Post, Vote
from threadline.models.vote import TARGET_COMMENT, TARGET_KINDS, TARGET_POST
from threadline.services.exceptions import (
    InvalidInputError,
    NotFoundError,
    ThreadlineError,
)

logger = logging.getLogger(__name__)

VOTE_VALUES = (-1, 0, 1)

_TARGET_MODELS: dict[str, type[Post] | type[Comment]] = {
    TARGET_POST: Post,
    TARGET_COMMENT: Comment,
}


@dataclass(frozen=True)
class VoteResult:
    """Outcome of applying a vote."""

    vote_score: int
    user_vote: int


@dataclass(frozen=True)
class VoteCounts:
    """Ledger-derived tallies for a single target."""

    upvotes: int
    downvotes: int
    score: int


def _validate_kind(target_kind: str) -> type[Post] | type[Comment]:
    if target_kind not in TARGET_KINDS:
        raise InvalidInputError('Invalid target type. Must be "post" or "comment"')
    return _TARGET_MODELS[target_kind]


def _ledger_column(target_kind: str) -> InstrumentedAttribute[int | None]:
    return Vote.post_id if target_kind == TARGET_POST else Vote.comment_id


def score_change(old_value: int, requested_value: int) -> int:
    """Return how much a target's score moves when a vote goes old -> requested.

    Requesting 0 removes the vote, a first vote adds its value, and a flip
    moves by the difference. Re-requesting the current value is a no-op.
    """
    if requested_value == 0:
        return -old_value
    if old_value == 0:
        return requested_value
    return requested_value - old_value


class VoteService:
    """Apply votes and answer ledger queries for posts and comments."""

    def __init__(self, db: Session) -> None:
        """Initialize the service with a SQLAlchemy session."""
        self.db = db

    def apply_vote(
        self,
        voter_id: int,
        target_id: int,
        target_kind: str,
        requested_value: int,
    ) -> VoteResult:
        """Set ``voter_id``'s vote on a target to ``requested_value``.

        Args:
            voter_id: Authenticated voter, supplied by the auth layer.
            target_id: Identifier of the post or comment.
            target_kind: ``"post"`` or ``"comment"``.
            requested_value: Final vote value; ``0`` removes any existing vote.

        Returns:
            The target's score after the update and the voter's current vote.

        Raises:
            InvalidInputError: If the kind or value is not one of the legal values.
            NotFoundError: If no target with that id and kind exists.
        """
        model = _validate_kind(target_kind)
        # bool and float compare equal to ints, so check the exact type too.
        if type(requested_value) is not int or requested_value not in VOTE_VALUES:
            raise InvalidInputError("Invalid vote type. Must be -1, 0, or 1")

        try:
            target = self.db.execute(
                select(model).where(model.id == target_id).with_for_update()
            ).scalar_one_or_none()
            if target is None:
                raise NotFoundError(f"{target_kind} not found")

            delta = self._write_ledger(voter_id, target_id, target_kind, requested_value)
            if delta:
                self.db.execute(
                    update(model)
                    .where(model.id == target_id)
                    .values(vote_score=model.vote_score + delta)
                )
            self.db.commit()
        except ThreadlineError:
            self.db.rollback()
            raise
        except Exception:
            self.db.rollback()
            logger.warning(
                "Rolled back vote by user %s on %s %s",
                voter_id,
                target_kind,
                target_id,
            )
            raise

        self.db.refresh(target)
        logger.debug(
            "User %s voted %d on %s %s (score now %d)",
            voter_id,
            requested_value,
            target_kind,
            target_id,
            target.vote_score,
        )
        return VoteResult(vote_score=target.vote_score, user_vote=requested_value)

    def _write_ledger(
        self,
        voter_id: int,
        target_id: int,
        target_kind: str,
        requested_value: int,
    ) -> int:
        existing = self._find_vote(voter_id, target_id, target_kind)
        old_value = existing.value if existing is not None else 0
        delta = score_change(old_value, requested_value)

        if requested_value == 0:
            if existing is not None:
                self.db.delete(existing)
        elif existing is None:
            vote = Vote(voter_id=voter_id, value=requested_value)
            if target_kind == TARGET_POST:
                vote.post_id = target_id
            else:
                vote.comment_id = target_id
            self.db.add(vote)
        elif delta:
            existing.value = requested_value
            existing.updated_at = utcnow()

        self.db.flush()
        return delta

    def _find_vote(self, voter_id: int, target_id: int, target_kind: str) -> Vote | None:
        column = _ledger_column(target_kind)
        return self.db.execute(
            select(Vote).where(Vote.voter_id == voter_id, column == target_id)
        ).scalar_one_or_none()

    def get_user_vote(self, voter_id: int, target_id: int, target_kind: str) -> int:
        """Return the voter's current value on a target, or 0 when absent."""
        _validate_kind(target_kind)
        vote = self._find_vote(voter_id, target_id, target_kind)
        return vote.value if vote is not None else 0

    def get_user_votes(
        self,
        voter_id: int,
        target_ids: Iterable[int],
        target_kind: str,
    ) -> dict[int, int]:
        """Return ``{target_id: value}`` for every target the voter has voted on."""
        _validate_kind(target_kind)
        ids = list(target_ids)
        if not ids:
            return {}
        column = _ledger_column(target_kind)
        rows = self.db.execute(
            select(column, Vote.value).where(Vote.voter_id == voter_id, column.in_(ids))
        ).all()
        return {target_id: value for target_id, value in rows}

    def get_vote_counts(self, target_id: int, target_kind: str) -> VoteCounts:
        """Tally the ledger rows for a target.

        This recomputes from the ledger instead of reading the cached
        ``vote_score`` so it can be used to audit the cache.
        """
        _validate_kind(target_kind)
        column = _ledger_column(target_kind)
        upvotes, downvotes, score = self.db.execute(
            select(
                func.coalesce(func.sum(case((Vote.value == 1, 1), else_=0)), 0),
                func.coalesce(func.sum(case((Vote.value == -1, 1), else_=0)), 0),
                func.coalesce(func.sum(Vote.value), 0),
            ).where(column == target_id)
        ).one()
        return VoteCounts(upvotes=int(upvotes), downvotes=int(downvotes), score=int(score))
