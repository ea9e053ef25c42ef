"""Models capturing voting interactions on posts and comments."""

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from threadline.db.session import Base
from threadline.db.time import utcnow

TARGET_POST = "post"
TARGET_COMMENT = "comment"
TARGET_KINDS = (TARGET_POST, TARGET_COMMENT)


class Vote(Base):
    """Per-user vote on exactly one post or one comment.

    A missing row means "no vote"; a stored zero never exists.
    """

    __tablename__ = "vote"
    __table_args__ = (
        CheckConstraint("value IN (1, -1)", name="ck_vote_value"),
        CheckConstraint(
            "(post_id IS NULL) <> (comment_id IS NULL)",
            name="ck_vote_single_target",
        ),
        # Unique pairs prevent duplicate votes from the same user.
        UniqueConstraint("voter_id", "post_id", name="uq_vote_voter_post"),
        UniqueConstraint("voter_id", "comment_id", name="uq_vote_voter_comment"),
        Index("ix_vote_post_id", "post_id"),
        Index("ix_vote_comment_id", "comment_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    voter_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        nullable=False,
    )
    post_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("post.id", ondelete="CASCADE"),
        nullable=True,
    )
    comment_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("comment.id", ondelete="CASCADE"),
        nullable=True,
    )

    # 1 = upvote, -1 = downvote.
    value: Mapped[int] = mapped_column(SmallInteger, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
