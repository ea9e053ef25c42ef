"""SQLAlchemy models for posts and related attributes."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from threadline.db.session import Base
from threadline.db.time import utcnow

from .community import Community
from .user import User


class Post(Base):
    """Primary content entity produced by users.

    ``vote_score`` and ``comment_count`` are denormalized caches. Only the
    vote service and the comment create/delete paths write them.
    """

    __tablename__ = "post"
    __table_args__ = (
        Index("ix_post_community_id", "community_id"),
        Index("ix_post_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    author_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        nullable=False,
    )
    community_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("community.id", ondelete="SET NULL"),
        nullable=True,
    )

    title: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    # Content was encrypted client-side; the server stores it opaquely.
    is_encrypted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    vote_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    comment_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    author: Mapped[User] = relationship("User")
    community: Mapped[Community | None] = relationship("Community")
    tags: Mapped[list[Tag]] = relationship(
        "Tag",
        secondary="post_tag",
        order_by="Tag.name",
    )
    files: Mapped[list[PostFile]] = relationship(
        "PostFile",
        order_by="PostFile.id",
        viewonly=True,
    )


class Tag(Base):
    """Case-folded tag name shared across posts."""

    __tablename__ = "tag"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, unique=True, nullable=False)


class PostTag(Base):
    """Join table mapping tags onto posts."""

    __tablename__ = "post_tag"

    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("post.id", ondelete="CASCADE"),
        primary_key=True,
    )
    tag_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tag.id", ondelete="CASCADE"),
        primary_key=True,
    )


class PostFile(Base):
    """File attachment metadata; rows are never updated after insert."""

    __tablename__ = "post_file"
    __table_args__ = (Index("ix_post_file_post_id", "post_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("post.id", ondelete="CASCADE"),
        nullable=False,
    )
    file_url: Mapped[str] = mapped_column(Text, nullable=False)
    file_name: Mapped[str] = mapped_column(Text, nullable=False)
    file_type: Mapped[str] = mapped_column(Text, nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
