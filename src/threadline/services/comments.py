"""Comment creation, listing and deletion."""

from __future__ import annotations

import logging

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session, selectinload

from threadline.core.settings import settings
from threadline.models import Comment, Post, User, Vote
from threadline.models.vote import TARGET_COMMENT
from threadline.services.comment_tree import CommentNode, CommentSort, build_tree
from threadline.services.exceptions import (
    DepthExceededError,
    InvalidInputError,
    NotFoundError,
    ThreadlineError,
    UnauthorizedError,
)
from threadline.services.votes import VoteService

logger = logging.getLogger(__name__)

COMMENT_MIN_LENGTH = 1
COMMENT_MAX_LENGTH = 10_000


class CommentService:
    """Service handling threaded comments and the post comment counter."""

    def __init__(self, db: Session, *, max_depth: int | None = None) -> None:
        """Initialize the service.

        Args:
            db: Database session
            max_depth: Deepest allowed reply depth; defaults to the configured value
        """
        self.db = db
        self.max_depth = settings.comment_max_depth if max_depth is None else max_depth

    def create_comment(
        self,
        author_id: int,
        post_id: int,
        content: str,
        parent_id: int | None = None,
    ) -> Comment:
        """Create a comment and bump the post's comment counter atomically.

        Args:
            author_id: Authenticated author
            post_id: Post being discussed
            content: Comment body
            parent_id: Comment being replied to, if any

        Returns:
            The persisted comment

        Raises:
            InvalidInputError: If the content length is out of bounds
            NotFoundError: If the post or parent comment does not exist
            DepthExceededError: If the reply would nest past the maximum depth
        """
        if not content or not COMMENT_MIN_LENGTH <= len(content) <= COMMENT_MAX_LENGTH:
            raise InvalidInputError("Content must be between 1 and 10,000 characters")

        try:
            post = self.db.execute(
                select(Post).where(Post.id == post_id).with_for_update()
            ).scalar_one_or_none()
            if post is None:
                raise NotFoundError("Post not found")

            depth = 0
            if parent_id is not None:
                parent = self.db.execute(
                    select(Comment).where(Comment.id == parent_id, Comment.post_id == post_id)
                ).scalar_one_or_none()
                if parent is None:
                    raise NotFoundError("Parent comment not found")
                depth = parent.depth + 1
                if depth > self.max_depth:
                    raise DepthExceededError(self.max_depth)

            comment = Comment(
                post_id=post_id,
                author_id=author_id,
                parent_id=parent_id,
                content=content,
                depth=depth,
                vote_score=0,
            )
            self.db.add(comment)
            self.db.flush()
            self.db.execute(
                update(Post)
                .where(Post.id == post_id)
                .values(comment_count=Post.comment_count + 1)
            )
            self.db.commit()
        except ThreadlineError:
            self.db.rollback()
            raise
        except Exception:
            self.db.rollback()
            logger.warning("Rolled back comment by user %s on post %s", author_id, post_id)
            raise

        self.db.refresh(comment)
        logger.info("User %s commented on post %s at depth %d", author_id, post_id, depth)
        return comment

    def get_comment(self, comment_id: int) -> Comment:
        """Return a comment or raise NotFoundError."""
        comment = self.db.get(Comment, comment_id)
        if comment is None:
            raise NotFoundError("Comment not found")
        return comment

    def list_comments(
        self,
        post_id: int,
        sort: CommentSort | str = CommentSort.TOP,
        viewer_id: int | None = None,
    ) -> tuple[list[CommentNode], dict[int, int]]:
        """Return the post's comment tree and the viewer's votes on it.

        Args:
            post_id: Post whose thread is requested
            sort: Ordering policy for every level of the thread
            viewer_id: Optional authenticated viewer whose votes are looked up

        Returns:
            Ordered root nodes and a ``{comment_id: vote}`` map (empty for anonymous viewers)
        """
        if self.db.get(Post, post_id) is None:
            raise NotFoundError("Post not found")

        comments = list(
            self.db.execute(
                select(Comment)
                .where(Comment.post_id == post_id)
                .options(selectinload(Comment.author))
            ).scalars()
        )
        tree = build_tree(comments, sort)

        votes: dict[int, int] = {}
        if viewer_id is not None and comments:
            votes = VoteService(self.db).get_user_votes(
                viewer_id,
                (comment.id for comment in comments),
                TARGET_COMMENT,
            )
        return tree, votes

    def delete_comment(self, comment_id: int, actor: User) -> int:
        """Delete a comment with its whole reply subtree.

        The post's ``comment_count`` drops by the number of comments removed,
        not by one, so the counter keeps matching the live comment rows.

        Args:
            comment_id: Comment to delete
            actor: Authenticated user; must be the author or an admin

        Returns:
            Number of comments removed

        Raises:
            NotFoundError: If the comment does not exist
            UnauthorizedError: If the actor is neither the author nor an admin
        """
        comment = self.get_comment(comment_id)
        if comment.author_id != actor.id and not actor.is_admin:
            raise UnauthorizedError("delete this comment")

        post_id = comment.post_id
        try:
            self.db.execute(select(Post.id).where(Post.id == post_id).with_for_update())
            # A concurrent delete of an ancestor may have removed it already.
            if self.db.execute(select(Comment.id).where(Comment.id == comment_id)).first() is None:
                raise NotFoundError("Comment not found")
            subtree_ids = self._collect_subtree(comment_id)

            self.db.execute(delete(Vote).where(Vote.comment_id.in_(subtree_ids)))
            # Children first so self-referencing foreign keys never dangle.
            for ids in reversed(self._by_level(subtree_ids)):
                self.db.execute(delete(Comment).where(Comment.id.in_(ids)))
            self.db.execute(
                update(Post)
                .where(Post.id == post_id)
                .values(comment_count=Post.comment_count - len(subtree_ids))
            )
            self.db.commit()
        except ThreadlineError:
            self.db.rollback()
            raise
        except Exception:
            self.db.rollback()
            logger.warning("Rolled back delete of comment %s on post %s", comment_id, post_id)
            raise

        self.db.expire_all()
        logger.info(
            "User %s deleted comment %s and %d replies on post %s",
            actor.id,
            comment_id,
            len(subtree_ids) - 1,
            post_id,
        )
        return len(subtree_ids)

    def _collect_subtree(self, root_id: int) -> list[int]:
        """Return ``root_id`` and every descendant id, breadth-first."""
        collected = [root_id]
        frontier = [root_id]
        while frontier:
            frontier = list(
                self.db.execute(
                    select(Comment.id).where(Comment.parent_id.in_(frontier))
                ).scalars()
            )
            collected.extend(frontier)
        return collected

    def _by_level(self, ids: list[int]) -> list[list[int]]:
        rows = self.db.execute(select(Comment.id, Comment.depth).where(Comment.id.in_(ids))).all()
        levels: dict[int, list[int]] = {}
        for comment_id, depth in rows:
            levels.setdefault(depth, []).append(comment_id)
        return [levels[depth] for depth in sorted(levels)]
