"""Service-level helpers for posts and the post feed."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy import Select, delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from threadline.core.settings import settings
from threadline.db.time import utcnow
from threadline.models import Comment, Community, Post, PostFile, PostTag, Tag, User, Vote
from threadline.models.vote import TARGET_POST
from threadline.services.exceptions import (
    InvalidInputError,
    NotFoundError,
    UnauthorizedError,
)
from threadline.services.ranking import FeedPage, FeedSort, rank_posts, validate_page
from threadline.services.votes import VoteService

logger = logging.getLogger(__name__)

TITLE_MIN_LENGTH = 10
TITLE_MAX_LENGTH = 200
CONTENT_MIN_LENGTH = 10
CONTENT_MAX_LENGTH = 10_000


def _validate_title(title: str) -> None:
    if not TITLE_MIN_LENGTH <= len(title) <= TITLE_MAX_LENGTH:
        raise InvalidInputError("Title must be between 10 and 200 characters")


def _validate_content(content: str) -> None:
    if not CONTENT_MIN_LENGTH <= len(content) <= CONTENT_MAX_LENGTH:
        raise InvalidInputError("Content must be between 10 and 10,000 characters")


def normalize_tags(tags: Iterable[str]) -> list[str]:
    """Strip, case-fold and de-duplicate tag names, keeping first-seen order."""
    seen: dict[str, None] = {}
    for raw in tags:
        name = raw.strip().casefold()
        if name:
            seen.setdefault(name)
    return list(seen)


def _with_details(stmt: Select[tuple[Post]]) -> Select[tuple[Post]]:
    return stmt.options(
        selectinload(Post.author),
        selectinload(Post.community),
        selectinload(Post.tags),
        selectinload(Post.files),
    )


class PostService:
    """Create, edit, delete and list posts."""

    def __init__(self, db: Session) -> None:
        """Initialize the service with a SQLAlchemy session."""
        self.db = db

    def create_post(
        self,
        author_id: int,
        title: str,
        content: str,
        community_id: int | None = None,
        tags: Iterable[str] = (),
        is_encrypted: bool = False,
    ) -> Post:
        """Create a post with its tag links.

        Args:
            author_id: Authenticated author
            title: Post title (10-200 characters)
            content: Post body (10-10,000 characters)
            community_id: Optional community the post belongs to
            tags: Tag names; stored case-folded and de-duplicated
            is_encrypted: Whether the client encrypted ``content``

        Returns:
            The persisted post

        Raises:
            InvalidInputError: If the title or content length is out of bounds
            NotFoundError: If the community does not exist
        """
        _validate_title(title)
        _validate_content(content)
        if community_id is not None and self.db.get(Community, community_id) is None:
            raise NotFoundError("Community not found")

        try:
            post = Post(
                author_id=author_id,
                community_id=community_id,
                title=title,
                content=content,
                is_encrypted=is_encrypted,
                vote_score=0,
                comment_count=0,
            )
            self.db.add(post)
            self.db.flush()
            for tag in self._get_or_create_tags(normalize_tags(tags)):
                self.db.add(PostTag(post_id=post.id, tag_id=tag.id))
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.warning("Rolled back post creation by user %s", author_id)
            raise

        logger.info("User %s created post %s", author_id, post.id)
        return self.get_post(post.id)

    def _get_or_create_tags(self, names: list[str]) -> list[Tag]:
        if not names:
            return []
        existing = {
            tag.name: tag
            for tag in self.db.execute(select(Tag).where(Tag.name.in_(names))).scalars()
        }
        tags: list[Tag] = []
        for name in names:
            tag = existing.get(name)
            if tag is None:
                try:
                    with self.db.begin_nested():
                        tag = Tag(name=name)
                        self.db.add(tag)
                except IntegrityError:
                    # Another transaction inserted the same name first.
                    tag = self.db.execute(select(Tag).where(Tag.name == name)).scalar_one()
            tags.append(tag)
        return tags

    def get_post(self, post_id: int) -> Post:
        """Return a post with author, community, tags and files loaded."""
        post = self.db.execute(
            _with_details(select(Post).where(Post.id == post_id))
        ).scalar_one_or_none()
        if post is None:
            raise NotFoundError("Post not found")
        return post

    def get_user_vote(self, post_id: int, viewer_id: int | None) -> int:
        """Return the viewer's vote on a post, 0 for anonymous viewers."""
        if viewer_id is None:
            return 0
        return VoteService(self.db).get_user_vote(viewer_id, post_id, TARGET_POST)

    def update_post(
        self,
        post_id: int,
        actor: User,
        title: str | None = None,
        content: str | None = None,
    ) -> Post:
        """Edit a post's title and/or content; only the author may do so."""
        post = self.get_post(post_id)
        if post.author_id != actor.id:
            raise UnauthorizedError("update this post")
        if title is None and content is None:
            return post
        if title is not None:
            _validate_title(title)
        if content is not None:
            _validate_content(content)

        try:
            if title is not None:
                post.title = title
            if content is not None:
                post.content = content
            post.updated_at = utcnow()
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.warning("Rolled back edit of post %s", post_id)
            raise

        logger.info("User %s edited post %s", actor.id, post_id)
        return self.get_post(post_id)

    def delete_post(self, post_id: int, actor: User) -> None:
        """Delete a post with its comments, votes, tag links and files.

        Raises:
            NotFoundError: If the post does not exist
            UnauthorizedError: If the actor is neither the author nor an admin
        """
        post = self.get_post(post_id)
        if post.author_id != actor.id and not actor.is_admin:
            raise UnauthorizedError("delete this post")

        comment_ids = select(Comment.id).where(Comment.post_id == post_id)
        try:
            self.db.execute(select(Post.id).where(Post.id == post_id).with_for_update())
            self.db.execute(delete(Vote).where(Vote.comment_id.in_(comment_ids)))
            self.db.execute(delete(Vote).where(Vote.post_id == post_id))
            self.db.execute(delete(Comment).where(Comment.post_id == post_id))
            self.db.execute(delete(PostTag).where(PostTag.post_id == post_id))
            self.db.execute(delete(PostFile).where(PostFile.post_id == post_id))
            self.db.execute(delete(Post).where(Post.id == post_id))
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.warning("Rolled back delete of post %s", post_id)
            raise

        self.db.expire_all()
        logger.info("User %s deleted post %s", actor.id, post_id)

    def add_file(
        self,
        post_id: int,
        actor: User,
        *,
        file_url: str,
        file_name: str,
        file_type: str,
        file_size: int,
    ) -> PostFile:
        """Attach uploaded file metadata to a post. Attachments are immutable."""
        post = self.get_post(post_id)
        if post.author_id != actor.id:
            raise UnauthorizedError("attach files to this post")
        if file_size < 0:
            raise InvalidInputError("File size must not be negative")
        if not file_url or not file_name or not file_type:
            raise InvalidInputError("File URL, name and type are required")

        attachment = PostFile(
            post_id=post_id,
            file_url=file_url,
            file_name=file_name,
            file_type=file_type,
            file_size=file_size,
        )
        self.db.add(attachment)
        self.db.commit()
        self.db.refresh(attachment)
        return attachment

    def get_feed(
        self,
        *,
        page: int = 1,
        limit: int | None = None,
        sort: FeedSort | str = FeedSort.RECENT,
        community_id: int | None = None,
        viewer_id: int | None = None,
    ) -> tuple[FeedPage[Post], dict[int, int]]:
        """Return one page of the feed and the viewer's votes on it.

        ``recent`` and ``top`` are ordered and paginated in SQL. ``trending``
        depends on the current time, so the filtered candidates are ranked in
        memory by ``rank_posts``.
        """
        limit = settings.feed_default_limit if limit is None else limit
        if not 1 <= limit <= settings.feed_max_limit:
            raise InvalidInputError(f"Limit must be between 1 and {settings.feed_max_limit}")
        validate_page(page, limit)
        try:
            sort = FeedSort(sort)
        except ValueError as err:
            raise InvalidInputError(f"Unknown feed sort: {sort}") from err

        stmt = select(Post)
        count_stmt = select(func.count()).select_from(Post)
        if community_id is not None:
            # An unknown community narrows the feed to nothing.
            stmt = stmt.where(Post.community_id == community_id)
            count_stmt = count_stmt.where(Post.community_id == community_id)
        stmt = _with_details(stmt)

        if sort is FeedSort.TRENDING:
            candidates = list(self.db.execute(stmt).scalars())
            feed = rank_posts(
                candidates,
                sort,
                page,
                limit,
                gravity=settings.trending_gravity,
                age_offset_hours=settings.trending_age_offset_hours,
            )
        else:
            if sort is FeedSort.TOP:
                stmt = stmt.order_by(Post.vote_score.desc(), Post.created_at.desc(), Post.id.desc())
            else:
                stmt = stmt.order_by(Post.created_at.desc(), Post.id.desc())
            offset = (page - 1) * limit
            total = self.db.execute(count_stmt).scalar_one()
            items = list(self.db.execute(stmt.offset(offset).limit(limit)).scalars())
            feed = FeedPage(items=items, total=total, has_more=offset + len(items) < total)

        votes: dict[int, int] = {}
        if viewer_id is not None and feed.items:
            votes = VoteService(self.db).get_user_votes(
                viewer_id,
                (post.id for post in feed.items),
                TARGET_POST,
            )
        return feed, votes
