"""Post-related endpoints for the Threadline API."""

from typing import Annotated

from fastapi import APIRouter, Query, status

from threadline.schemas.comment import CommentThreadResponse, to_thread_response
from threadline.schemas.post import (
    FeedResponse,
    PostCreate,
    PostFileCreate,
    PostFileResponse,
    PostResponse,
    PostUpdate,
    to_file_response,
    to_post_response,
)
from threadline.services.comment_tree import CommentSort
from threadline.services.comments import CommentService
from threadline.services.exceptions import ThreadlineError, raise_http_exception
from threadline.services.posts import PostService
from threadline.services.ranking import FeedSort

from ..dependencies import CurrentUserDep, OptionalUserDep, SessionDep

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("/", response_model=FeedResponse)
def list_posts(
    db: SessionDep,
    viewer: OptionalUserDep,
    page: Annotated[int, Query(ge=1, description="1-indexed page number")] = 1,
    limit: Annotated[int | None, Query(ge=1, description="Posts per page")] = None,
    sort: Annotated[FeedSort, Query(description="recent, trending or top")] = FeedSort.RECENT,
    community_id: Annotated[
        int | None,
        Query(alias="communityId", description="Only posts from this community"),
    ] = None,
) -> FeedResponse:
    """List posts as a ranked, paginated feed.

    Args:
        db: Database session
        viewer: Optional authenticated user; fills in ``userVote``
        page: 1-indexed page number
        limit: Page size (defaults to the configured feed size)
        sort: Ranking policy
        community_id: Restrict the feed to one community

    Returns:
        The page of posts, the total number of matching posts and whether more pages follow
    """
    try:
        feed, votes = PostService(db).get_feed(
            page=page,
            limit=limit,
            sort=sort,
            community_id=community_id,
            viewer_id=viewer.id if viewer is not None else None,
        )
    except ThreadlineError as err:
        raise_http_exception(err)
    return FeedResponse(
        posts=[to_post_response(post, votes.get(post.id, 0)) for post in feed.items],
        total=feed.total,
        has_more=feed.has_more,
    )


@router.post("/", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
def create_post(
    post_data: PostCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> PostResponse:
    """Create a new post."""
    try:
        post = PostService(db).create_post(
            current_user.id,
            post_data.title,
            post_data.content,
            community_id=post_data.community_id,
            tags=post_data.tags,
            is_encrypted=post_data.is_encrypted,
        )
    except ThreadlineError as err:
        raise_http_exception(err)
    return to_post_response(post)


@router.get("/{post_id}", response_model=PostResponse)
def get_post(post_id: int, db: SessionDep, viewer: OptionalUserDep) -> PostResponse:
    """Get a specific post by ID."""
    service = PostService(db)
    try:
        post = service.get_post(post_id)
    except ThreadlineError as err:
        raise_http_exception(err)
    user_vote = service.get_user_vote(post_id, viewer.id if viewer is not None else None)
    return to_post_response(post, user_vote)


@router.patch("/{post_id}", response_model=PostResponse)
def update_post(
    post_id: int,
    post_data: PostUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> PostResponse:
    """Edit a post's title and/or content (author only)."""
    service = PostService(db)
    try:
        post = service.update_post(
            post_id,
            current_user,
            title=post_data.title,
            content=post_data.content,
        )
    except ThreadlineError as err:
        raise_http_exception(err)
    return to_post_response(post, service.get_user_vote(post_id, current_user.id))


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_post(
    post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> None:
    """Delete a post with its discussion (author or admin only)."""
    try:
        PostService(db).delete_post(post_id, current_user)
    except ThreadlineError as err:
        raise_http_exception(err)


@router.post(
    "/{post_id}/files",
    response_model=PostFileResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_post_file(
    post_id: int,
    file_data: PostFileCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> PostFileResponse:
    """Record an uploaded attachment on a post (author only)."""
    try:
        attachment = PostService(db).add_file(
            post_id,
            current_user,
            file_url=file_data.file_url,
            file_name=file_data.file_name,
            file_type=file_data.file_type,
            file_size=file_data.file_size,
        )
    except ThreadlineError as err:
        raise_http_exception(err)
    return to_file_response(attachment)


@router.get("/{post_id}/comments", response_model=CommentThreadResponse)
def list_post_comments(
    post_id: int,
    db: SessionDep,
    viewer: OptionalUserDep,
    sort: Annotated[CommentSort, Query(description="top, new or controversial")] = CommentSort.TOP,
) -> CommentThreadResponse:
    """Get a post's comments as a nested, ranked thread."""
    try:
        tree, votes = CommentService(db).list_comments(
            post_id,
            sort,
            viewer.id if viewer is not None else None,
        )
    except ThreadlineError as err:
        raise_http_exception(err)
    return CommentThreadResponse(comments=to_thread_response(tree, votes))
