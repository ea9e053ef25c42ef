"""Comment-related endpoints for the Threadline API."""

from fastapi import APIRouter, status

from threadline.schemas.comment import CommentCreate, CommentResponse, to_comment_response
from threadline.services.comments import CommentService
from threadline.services.exceptions import ThreadlineError, raise_http_exception

from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(prefix="/comments", tags=["comments"])


@router.post("/", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
def create_comment(
    comment_data: CommentCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> CommentResponse:
    """Comment on a post, or reply to one of its comments."""
    try:
        comment = CommentService(db).create_comment(
            current_user.id,
            comment_data.post_id,
            comment_data.content,
            comment_data.parent_id,
        )
    except ThreadlineError as err:
        raise_http_exception(err)
    return to_comment_response(comment)


@router.get("/{comment_id}", response_model=CommentResponse)
def get_comment(comment_id: int, db: SessionDep) -> CommentResponse:
    """Get a single comment without its replies."""
    try:
        comment = CommentService(db).get_comment(comment_id)
    except ThreadlineError as err:
        raise_http_exception(err)
    return to_comment_response(comment)


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_comment(
    comment_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> None:
    """Delete a comment and all of its replies (author or admin only)."""
    try:
        CommentService(db).delete_comment(comment_id, current_user)
    except ThreadlineError as err:
        raise_http_exception(err)
