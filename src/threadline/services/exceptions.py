"""Domain exceptions raised by the forum services."""

from typing import NoReturn

from fastapi import HTTPException, status


class ThreadlineError(Exception):
    """Base exception for service-layer errors."""

    def __init__(self, message: str, error_type: str = "threadline_error"):
        self.message = message
        self.error_type = error_type
        super().__init__(message)


class NotFoundError(ThreadlineError):
    """Raised when a post, comment, community or vote target does not exist."""

    def __init__(self, message: str):
        super().__init__(message, "not_found")


class InvalidInputError(ThreadlineError):
    """Raised for malformed vote values, target kinds or content lengths."""

    def __init__(self, message: str):
        super().__init__(message, "invalid_input")


class DepthExceededError(ThreadlineError):
    """Raised when a reply would nest deeper than the configured maximum."""

    def __init__(self, max_depth: int):
        super().__init__(
            f"Maximum nesting depth of {max_depth} exceeded",
            "depth_exceeded",
        )
        self.max_depth = max_depth


class UnauthorizedError(ThreadlineError):
    """Raised when a user acts on content they neither own nor administer."""

    def __init__(self, action: str):
        super().__init__(f"Unauthorized to {action}", "unauthorized")
        self.action = action


_STATUS_MAP = {
    "not_found": status.HTTP_404_NOT_FOUND,
    "invalid_input": status.HTTP_400_BAD_REQUEST,
    "depth_exceeded": status.HTTP_400_BAD_REQUEST,
    "unauthorized": status.HTTP_403_FORBIDDEN,
}


def raise_http_exception(error: ThreadlineError) -> NoReturn:
    """Convert a ThreadlineError to an HTTPException."""
    raise HTTPException(
        status_code=_STATUS_MAP.get(error.error_type, status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail=error.message,
    ) from error
