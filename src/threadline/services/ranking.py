"""Ranking helpers for the post feed."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any, Generic, TypeVar

from threadline.db.time import as_utc, utcnow
from threadline.services.exceptions import InvalidInputError

T = TypeVar("T")

# Offset added to a post's age so brand-new posts do not divide by ~zero.
TRENDING_AGE_OFFSET_HOURS = 2.0
# Decay exponent; larger values push older posts down faster.
TRENDING_GRAVITY = 1.5

SECONDS_PER_HOUR = 3600.0


class FeedSort(StrEnum):
    """Ordering policies for the post feed."""

    RECENT = "recent"
    TOP = "top"
    TRENDING = "trending"


@dataclass(frozen=True)
class FeedPage(Generic[T]):
    """One page of a ranked feed."""

    items: list[T]
    total: int
    has_more: bool


def age_in_hours(created_at: datetime, now: datetime) -> float:
    """Return the age of a post in hours, never negative."""
    seconds = (as_utc(now) - as_utc(created_at)).total_seconds()
    return max(seconds / SECONDS_PER_HOUR, 0.0)


def trending_score(
    vote_score: int,
    created_at: datetime,
    now: datetime,
    *,
    gravity: float = TRENDING_GRAVITY,
    age_offset_hours: float = TRENDING_AGE_OFFSET_HOURS,
) -> float:
    """Time-decayed score: ``vote_score / (age_hours + offset) ** gravity``."""
    return vote_score / (age_in_hours(created_at, now) + age_offset_hours) ** gravity


def feed_sort_key(
    policy: FeedSort | str,
    now: datetime,
    *,
    gravity: float = TRENDING_GRAVITY,
    age_offset_hours: float = TRENDING_AGE_OFFSET_HOURS,
) -> Callable[[Any], tuple[float, ...]]:
    """Return an ascending sort key for posts under ``policy``."""
    try:
        policy = FeedSort(policy)
    except ValueError as err:
        raise InvalidInputError(f"Unknown feed sort: {policy}") from err

    def created(post: Any) -> float:
        return as_utc(post.created_at).timestamp()

    if policy is FeedSort.RECENT:
        return lambda post: (-created(post),)
    if policy is FeedSort.TOP:
        return lambda post: (-post.vote_score, -created(post))
    return lambda post: (
        -trending_score(
            post.vote_score,
            post.created_at,
            now,
            gravity=gravity,
            age_offset_hours=age_offset_hours,
        ),
        -created(post),
    )


def paginate(ranked: Sequence[T], page: int, page_size: int) -> FeedPage[T]:
    """Slice an already-ranked sequence into a 1-indexed page."""
    validate_page(page, page_size)
    offset = (page - 1) * page_size
    items = list(ranked[offset:offset + page_size])
    total = len(ranked)
    return FeedPage(items=items, total=total, has_more=offset + len(items) < total)


def validate_page(page: int, page_size: int) -> None:
    """Reject page numbers below 1 and non-positive page sizes."""
    if page < 1:
        raise InvalidInputError("Page must be at least 1")
    if page_size < 1:
        raise InvalidInputError("Page size must be at least 1")


def rank_posts(
    posts: Sequence[T],
    sort: FeedSort | str,
    page: int,
    page_size: int,
    now: datetime | None = None,
    *,
    gravity: float = TRENDING_GRAVITY,
    age_offset_hours: float = TRENDING_AGE_OFFSET_HOURS,
) -> FeedPage[T]:
    """Order ``posts`` by ``sort`` and return the requested page.

    Args:
        posts: Candidate posts, already narrowed by any community filter.
        sort: ``recent``, ``top`` or ``trending``.
        page: 1-indexed page number.
        page_size: Number of posts per page.
        now: Reference time for trending ages; defaults to the current time.
        gravity: Trending decay exponent.
        age_offset_hours: Hours added to every post age before decaying.

    Returns:
        The page of posts together with the total candidate count and whether
        more pages follow.
    """
    validate_page(page, page_size)
    key = feed_sort_key(
        sort,
        now or utcnow(),
        gravity=gravity,
        age_offset_hours=age_offset_hours,
    )
    return paginate(sorted(posts, key=key), page, page_size)
