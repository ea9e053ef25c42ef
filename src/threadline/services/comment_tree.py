"""Rebuild threaded comment trees from flat rows.

Comments are stored flat with a nullable ``parent_id``. Reading a thread loads
every row for the post in one query and reassembles the nesting here, using an
id-indexed arena of nodes rather than ORM relationships.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any, Protocol

from threadline.db.time import as_utc
from threadline.services.exceptions import InvalidInputError


class CommentLike(Protocol):
    """Attributes the builder reads from a comment record."""

    id: Any
    parent_id: Any
    vote_score: int
    created_at: datetime


class CommentSort(StrEnum):
    """Ordering policies for comment threads."""

    TOP = "top"
    NEW = "new"
    CONTROVERSIAL = "controversial"


@dataclass
class CommentNode:
    """A comment plus its ordered direct replies."""

    comment: Any
    replies: list[CommentNode] = field(default_factory=list)


def _timestamp(comment: CommentLike) -> float:
    return as_utc(comment.created_at).timestamp()


def sort_key(policy: CommentSort | str) -> Callable[[CommentNode], tuple[float, ...]]:
    """Return an ascending sort key implementing ``policy``.

    - ``top``: highest score first, newer first on ties.
    - ``new``: newest first.
    - ``controversial``: net score closest to zero first, newer first on ties.
      This only approximates contested threads since it ignores the actual
      up/down split.
    """
    try:
        policy = CommentSort(policy)
    except ValueError as err:
        raise InvalidInputError(f"Unknown comment sort: {policy}") from err
    if policy is CommentSort.TOP:
        return lambda node: (-node.comment.vote_score, -_timestamp(node.comment))
    if policy is CommentSort.NEW:
        return lambda node: (-_timestamp(node.comment),)
    return lambda node: (abs(node.comment.vote_score), -_timestamp(node.comment))


def build_tree(
    comments: Iterable[CommentLike],
    sort: CommentSort | str = CommentSort.TOP,
) -> list[CommentNode]:
    """Nest a post's flat comments and order every level by ``sort``.

    Comments whose parent is not in ``comments`` (for example, already
    deleted) are dropped together with anything that replies to them. They are
    never promoted to the root because their depth was fixed against a parent
    that is gone.

    Args:
        comments: Unordered comments belonging to a single post.
        sort: Ordering policy applied to the roots and to every replies list.

    Returns:
        Ordered root nodes.
    """
    key = sort_key(sort)

    nodes: dict[Any, CommentNode] = {}
    ordered: list[CommentNode] = []
    for comment in comments:
        node = CommentNode(comment)
        nodes[comment.id] = node
        ordered.append(node)

    roots: list[CommentNode] = []
    for node in ordered:
        parent_id = node.comment.parent_id
        if parent_id is None:
            roots.append(node)
            continue
        parent = nodes.get(parent_id)
        if parent is not None:
            parent.replies.append(node)

    for node in ordered:
        if len(node.replies) > 1:
            node.replies.sort(key=key)
    roots.sort(key=key)
    return roots


def flatten(nodes: Iterable[CommentNode]) -> Iterator[CommentNode]:
    """Yield every node of a built tree in depth-first, display order."""
    stack = list(reversed(list(nodes)))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.replies))
