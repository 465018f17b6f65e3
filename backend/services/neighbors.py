"""Previous/next navigation between posts.

The listing order is whatever the content source returns; nothing here sorts.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from backend.exceptions import PostNotFoundError
from backend.schemas.post import NeighborPair

if TYPE_CHECKING:
    from collections.abc import Sequence

    from backend.schemas.post import PostSummary


def resolve_neighbors(all_posts: Sequence[PostSummary], current_uid: str) -> NeighborPair:
    """Return the posts adjacent to ``current_uid`` in ``all_posts``.

    Raises ``PostNotFoundError`` if ``current_uid`` is not in the listing.
    """
    pair = build_neighbor_index(all_posts).get(current_uid)
    if pair is None:
        raise PostNotFoundError(current_uid)
    return pair


def build_neighbor_index(all_posts: Sequence[PostSummary]) -> dict[str, NeighborPair]:
    """Precompute neighbors for every post in one pass.

    If a uid appears more than once, its first occurrence wins.
    """
    index: dict[str, NeighborPair] = {}
    last = len(all_posts) - 1
    for i, post in enumerate(all_posts):
        if post.uid in index:
            continue
        index[post.uid] = NeighborPair(
            previous=all_posts[i - 1] if i > 0 else None,
            next=all_posts[i + 1] if i < last else None,
        )
    return index
