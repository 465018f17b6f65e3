"""Post service: listing pages and single-post page assembly."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from backend.exceptions import PostNotFoundError
from backend.schemas.post import NeighborPair, PostListing, PostPage, StaticPaths
from backend.services.datetime_service import DEFAULT_DISPLAY_LOCALE
from backend.services.neighbors import resolve_neighbors
from backend.services.normalizer import normalize, normalize_listing, normalize_summary
from backend.services.reading_time import estimate_minutes

if TYPE_CHECKING:
    from backend.cms.base import ContentSource

logger = logging.getLogger(__name__)

LISTING_FIELDS = ("title", "subtitle", "author")
NEIGHBOR_FIELDS = ("title",)


async def get_listing(
    source: ContentSource,
    *,
    post_type: str,
    page_size: int,
    ref: str | None = None,
    locale: str = DEFAULT_DISPLAY_LOCALE,
) -> PostListing:
    """Fetch the first page of the post listing."""
    raw_page = await source.query_by_type(
        post_type, fetch_fields=LISTING_FIELDS, page_size=page_size, ref=ref
    )
    return normalize_listing(raw_page, locale=locale)


async def get_listing_page(
    source: ContentSource, cursor: str, *, locale: str = DEFAULT_DISPLAY_LOCALE
) -> PostListing:
    """Fetch the listing page behind a ``next_page_cursor``."""
    raw_page = await source.fetch_page(cursor)
    return normalize_listing(raw_page, locale=locale)


async def assemble_post_page(
    source: ContentSource,
    uid: str,
    *,
    post_type: str,
    preview_ref: str | None = None,
    locale: str = DEFAULT_DISPLAY_LOCALE,
) -> PostPage:
    """Build everything the rendering layer needs for one post.

    The target document and the full listing are fetched concurrently. While
    previewing, the document is read at the preview ref so drafts resolve;
    a draft missing from the published listing gets no neighbors.
    """
    raw_post, raw_listing = await asyncio.gather(
        source.get_by_uid(post_type, uid, ref=preview_ref),
        source.query_all_by_type(post_type, fetch_fields=NEIGHBOR_FIELDS),
    )
    if raw_post is None:
        raise PostNotFoundError(uid)

    post = normalize(raw_post, locale=locale)
    all_posts = [normalize_summary(raw, locale=locale) for raw in raw_listing]

    try:
        neighbors = resolve_neighbors(all_posts, post.uid)
    except PostNotFoundError:
        if preview_ref is None:
            logger.error("Post %r is missing from the full %s listing", post.uid, post_type)
            raise
        neighbors = NeighborPair()

    return PostPage(
        post=post,
        neighbors=neighbors,
        reading_time=estimate_minutes(post.content),
        preview=preview_ref is not None,
    )


async def list_static_paths(source: ContentSource, *, post_type: str) -> StaticPaths:
    """Return the uid of every published post."""
    raw_listing = await source.query_all_by_type(post_type, fetch_fields=NEIGHBOR_FIELDS)
    return StaticPaths(uids=[normalize_summary(raw).uid for raw in raw_listing])
