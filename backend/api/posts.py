"""Post API endpoints."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from backend.api.deps import get_content_source, get_preview_ref, get_settings
from backend.cms.base import ContentSource
from backend.config import Settings
from backend.schemas.post import PostListing, PostPage, StaticPaths
from backend.services.post_service import (
    assemble_post_page,
    get_listing,
    get_listing_page,
    list_static_paths,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/posts", tags=["posts"])
# Single posts live outside the listing namespace so any uid is routable.
post_router = APIRouter(prefix="/api/post", tags=["posts"])


@router.get("", response_model=PostListing)
async def list_posts_endpoint(
    source: Annotated[ContentSource, Depends(get_content_source)],
    settings: Annotated[Settings, Depends(get_settings)],
    page_size: int | None = Query(None, ge=1, le=100),
) -> PostListing:
    """First page of the post listing with its next-page cursor."""
    return await get_listing(
        source,
        post_type=settings.post_type,
        page_size=page_size or settings.posts_page_size,
        locale=settings.display_locale,
    )


@router.get("/page", response_model=PostListing)
async def listing_page_endpoint(
    source: Annotated[ContentSource, Depends(get_content_source)],
    settings: Annotated[Settings, Depends(get_settings)],
    cursor: str = Query(..., min_length=1, max_length=2000),
) -> PostListing:
    """Listing page behind a ``next_page_cursor``."""
    return await get_listing_page(source, cursor, locale=settings.display_locale)


@router.get("/paths", response_model=StaticPaths)
async def static_paths_endpoint(
    source: Annotated[ContentSource, Depends(get_content_source)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> StaticPaths:
    """Every post uid, for route pre-generation."""
    return await list_static_paths(source, post_type=settings.post_type)


@post_router.get("/{uid:path}", response_model=PostPage)
async def get_post_endpoint(
    uid: str,
    source: Annotated[ContentSource, Depends(get_content_source)],
    settings: Annotated[Settings, Depends(get_settings)],
    preview_ref: Annotated[str | None, Depends(get_preview_ref)],
) -> PostPage:
    """Single post with neighbors, reading time and preview flag."""
    return await assemble_post_page(
        source,
        uid,
        post_type=settings.post_type,
        preview_ref=preview_ref,
        locale=settings.display_locale,
    )
