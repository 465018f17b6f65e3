"""Health check endpoint."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from backend.api.deps import get_content_source, get_settings
from backend.cms.base import ContentSource
from backend.config import Settings
from backend.exceptions import ContentSourceError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    version: str
    cms: str


@router.get("/api/health", response_model=HealthResponse)
async def health_check(
    source: Annotated[ContentSource, Depends(get_content_source)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> HealthResponse:
    """Health check endpoint for monitoring and load balancers."""
    cms_status = "ok"
    try:
        await source.query_by_type(settings.post_type, page_size=1)
    except ContentSourceError:
        logger.warning("Health check content source query failed", exc_info=True)
        cms_status = "error"

    return HealthResponse(
        status="ok" if cms_status == "ok" else "degraded",
        version="0.1.0",
        cms=cms_status,
    )
