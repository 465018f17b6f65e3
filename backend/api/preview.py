"""Preview mode endpoints: CMS preview callback and exit."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse

from backend.api.deps import get_content_source, get_settings
from backend.cms.base import ContentSource
from backend.config import Settings
from backend.services.preview_service import CookiePreviewSessionStore, PreviewGate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["preview"])


def _session_store(settings: Settings) -> CookiePreviewSessionStore:
    return CookiePreviewSessionStore(
        settings.secret_key,
        settings.preview_cookie_max_age_seconds,
        secure=not settings.debug,
    )


@router.get("/preview")
async def preview(
    source: Annotated[ContentSource, Depends(get_content_source)],
    settings: Annotated[Settings, Depends(get_settings)],
    token: str | None = Query(None, max_length=2000),
    document_id: str | None = Query(None, alias="documentId", max_length=200),
) -> RedirectResponse:
    """Validate a CMS preview link and enter preview mode.

    Invalid tokens raise ``InvalidTokenError``, answered with 401 by the
    global handler before any cookie is written.
    """
    store = _session_store(settings)
    gate = PreviewGate(source, store, post_type=settings.post_type)
    redirect_path = await gate.enter(token, document_id)

    response = RedirectResponse(url=redirect_path, status_code=302)
    store.apply(response)
    return response


@router.get("/exit-preview")
async def exit_preview(
    source: Annotated[ContentSource, Depends(get_content_source)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> RedirectResponse:
    """Leave preview mode. Always succeeds."""
    store = _session_store(settings)
    gate = PreviewGate(source, store, post_type=settings.post_type)
    redirect_path = gate.exit()

    response = RedirectResponse(url=redirect_path, status_code=302)
    store.apply(response)
    return response
