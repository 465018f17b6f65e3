"""Shared API dependencies: settings, content source, preview state."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from backend.cms.base import ContentSource
from backend.config import Settings
from backend.services.preview_service import PREVIEW_COOKIE_NAME, read_preview_ref


def get_settings(request: Request) -> Settings:
    """Get application settings from app state."""
    settings: Settings = request.app.state.settings
    return settings


def get_content_source(request: Request) -> ContentSource:
    """Get the CMS client from app state."""
    source: ContentSource = request.app.state.content_source
    return source


def get_preview_ref(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> str | None:
    """Return the preview ref from the signed preview cookie, or None."""
    return read_preview_ref(request.cookies.get(PREVIEW_COOKIE_NAME), settings.secret_key)
