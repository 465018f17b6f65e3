"""Normalization of raw CMS documents into strict post shapes.

Raw documents are loosely typed: optional fields may be absent, ``null`` or,
for text fields, either key text (a string) or structured text (a list of
nodes). Everything downstream works on the closed ``Post``/``PostSummary``
shapes produced here and never branches on missing-vs-present.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from backend.cms.richtext import as_text
from backend.exceptions import MalformedDocumentError
from backend.schemas.post import Banner, ContentBlock, Post, PostListing, PostSummary
from backend.services.datetime_service import (
    DEFAULT_DISPLAY_LOCALE,
    format_display_date,
    parse_datetime,
)

if TYPE_CHECKING:
    from datetime import datetime

logger = logging.getLogger(__name__)


def _require_uid(raw: Mapping[str, Any]) -> str:
    uid = raw.get("uid")
    if not isinstance(uid, str) or not uid.strip():
        doc_id = raw.get("id", "<unknown>")
        msg = f"Document {doc_id!r} has no uid"
        raise MalformedDocumentError(msg)
    return uid


def _data(raw: Mapping[str, Any]) -> Mapping[str, Any]:
    data = raw.get("data")
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        msg = f"Document {raw.get('uid')!r} has non-object data"
        raise MalformedDocumentError(msg)
    return data


def _timestamp(raw: Mapping[str, Any], field: str) -> datetime | None:
    value = raw.get(field)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        msg = f"Document {raw.get('uid')!r} has invalid {field}: {value!r}"
        raise MalformedDocumentError(msg)
    try:
        return parse_datetime(value)
    except ValueError as exc:
        msg = f"Document {raw.get('uid')!r} has invalid {field}: {value!r}"
        raise MalformedDocumentError(msg) from exc


def _text(value: Any) -> str:
    """Coerce a key-text or structured-text field to a plain string."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return as_text(node for node in value if isinstance(node, Mapping))
    return str(value)


def _banner(value: Any) -> Banner:
    if not isinstance(value, Mapping):
        return Banner()
    url = value.get("url")
    alt = value.get("alt")
    return Banner(
        url=url if isinstance(url, str) else "",
        alt=alt if isinstance(alt, str) else None,
    )


def _content(value: Any) -> list[ContentBlock]:
    if not isinstance(value, list):
        return []
    blocks: list[ContentBlock] = []
    for item in value:
        if not isinstance(item, Mapping):
            continue
        body = item.get("body")
        blocks.append(
            ContentBlock(
                heading=_text(item.get("heading")),
                body=[dict(node) for node in body if isinstance(node, Mapping)]
                if isinstance(body, list)
                else [],
            )
        )
    return blocks


def _display_date(value: datetime | None, locale: str) -> str | None:
    return format_display_date(value, locale) if value is not None else None


def normalize(raw: Mapping[str, Any], *, locale: str = DEFAULT_DISPLAY_LOCALE) -> Post:
    """Normalize a full raw document into a ``Post``.

    Raises ``MalformedDocumentError`` when the uid is missing or the document
    is structurally broken.
    """
    if not isinstance(raw, Mapping):
        msg = f"Expected a document object, got {type(raw).__name__}"
        raise MalformedDocumentError(msg)
    uid = _require_uid(raw)
    data = _data(raw)
    first_published = _timestamp(raw, "first_publication_date")
    return Post(
        uid=uid,
        first_publication_date=first_published,
        last_publication_date=_timestamp(raw, "last_publication_date"),
        display_date=_display_date(first_published, locale),
        title=_text(data.get("title")),
        subtitle=_text(data.get("subtitle")),
        author=_text(data.get("author")),
        banner=_banner(data.get("banner")),
        content=_content(data.get("content")),
    )


def normalize_summary(
    raw: Mapping[str, Any], *, locale: str = DEFAULT_DISPLAY_LOCALE
) -> PostSummary:
    """Normalize a raw document into the listing subset."""
    if not isinstance(raw, Mapping):
        msg = f"Expected a document object, got {type(raw).__name__}"
        raise MalformedDocumentError(msg)
    uid = _require_uid(raw)
    data = _data(raw)
    first_published = _timestamp(raw, "first_publication_date")
    return PostSummary(
        uid=uid,
        first_publication_date=first_published,
        display_date=_display_date(first_published, locale),
        title=_text(data.get("title")),
        subtitle=_text(data.get("subtitle")),
        author=_text(data.get("author")),
    )


def normalize_listing(
    raw_page: Mapping[str, Any], *, locale: str = DEFAULT_DISPLAY_LOCALE
) -> PostListing:
    """Normalize one raw search page (``results`` + ``next_page``)."""
    results = raw_page.get("results") if isinstance(raw_page, Mapping) else None
    if not isinstance(results, list):
        msg = "Listing page has no results list"
        raise MalformedDocumentError(msg)
    next_page = raw_page.get("next_page")
    if next_page is not None and not isinstance(next_page, str):
        msg = f"Listing page has invalid next_page: {next_page!r}"
        raise MalformedDocumentError(msg)
    posts = [normalize_summary(item, locale=locale) for item in results]
    logger.debug("Normalized listing page with %d posts (more=%s)", len(posts), bool(next_page))
    return PostListing(posts=posts, next_page_cursor=next_page or None)
