"""Plain-text and HTML serialization of CMS structured text.

Structured text is a list of block nodes such as::

    {"type": "paragraph", "text": "Hello world", "spans": [
        {"start": 0, "end": 5, "type": "strong"},
    ]}

Inline ``spans`` are character ranges over ``text``. Only the node types the
blog actually uses are rendered; unknown node types fall back to a paragraph.
"""

from __future__ import annotations

import html
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

_BLOCK_TAGS: dict[str, str] = {
    "paragraph": "p",
    "heading1": "h1",
    "heading2": "h2",
    "heading3": "h3",
    "heading4": "h4",
    "heading5": "h5",
    "heading6": "h6",
    "preformatted": "pre",
}
_LIST_TAGS: dict[str, str] = {
    "list-item": "ul",
    "o-list-item": "ol",
}
_INLINE_TAGS: dict[str, str] = {
    "strong": "strong",
    "em": "em",
}
_SAFE_SCHEMES = frozenset({"http", "https", "mailto"})


def as_text(nodes: Iterable[Mapping[str, Any]], separator: str = " ") -> str:
    """Concatenate the plain text of every node."""
    return separator.join(
        text for node in nodes if isinstance(text := node.get("text"), str)
    )


def _is_safe_url(url: str) -> bool:
    value = url.strip()
    if not value or value.startswith("//"):
        return False
    parsed = urlparse(value)
    if not parsed.scheme:
        return True
    return parsed.scheme.lower() in _SAFE_SCHEMES


def _span_tags(span: Mapping[str, Any]) -> tuple[str, str] | None:
    """Return the opening and closing markup for an inline span."""
    span_type = span.get("type")
    if span_type in _INLINE_TAGS:
        tag = _INLINE_TAGS[span_type]
        return f"<{tag}>", f"</{tag}>"
    if span_type == "hyperlink":
        data = span.get("data") or {}
        url = data.get("url") if isinstance(data, dict) else None
        if not isinstance(url, str) or not _is_safe_url(url):
            return None
        attrs = f' href="{html.escape(url, quote=True)}"'
        if data.get("target") == "_blank":
            attrs += ' target="_blank" rel="noopener noreferrer"'
        return f"<a{attrs}>", "</a>"
    if span_type == "label":
        data = span.get("data") or {}
        label = data.get("label") if isinstance(data, dict) else None
        if isinstance(label, str) and label:
            return f'<span class="{html.escape(label, quote=True)}">', "</span>"
    return None


def _code_point_offsets(text: str) -> dict[int, int]:
    """Map UTF-16 code unit offsets to code point offsets in ``text``.

    Span offsets count UTF-16 code units. Offsets that fall inside a surrogate
    pair have no entry.
    """
    offsets: dict[int, int] = {}
    unit = 0
    for index, char in enumerate(text):
        offsets[unit] = index
        unit += 2 if ord(char) > 0xFFFF else 1
    offsets[unit] = len(text)
    return offsets


def _render_inline(text: str, spans: Iterable[Mapping[str, Any]]) -> str:
    """Render text with its inline spans as nested markup."""
    openings: dict[int, list[str]] = {}
    closings: dict[int, list[str]] = {}
    offsets = _code_point_offsets(text)
    valid = []
    for span in spans:
        raw_start, raw_end = span.get("start"), span.get("end")
        if not isinstance(raw_start, int) or not isinstance(raw_end, int):
            continue
        start, end = offsets.get(raw_start), offsets.get(raw_end)
        if start is None or end is None or start >= end:
            continue
        tags = _span_tags(span)
        if tags is None:
            continue
        valid.append((start, end, tags))

    # Longer spans open first so that they close last and nest correctly.
    valid.sort(key=lambda item: (item[0], -(item[1] - item[0])))
    for start, end, (open_tag, close_tag) in valid:
        openings.setdefault(start, []).append(open_tag)
        closings.setdefault(end, []).insert(0, close_tag)

    parts: list[str] = []
    for index, char in enumerate(text):
        parts.extend(closings.get(index, []))
        parts.extend(openings.get(index, []))
        parts.append(html.escape(char) if char != "\n" else "<br />")
    parts.extend(closings.get(len(text), []))
    return "".join(parts)


def _render_block(node: Mapping[str, Any]) -> str:
    node_type = node.get("type")
    if node_type == "image":
        url = node.get("url")
        if not isinstance(url, str) or not _is_safe_url(url):
            return ""
        alt = node.get("alt") or ""
        return (
            f'<p class="block-img"><img src="{html.escape(url, quote=True)}" '
            f'alt="{html.escape(str(alt), quote=True)}" /></p>'
        )
    if node_type == "embed":
        oembed = node.get("oembed") or {}
        embed_url = oembed.get("embed_url") if isinstance(oembed, dict) else None
        if not isinstance(embed_url, str) or not _is_safe_url(embed_url):
            return ""
        href = html.escape(embed_url, quote=True)
        return f'<div data-oembed="{href}"><a href="{href}">{href}</a></div>'

    text = node.get("text")
    text = text if isinstance(text, str) else ""
    spans = node.get("spans")
    inner = _render_inline(text, spans if isinstance(spans, list) else [])
    if node_type in _LIST_TAGS:
        return f"<li>{inner}</li>"
    tag = _BLOCK_TAGS.get(node_type, "p") if isinstance(node_type, str) else "p"
    return f"<{tag}>{inner}</{tag}>"


def as_html(nodes: Iterable[Mapping[str, Any]]) -> str:
    """Serialize structured text to HTML.

    Consecutive list items are grouped into one ``<ul>`` or ``<ol>``.
    """
    parts: list[str] = []
    open_list: str | None = None
    for node in nodes:
        list_tag = _LIST_TAGS.get(node.get("type"))  # type: ignore[arg-type]
        if list_tag != open_list:
            if open_list is not None:
                parts.append(f"</{open_list}>")
            if list_tag is not None:
                parts.append(f"<{list_tag}>")
            open_list = list_tag
        parts.append(_render_block(node))
    if open_list is not None:
        parts.append(f"</{open_list}>")
    return "".join(parts)
