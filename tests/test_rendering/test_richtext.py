"""Tests for structured text serialization."""

from __future__ import annotations

from typing import Any

from backend.cms.richtext import as_html, as_text
from backend.schemas.post import ContentBlock


def _node(node_type: str, text: str, spans: list[dict[str, Any]] | None = None) -> dict[str, Any]:
    return {"type": node_type, "text": text, "spans": spans or []}


class TestAsText:
    def test_joins_node_text(self) -> None:
        nodes = [_node("paragraph", "one"), _node("heading2", "two")]
        assert as_text(nodes) == "one two"

    def test_custom_separator(self) -> None:
        nodes = [_node("paragraph", "one"), _node("paragraph", "two")]
        assert as_text(nodes, separator="\n") == "one\ntwo"

    def test_nodes_without_text_are_skipped(self) -> None:
        nodes = [{"type": "image", "url": "https://img.test/a.png"}, _node("paragraph", "x")]
        assert as_text(nodes) == "x"

    def test_empty(self) -> None:
        assert as_text([]) == ""


class TestAsHtmlBlocks:
    def test_paragraph_and_headings(self) -> None:
        nodes = [_node("heading1", "Title"), _node("heading3", "Sub"), _node("paragraph", "Body")]
        assert as_html(nodes) == "<h1>Title</h1><h3>Sub</h3><p>Body</p>"

    def test_preformatted(self) -> None:
        assert as_html([_node("preformatted", "x = 1")]) == "<pre>x = 1</pre>"

    def test_unknown_type_is_paragraph(self) -> None:
        assert as_html([_node("mystery", "text")]) == "<p>text</p>"

    def test_text_is_escaped(self) -> None:
        assert as_html([_node("paragraph", "<script>&")]) == "<p>&lt;script&gt;&amp;</p>"

    def test_newlines_become_breaks(self) -> None:
        assert as_html([_node("paragraph", "a\nb")]) == "<p>a<br />b</p>"

    def test_list_items_are_grouped(self) -> None:
        nodes = [
            _node("list-item", "a"),
            _node("list-item", "b"),
            _node("o-list-item", "1"),
            _node("paragraph", "after"),
        ]
        assert as_html(nodes) == (
            "<ul><li>a</li><li>b</li></ul><ol><li>1</li></ol><p>after</p>"
        )

    def test_trailing_list_is_closed(self) -> None:
        assert as_html([_node("list-item", "a")]) == "<ul><li>a</li></ul>"

    def test_image(self) -> None:
        node = {"type": "image", "url": "https://img.test/a.png", "alt": 'a "b"'}
        assert as_html([node]) == (
            '<p class="block-img"><img src="https://img.test/a.png" alt="a &quot;b&quot;" /></p>'
        )

    def test_unsafe_image_is_dropped(self) -> None:
        assert as_html([{"type": "image", "url": "javascript:alert(1)"}]) == ""

    def test_embed(self) -> None:
        node = {"type": "embed", "oembed": {"embed_url": "https://youtube.com/watch?v=1"}}
        html = as_html([node])
        assert html.startswith('<div data-oembed="https://youtube.com/watch?v=1">')


class TestAsHtmlSpans:
    def test_strong_and_em(self) -> None:
        node = _node(
            "paragraph",
            "bold and italic",
            [{"start": 0, "end": 4, "type": "strong"}, {"start": 9, "end": 15, "type": "em"}],
        )
        assert as_html([node]) == "<p><strong>bold</strong> and <em>italic</em></p>"

    def test_nested_spans(self) -> None:
        node = _node(
            "paragraph",
            "abcdef",
            [{"start": 2, "end": 4, "type": "em"}, {"start": 0, "end": 6, "type": "strong"}],
        )
        assert as_html([node]) == "<p><strong>ab<em>cd</em>ef</strong></p>"

    def test_hyperlink(self) -> None:
        node = _node(
            "paragraph",
            "see docs",
            [
                {
                    "start": 4,
                    "end": 8,
                    "type": "hyperlink",
                    "data": {"url": "https://docs.test", "target": "_blank"},
                }
            ],
        )
        assert as_html([node]) == (
            '<p>see <a href="https://docs.test" target="_blank" '
            'rel="noopener noreferrer">docs</a></p>'
        )

    def test_javascript_link_is_dropped(self) -> None:
        node = _node(
            "paragraph",
            "click",
            [{"start": 0, "end": 5, "type": "hyperlink", "data": {"url": "javascript:alert(1)"}}],
        )
        assert as_html([node]) == "<p>click</p>"

    def test_protocol_relative_link_is_dropped(self) -> None:
        node = _node(
            "paragraph",
            "x",
            [{"start": 0, "end": 1, "type": "hyperlink", "data": {"url": "//evil.test"}}],
        )
        assert as_html([node]) == "<p>x</p>"

    def test_relative_link_is_kept(self) -> None:
        node = _node(
            "paragraph",
            "next",
            [{"start": 0, "end": 4, "type": "hyperlink", "data": {"url": "/post/react-native"}}],
        )
        assert as_html([node]) == '<p><a href="/post/react-native">next</a></p>'

    def test_label(self) -> None:
        node = _node(
            "paragraph",
            "tip",
            [{"start": 0, "end": 3, "type": "label", "data": {"label": "note"}}],
        )
        assert as_html([node]) == '<p><span class="note">tip</span></p>'

    def test_span_offsets_count_utf16_units(self) -> None:
        node = _node("paragraph", "\U0001F680 Go", [{"start": 3, "end": 5, "type": "strong"}])
        assert as_html([node]) == "<p>\U0001F680 <strong>Go</strong></p>"

    def test_spans_after_several_astral_characters(self) -> None:
        node = _node(
            "paragraph",
            "\U0001F680\U0001F30E ok \u00e9 fim",
            [{"start": 5, "end": 7, "type": "em"}, {"start": 10, "end": 13, "type": "strong"}],
        )
        assert as_html([node]) == (
            "<p>\U0001F680\U0001F30E <em>ok</em> \u00e9 <strong>fim</strong></p>"
        )

    def test_offset_inside_surrogate_pair_is_ignored(self) -> None:
        node = _node("paragraph", "\U0001F680 Go", [{"start": 1, "end": 5, "type": "strong"}])
        assert as_html([node]) == "<p>\U0001F680 Go</p>"

    def test_out_of_range_spans_are_ignored(self) -> None:
        node = _node(
            "paragraph",
            "abc",
            [{"start": 1, "end": 10, "type": "strong"}, {"start": 2, "end": 2, "type": "em"}],
        )
        assert as_html([node]) == "<p>abc</p>"


class TestContentBlockHtml:
    def test_block_exposes_rendered_body(self) -> None:
        block = ContentBlock(heading="Intro", body=[_node("paragraph", "Hello")])
        assert block.body_html == "<p>Hello</p>"
        assert block.model_dump()["body_html"] == "<p>Hello</p>"

    def test_rendered_body_does_not_affect_equality(self) -> None:
        body = [_node("paragraph", "Hello")]
        assert ContentBlock(body=body) == ContentBlock(body=body)
