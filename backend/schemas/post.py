"""Post-related schemas: the normalized shapes handed to the rendering layer."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, computed_field

from backend.cms.richtext import as_html
from backend.services.datetime_service import format_iso

# Opaque structured-text node owned by the CMS markup format.
RichTextSpan = dict[str, Any]


class Banner(BaseModel):
    """Banner image reference. An empty ``url`` means no banner."""

    url: str = ""
    alt: str | None = None


class ContentBlock(BaseModel):
    """One section of a post body: a heading followed by rich text."""

    heading: str = ""
    body: list[RichTextSpan] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def body_html(self) -> str:
        """The body serialized to HTML for the rendering layer."""
        return as_html(self.body)


class PostSummary(BaseModel):
    """Post summary for listings and neighbor navigation (no body)."""

    uid: str = Field(min_length=1)
    first_publication_date: datetime | None = None
    display_date: str | None = None
    title: str = ""
    subtitle: str = ""
    author: str = ""


class Post(PostSummary):
    """Fully normalized post."""

    last_publication_date: datetime | None = None
    banner: Banner = Field(default_factory=Banner)
    content: list[ContentBlock] = Field(default_factory=list)

    def summary(self) -> PostSummary:
        """Return the listing subset of this post."""
        return PostSummary(
            uid=self.uid,
            first_publication_date=self.first_publication_date,
            display_date=self.display_date,
            title=self.title,
            subtitle=self.subtitle,
            author=self.author,
        )

    def as_raw(self) -> dict[str, Any]:
        """Re-wrap this post in the CMS's raw document shape."""

        def _iso(value: datetime | None) -> str | None:
            return format_iso(value) if value is not None else None

        banner: dict[str, Any] = {"url": self.banner.url} if self.banner.url else {}
        if self.banner.alt is not None:
            banner["alt"] = self.banner.alt
        return {
            "uid": self.uid,
            "first_publication_date": _iso(self.first_publication_date),
            "last_publication_date": _iso(self.last_publication_date),
            "data": {
                "title": self.title,
                "subtitle": self.subtitle,
                "author": self.author,
                "banner": banner,
                "content": [
                    {"heading": block.heading, "body": [dict(span) for span in block.body]}
                    for block in self.content
                ],
            },
        }


class PostListing(BaseModel):
    """One page of posts plus the cursor of the next page (``None`` when exhausted)."""

    posts: list[PostSummary] = Field(default_factory=list)
    next_page_cursor: str | None = None


class NeighborPair(BaseModel):
    """Chronologically adjacent posts relative to one post."""

    previous: PostSummary | None = None
    next: PostSummary | None = None


class PostPage(BaseModel):
    """Everything the rendering layer needs for a single post page."""

    post: Post
    neighbors: NeighborPair = Field(default_factory=NeighborPair)
    reading_time: int = Field(ge=1)
    preview: bool = False


class StaticPaths(BaseModel):
    """Identifiers of every post, for route pre-generation."""

    uids: list[str]
