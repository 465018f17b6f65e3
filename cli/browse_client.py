"""CLI client for browsing the blog's post listing page by page."""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import TYPE_CHECKING
from urllib.parse import quote, urlparse

import httpx

from backend.schemas.post import PostListing, PostPage
from backend.services.pagination import PaginationCursor

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from backend.schemas.post import PostSummary

_LOCALHOST_HOSTS = {"localhost", "127.0.0.1", "::1"}
_YES_ANSWERS = {"y", "yes", "s", "sim"}


class BrowseClient:
    """Client for the post listing API."""

    def __init__(self, server_url: str, http_client: httpx.AsyncClient | None = None) -> None:
        self.server_url = server_url.rstrip("/")
        self.client = http_client or httpx.AsyncClient(base_url=self.server_url, timeout=30.0)

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> BrowseClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def first_page(self, page_size: int | None = None) -> PostListing:
        """Fetch the first listing page."""
        params = {"page_size": page_size} if page_size else None
        resp = await self.client.get("/api/posts", params=params)
        resp.raise_for_status()
        return PostListing.model_validate(resp.json())

    async def fetch_page(self, cursor: str) -> PostListing:
        """Fetch the listing page behind a cursor."""
        resp = await self.client.get("/api/posts/page", params={"cursor": cursor})
        resp.raise_for_status()
        return PostListing.model_validate(resp.json())

    async def post(self, uid: str) -> PostPage:
        """Fetch one assembled post page."""
        resp = await self.client.get(f"/api/post/{quote(uid, safe='')}")
        resp.raise_for_status()
        return PostPage.model_validate(resp.json())

    async def cursor(self, page_size: int | None = None) -> PaginationCursor:
        """Start a "load more" session at the first listing page."""
        return PaginationCursor(await self.first_page(page_size), self.fetch_page)


def print_posts(posts: Sequence[PostSummary], start: int = 0) -> None:
    """Print numbered listing lines."""
    for number, post in enumerate(posts, start=start + 1):
        meta = " | ".join(part for part in (post.display_date, post.author) if part)
        print(f"{number:3d}. {post.title or post.uid}")
        if post.subtitle:
            print(f"     {post.subtitle}")
        if meta:
            print(f"     {meta}")


async def browse(
    client: BrowseClient,
    *,
    load_all: bool = False,
    page_size: int | None = None,
    prompt: Callable[[str], str] = input,
) -> PaginationCursor:
    """Print the listing, loading further pages on request (or all with ``load_all``)."""
    cursor = await client.cursor(page_size)
    print_posts(cursor.posts)
    while cursor.has_more:
        if not load_all:
            answer = prompt("Carregar mais posts? [s/N] ")
            if answer.strip().lower() not in _YES_ANSWERS:
                break
        shown = len(cursor.posts)
        try:
            await cursor.load_more()
        except httpx.HTTPError as exc:
            print(f"Error: failed to load more posts ({exc})")
            if load_all:
                break
            continue
        print_posts(cursor.posts[shown:], start=shown)
    if not cursor.has_more:
        print(f"{len(cursor.posts)} post(s), end of listing")
    return cursor


def print_post_page(page: PostPage) -> None:
    """Print a post's header, reading time and neighbor links."""
    post = page.post
    if page.preview:
        print("[preview]")
    print(post.title)
    if post.subtitle:
        print(post.subtitle)
    meta = " | ".join(
        part for part in (post.display_date, post.author, f"{page.reading_time} min") if part
    )
    print(meta)
    for block in post.content:
        if block.heading:
            print(f"  - {block.heading}")
    if page.neighbors.previous is not None:
        print(f"< {page.neighbors.previous.title} ({page.neighbors.previous.uid})")
    if page.neighbors.next is not None:
        print(f"> {page.neighbors.next.title} ({page.neighbors.next.uid})")


def validate_server_url(server_url: str, allow_insecure_http: bool = False) -> str:
    """Validate server URL and enforce HTTPS for non-localhost hosts by default."""
    normalized = server_url.strip().rstrip("/")
    parsed = urlparse(normalized)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValueError("Server URL must include scheme and host (e.g. https://example.com)")

    hostname = parsed.hostname
    if parsed.scheme == "http" and not allow_insecure_http and hostname not in _LOCALHOST_HOSTS:
        raise ValueError(
            "HTTPS is required for non-localhost servers. "
            "Use --allow-insecure-http only on trusted networks."
        )

    return normalized


async def _run(args: argparse.Namespace, server_url: str) -> None:
    async with BrowseClient(server_url) as client:
        if args.command == "show":
            print_post_page(await client.post(args.uid))
        else:
            await browse(client, load_all=args.all, page_size=args.page_size)


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="blog-browse",
        description="Browse blog posts from a content service",
    )
    parser.add_argument("--server", "-s", default="http://localhost:8000", help="Server URL")
    parser.add_argument(
        "--allow-insecure-http",
        action="store_true",
        help="Allow http:// server URLs for non-localhost hosts",
    )

    subparsers = parser.add_subparsers(dest="command")
    list_parser = subparsers.add_parser("list", help="List posts page by page")
    list_parser.add_argument("--all", action="store_true", help="Load every page without asking")
    list_parser.add_argument("--page-size", type=int, default=None, help="Posts per page")
    show_parser = subparsers.add_parser("show", help="Show one post")
    show_parser.add_argument("uid", help="Post uid")

    args = parser.parse_args()
    if args.command is None:
        parser.print_help()
        return

    try:
        server_url = validate_server_url(args.server, args.allow_insecure_http)
    except ValueError as exc:
        print(f"Error: {exc}")
        sys.exit(1)

    try:
        asyncio.run(_run(args, server_url))
    except httpx.HTTPStatusError as exc:
        print(f"Error: server answered {exc.response.status_code}")
        sys.exit(1)
    except httpx.HTTPError as exc:
        print(f"Error: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
