"""Shared test fixtures for the blog content service."""

from __future__ import annotations

import copy
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any
from urllib.parse import parse_qs, urlparse

import pytest
from httpx import ASGITransport, AsyncClient

from backend.config import Settings
from backend.exceptions import ContentSourceError, InvalidCursorError
from backend.main import create_app

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable, Sequence

TEST_SECRET_KEY = "test-secret-key-with-at-least-32-characters"
CMS_API_URL = "https://blog.cdn.prismic.io/api/v2"
VALID_PREVIEW_TOKEN = "https://blog.prismic.io/previews/valid"
UNTARGETED_PREVIEW_TOKEN = "https://blog.prismic.io/previews/no-target"


def make_raw_post(
    uid: str,
    *,
    title: str | None = None,
    subtitle: str | None = "A subtitle",
    author: str | None = "Joseph Oliveira",
    first_publication_date: str | None = "2021-03-25T19:25:28+0000",
    last_publication_date: str | None = None,
    banner: dict[str, Any] | None = None,
    content: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Build a raw CMS document shaped like a Prismic search result."""
    data: dict[str, Any] = {"title": title if title is not None else f"Post {uid}"}
    if subtitle is not None:
        data["subtitle"] = subtitle
    if author is not None:
        data["author"] = author
    if banner is not None:
        data["banner"] = banner
    if content is not None:
        data["content"] = content
    return {
        "id": f"id-{uid}",
        "uid": uid,
        "type": "post",
        "first_publication_date": first_publication_date,
        "last_publication_date": last_publication_date,
        "data": data,
    }


def paragraph(text: str) -> dict[str, Any]:
    return {"type": "paragraph", "text": text, "spans": []}


class FakeContentSource:
    """In-memory content source with page-numbered cursors."""

    def __init__(
        self,
        documents: Sequence[dict[str, Any]],
        *,
        drafts: dict[str, dict[str, dict[str, Any]]] | None = None,
        preview_tokens: dict[str, str | None] | None = None,
    ) -> None:
        self.documents = [copy.deepcopy(doc) for doc in documents]
        self.drafts = drafts or {}
        self.preview_tokens = preview_tokens or {}
        self.calls: list[tuple[Any, ...]] = []
        self.unavailable = False

    def _check_available(self) -> None:
        if self.unavailable:
            raise ContentSourceError("Content source unreachable: connection refused")

    def _page(self, page: int, page_size: int) -> dict[str, Any]:
        start = (page - 1) * page_size
        results = self.documents[start : start + page_size]
        has_next = start + page_size < len(self.documents)
        next_page = (
            f"{CMS_API_URL}/documents/search?page={page + 1}&pageSize={page_size}"
            if has_next
            else None
        )
        return {
            "page": page,
            "results_per_page": page_size,
            "next_page": next_page,
            "results": copy.deepcopy(results),
        }

    async def get_by_uid(
        self, doc_type: str, uid: str, *, ref: str | None = None
    ) -> dict[str, Any] | None:
        self.calls.append(("get_by_uid", doc_type, uid, ref))
        self._check_available()
        if ref is not None and uid in self.drafts.get(ref, {}):
            return copy.deepcopy(self.drafts[ref][uid])
        doc = next((d for d in self.documents if d.get("uid") == uid), None)
        return copy.deepcopy(doc) if doc is not None else None

    async def query_by_type(
        self,
        doc_type: str,
        *,
        fetch_fields: Sequence[str] | None = None,
        page_size: int = 20,
        page: int = 1,
        ref: str | None = None,
    ) -> dict[str, Any]:
        self.calls.append(("query_by_type", doc_type, tuple(fetch_fields or ()), page_size))
        self._check_available()
        return self._page(page, page_size)

    async def query_all_by_type(
        self,
        doc_type: str,
        *,
        fetch_fields: Sequence[str] | None = None,
        ref: str | None = None,
    ) -> list[dict[str, Any]]:
        self.calls.append(("query_all_by_type", doc_type, tuple(fetch_fields or ())))
        self._check_available()
        return copy.deepcopy(self.documents)

    async def fetch_page(self, url: str) -> dict[str, Any]:
        self.calls.append(("fetch_page", url))
        if not url.startswith(CMS_API_URL):
            raise InvalidCursorError("Listing cursor does not belong to the content source")
        self._check_available()
        query = parse_qs(urlparse(url).query)
        return self._page(int(query["page"][0]), int(query["pageSize"][0]))

    async def resolve_preview(
        self,
        token: str,
        document_id: str | None,
        link_resolver: Callable[[dict[str, Any]], str],
        default_path: str,
    ) -> str | None:
        self.calls.append(("resolve_preview", token, document_id))
        self._check_available()
        if token not in self.preview_tokens:
            return None
        uid = self.preview_tokens[token]
        if uid is None:
            return default_path
        return link_resolver({"type": "post", "uid": uid})


@asynccontextmanager
async def create_test_client(
    settings: Settings, source: FakeContentSource
) -> AsyncGenerator[AsyncClient]:
    """Create an HTTP test client around an app wired to ``source``.

    ASGITransport does not run the lifespan, so the injected source is used
    as-is and no outbound HTTP client is created.
    """
    app = create_app(settings, content_source=source)
    settings.validate_runtime_security()
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def sample_documents() -> list[dict[str, Any]]:
    """Three published posts in content-source order."""
    return [
        make_raw_post(
            "como-utilizar-hooks",
            title="Como utilizar Hooks",
            first_publication_date="2021-03-15T19:25:28+0000",
            banner={"url": "https://images.prismic.io/blog/hooks.png"},
            content=[
                {"heading": "Proin et varius", "body": [paragraph("Lorem ipsum dolor sit amet")]},
                {"heading": "Cras laoreet", "body": [paragraph("Nullam dolor sapien")]},
            ],
        ),
        make_raw_post(
            "criando-um-app-cra-do-zero",
            title="Criando um app CRA do zero",
            first_publication_date="2021-03-19T19:25:28+0000",
            content=[{"heading": "Introdução", "body": [paragraph("Tudo sobre CRA")]}],
        ),
        make_raw_post(
            "react-native",
            title="React Native",
            first_publication_date="2021-03-25T19:25:28+0000",
            content=[],
        ),
    ]


@pytest.fixture
def fake_source(sample_documents: list[dict[str, Any]]) -> FakeContentSource:
    return FakeContentSource(
        sample_documents,
        drafts={
            VALID_PREVIEW_TOKEN: {
                "rascunho": make_raw_post("rascunho", title="Rascunho", first_publication_date=None)
            }
        },
        preview_tokens={
            VALID_PREVIEW_TOKEN: "criando-um-app-cra-do-zero",
            UNTARGETED_PREVIEW_TOKEN: None,
        },
    )


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings."""
    return Settings(
        _env_file=None,
        secret_key=TEST_SECRET_KEY,
        debug=True,
        cms_api_url=CMS_API_URL,
        posts_page_size=2,
    )


@pytest.fixture
async def client(
    test_settings: Settings, fake_source: FakeContentSource
) -> AsyncGenerator[AsyncClient]:
    """Create test HTTP client."""
    async with create_test_client(test_settings, fake_source) as ac:
        yield ac
