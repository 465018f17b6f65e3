"""Content source protocol: the read API of the headless CMS."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable
from urllib.parse import quote

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

RawDocument = dict[str, Any]
RawListingPage = dict[str, Any]


@runtime_checkable
class ContentSource(Protocol):
    """Protocol for CMS read clients."""

    async def get_by_uid(
        self, doc_type: str, uid: str, *, ref: str | None = None
    ) -> RawDocument | None:
        """Fetch one document by type and uid. Returns None if absent."""
        ...

    async def query_by_type(
        self,
        doc_type: str,
        *,
        fetch_fields: Sequence[str] | None = None,
        page_size: int = 20,
        page: int = 1,
        ref: str | None = None,
    ) -> RawListingPage:
        """Fetch one page of documents of a type (``results`` + ``next_page``)."""
        ...

    async def query_all_by_type(
        self,
        doc_type: str,
        *,
        fetch_fields: Sequence[str] | None = None,
        ref: str | None = None,
    ) -> list[RawDocument]:
        """Fetch every document of a type, following ``next_page``."""
        ...

    async def fetch_page(self, url: str) -> RawListingPage:
        """Fetch the listing page behind a ``next_page`` cursor."""
        ...

    async def resolve_preview(
        self,
        token: str,
        document_id: str | None,
        link_resolver: Callable[[RawDocument], str],
        default_path: str,
    ) -> str | None:
        """Validate a preview token and return the path to redirect to.

        Returns None when the token is invalid.
        """
        ...


def link_resolver_for(post_type: str) -> Callable[[RawDocument], str]:
    """Build the link resolver that maps documents to site routes."""

    def _resolve(doc: RawDocument) -> str:
        uid = doc.get("uid")
        if doc.get("type") == post_type and isinstance(uid, str) and uid:
            return f"/post/{quote(uid, safe='')}"
        return "/"

    return _resolve
