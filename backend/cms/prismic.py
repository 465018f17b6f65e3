"""Prismic REST API v2 client implementing the content source protocol."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

import httpx

from backend.exceptions import ContentSourceError, InvalidCursorError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from backend.cms.base import RawDocument, RawListingPage

logger = logging.getLogger(__name__)

_RETRY_STATUSES = frozenset({429, 500, 502, 503, 504})
_FULL_LISTING_PAGE_SIZE = 100


def _predicate(field: str, value: str) -> str:
    return f"[[at({field}, {json.dumps(value)})]]"


class PrismicClient:
    """Async client for one Prismic repository.

    GET requests are retried a bounded number of times on transport errors
    and on 429/5xx answers; anything else is surfaced as ``ContentSourceError``
    immediately. The HTTP client is owned by the caller.
    """

    def __init__(
        self,
        api_url: str,
        http_client: httpx.AsyncClient,
        *,
        access_token: str = "",
        max_retries: int = 2,
        backoff_seconds: float = 0.5,
        preview_hosts: Iterable[str] = (),
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self._client = http_client
        self._access_token = access_token
        self._max_retries = max_retries
        self._backoff_seconds = backoff_seconds
        self._master_ref: str | None = None

        api = urlparse(self.api_url)
        self._scheme = api.scheme
        self._host = (api.hostname or "").lower()
        repository_host = self._host.replace(".cdn.", ".", 1)
        self._preview_hosts = frozenset(
            {self._host, repository_host, *(host.lower() for host in preview_hosts)}
        )

    def _auth_params(self) -> dict[str, str]:
        return {"access_token": self._access_token} if self._access_token else {}

    async def _get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        """GET a JSON document with bounded retry."""
        attempts = self._max_retries + 1
        last_error = ContentSourceError("Content source unavailable")
        for attempt in range(1, attempts + 1):
            try:
                response = await self._client.get(url, params=params)
            except httpx.TransportError as exc:
                logger.warning(
                    "Content source request failed (attempt %d/%d): %s", attempt, attempts, exc
                )
                last_error = ContentSourceError(f"Content source unreachable: {exc}")
                last_error.__cause__ = exc
            else:
                if response.status_code in _RETRY_STATUSES:
                    logger.warning(
                        "Content source answered %d (attempt %d/%d)",
                        response.status_code,
                        attempt,
                        attempts,
                    )
                    last_error = ContentSourceError(
                        f"Content source error: HTTP {response.status_code}",
                        status_code=response.status_code,
                    )
                elif response.is_error:
                    raise ContentSourceError(
                        f"Content source error: HTTP {response.status_code}",
                        status_code=response.status_code,
                    )
                else:
                    try:
                        return response.json()
                    except ValueError as exc:
                        msg = "Content source returned invalid JSON"
                        raise ContentSourceError(msg, status_code=response.status_code) from exc
            if attempt < attempts:
                await asyncio.sleep(self._backoff_seconds * attempt)

        raise last_error

    async def master_ref(self) -> str:
        """Return the repository's published content ref (cached)."""
        if self._master_ref is not None:
            return self._master_ref
        api = await self._get_json(self.api_url, params=self._auth_params())
        refs = api.get("refs") if isinstance(api, dict) else None
        master = next(
            (
                ref.get("ref")
                for ref in refs or []
                if isinstance(ref, dict) and ref.get("isMasterRef")
            ),
            None,
        )
        if not isinstance(master, str) or not master:
            msg = "Content source API has no master ref"
            raise ContentSourceError(msg)
        self._master_ref = master
        return master

    async def _search(
        self,
        query: str,
        *,
        ref: str | None = None,
        fetch: str | None = None,
        page_size: int | None = None,
        page: int | None = None,
    ) -> RawListingPage:
        params: dict[str, Any] = {"ref": ref or await self.master_ref(), "q": query}
        if fetch:
            params["fetch"] = fetch
        if page_size is not None:
            params["pageSize"] = page_size
        if page is not None:
            params["page"] = page
        params.update(self._auth_params())
        result = await self._get_json(f"{self.api_url}/documents/search", params=params)
        if not isinstance(result, dict):
            msg = "Content source returned a non-object search result"
            raise ContentSourceError(msg)
        return result

    @staticmethod
    def _first_result(page: RawListingPage) -> RawDocument | None:
        results = page.get("results")
        if isinstance(results, list) and results and isinstance(results[0], dict):
            return results[0]
        return None

    async def get_by_uid(
        self, doc_type: str, uid: str, *, ref: str | None = None
    ) -> RawDocument | None:
        page = await self._search(_predicate(f"my.{doc_type}.uid", uid), ref=ref, page_size=1)
        return self._first_result(page)

    async def get_by_id(self, doc_id: str, *, ref: str | None = None) -> RawDocument | None:
        page = await self._search(_predicate("document.id", doc_id), ref=ref, page_size=1)
        return self._first_result(page)

    async def query_by_type(
        self,
        doc_type: str,
        *,
        fetch_fields: Sequence[str] | None = None,
        page_size: int = 20,
        page: int = 1,
        ref: str | None = None,
    ) -> RawListingPage:
        fetch = ",".join(f"{doc_type}.{field}" for field in fetch_fields or ())
        return await self._search(
            _predicate("document.type", doc_type),
            ref=ref,
            fetch=fetch or None,
            page_size=page_size,
            page=page,
        )

    async def query_all_by_type(
        self,
        doc_type: str,
        *,
        fetch_fields: Sequence[str] | None = None,
        ref: str | None = None,
    ) -> list[RawDocument]:
        page = await self.query_by_type(
            doc_type, fetch_fields=fetch_fields, page_size=_FULL_LISTING_PAGE_SIZE, ref=ref
        )
        documents: list[RawDocument] = list(page.get("results") or [])
        seen: set[str] = set()
        next_page = page.get("next_page")
        while isinstance(next_page, str) and next_page and next_page not in seen:
            seen.add(next_page)
            page = await self.fetch_page(next_page)
            documents.extend(page.get("results") or [])
            next_page = page.get("next_page")
        return documents

    def is_cms_url(self, url: str) -> bool:
        """Whether ``url`` points at this repository's API host."""
        parsed = urlparse(url)
        return parsed.scheme == self._scheme and (parsed.hostname or "").lower() == self._host

    async def fetch_page(self, url: str) -> RawListingPage:
        if not self.is_cms_url(url):
            logger.warning("Refusing to fetch listing cursor outside the CMS host: %s", url)
            msg = "Listing cursor does not belong to the content source"
            raise InvalidCursorError(msg)
        result = await self._get_json(url)
        if not isinstance(result, dict):
            msg = "Content source returned a non-object listing page"
            raise ContentSourceError(msg)
        return result

    def _is_preview_token(self, token: str) -> bool:
        parsed = urlparse(token)
        return (
            parsed.scheme in {"https", self._scheme}
            and (parsed.hostname or "").lower() in self._preview_hosts
        )

    async def resolve_preview(
        self,
        token: str,
        document_id: str | None,
        link_resolver: Callable[[RawDocument], str],
        default_path: str,
    ) -> str | None:
        if not token or not self._is_preview_token(token):
            logger.warning("Rejected preview token outside the CMS host")
            return None
        try:
            session = await self._get_json(token, params=self._auth_params())
        except ContentSourceError as exc:
            status_code = exc.status_code
            if status_code is not None and 400 <= status_code < 500 and status_code != 429:
                logger.info("Preview token rejected by content source (HTTP %d)", exc.status_code)
                return None
            raise

        main_document = document_id
        if not main_document and isinstance(session, dict):
            main_document = session.get("mainDocument")
        if not isinstance(main_document, str) or not main_document:
            return default_path

        doc = await self.get_by_id(main_document, ref=token)
        if doc is None:
            return default_path
        return link_resolver(doc) or default_path
