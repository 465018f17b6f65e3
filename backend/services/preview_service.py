"""Preview mode: token validation and the signed preview session cookie."""

from __future__ import annotations

import enum
import logging
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any, Protocol

from jose import JWTError, jwt

from backend.cms.base import link_resolver_for
from backend.exceptions import InvalidTokenError

if TYPE_CHECKING:
    from starlette.responses import Response

    from backend.cms.base import ContentSource

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
PREVIEW_COOKIE_NAME = "preview_data"
DEFAULT_PATH = "/"


class PreviewSessionStore(Protocol):
    """Persists or clears the preview flag for one browser session."""

    def set_preview_flag(self, payload: dict[str, Any]) -> None: ...

    def clear_preview_flag(self) -> None: ...


def create_preview_token(payload: dict[str, Any], secret_key: str, max_age_seconds: int) -> str:
    """Sign a preview payload as a short-lived JWT."""
    to_encode = payload.copy()
    expire = datetime.now(UTC) + timedelta(seconds=max_age_seconds)
    to_encode.update({"exp": expire, "type": "preview"})
    return str(jwt.encode(to_encode, secret_key, algorithm=ALGORITHM))


def read_preview_ref(cookie_value: str | None, secret_key: str) -> str | None:
    """Return the preview ref stored in a preview cookie, or None if absent/invalid."""
    if not cookie_value:
        return None
    try:
        payload: dict[str, Any] = jwt.decode(cookie_value, secret_key, algorithms=[ALGORITHM])
    except JWTError:
        logger.debug("Ignoring invalid preview cookie", exc_info=True)
        return None
    if payload.get("type") != "preview":
        return None
    ref = payload.get("ref")
    return ref if isinstance(ref, str) and ref else None


class CookiePreviewSessionStore:
    """Preview session store backed by a signed cookie.

    Changes are recorded and written onto a response with ``apply`` once the
    response exists, so nothing reaches the client unless the caller sends it.
    """

    def __init__(self, secret_key: str, max_age_seconds: int, *, secure: bool = True) -> None:
        self._secret_key = secret_key
        self._max_age_seconds = max_age_seconds
        self._secure = secure
        self._pending_token: str | None = None
        self._cleared = False

    @property
    def has_pending_flag(self) -> bool:
        return self._pending_token is not None

    def set_preview_flag(self, payload: dict[str, Any]) -> None:
        self._pending_token = create_preview_token(
            payload, self._secret_key, self._max_age_seconds
        )
        self._cleared = False

    def clear_preview_flag(self) -> None:
        self._pending_token = None
        self._cleared = True

    def apply(self, response: Response) -> None:
        """Write the recorded change onto ``response``."""
        if self._pending_token is not None:
            response.set_cookie(
                key=PREVIEW_COOKIE_NAME,
                value=self._pending_token,
                httponly=True,
                secure=self._secure,
                samesite="lax",
                max_age=self._max_age_seconds,
                path="/",
            )
        elif self._cleared:
            response.delete_cookie(PREVIEW_COOKIE_NAME, path="/")


class PreviewState(enum.Enum):
    INACTIVE = "inactive"
    ACTIVE = "active"


class PreviewGate:
    """Two-state preview machine: ``INACTIVE`` <-> ``ACTIVE``.

    Entering validates the token/document pair against the content source and
    writes the preview flag only after validation succeeds. Exiting always
    clears the flag.
    """

    def __init__(
        self,
        source: ContentSource,
        store: PreviewSessionStore,
        *,
        post_type: str,
        default_path: str = DEFAULT_PATH,
        state: PreviewState = PreviewState.INACTIVE,
    ) -> None:
        self._source = source
        self._store = store
        self._link_resolver = link_resolver_for(post_type)
        self._default_path = default_path
        self.state = state

    async def enter(self, token: str | None, document_id: str | None) -> str:
        """Activate preview mode and return the path to redirect to.

        Raises ``InvalidTokenError`` without touching the store if the pair
        does not validate.
        """
        if not token:
            raise InvalidTokenError("Missing preview token")
        redirect_path = await self._source.resolve_preview(
            token, document_id or None, self._link_resolver, self._default_path
        )
        if not redirect_path:
            logger.info("Invalid preview token for document %r", document_id)
            raise InvalidTokenError("Invalid token")

        self._store.set_preview_flag({"ref": token})
        self.state = PreviewState.ACTIVE
        logger.info("Preview mode activated, redirecting to %s", redirect_path)
        return redirect_path

    def exit(self) -> str:
        """Deactivate preview mode and return the default path. Idempotent."""
        self._store.clear_preview_flag()
        self.state = PreviewState.INACTIVE
        return self._default_path
