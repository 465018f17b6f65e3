"""Application-level exception types.

Convention:
- ``MalformedDocumentError``: a raw CMS document is missing its identity or is
  structurally broken. Never retried; the global handler logs it at ERROR and
  fails the request with a generic 500 so a broken page is never rendered.
- ``PostNotFoundError``: the requested identifier has no document (404).
- ``InvalidTokenError``: preview token validation failed (401). No session
  state is written when this is raised.
- ``ContentSourceError``: the CMS could not be reached or answered with a
  server error after the bounded retry (502).
- ``InvalidCursorError``: a listing cursor points outside the content source
  (400). It is never fetched.
"""

from __future__ import annotations


class MalformedDocumentError(ValueError):
    """Raised when a raw CMS document cannot be normalized."""


class PostNotFoundError(LookupError):
    """Raised when no document matches the requested identifier."""

    def __init__(self, uid: str) -> None:
        super().__init__(f"Post not found: {uid!r}")
        self.uid = uid


class InvalidTokenError(Exception):
    """Raised when a preview token/document pair does not validate."""


class ContentSourceError(RuntimeError):
    """Raised when the content source is unreachable or answers with an error."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InvalidCursorError(ValueError):
    """Raised when a listing cursor does not point at the content source."""
