"""
errors.py — AppError base class and error code registry.

Every structured error returned by the API uses a code defined here.
Do not raise strings or generic exceptions from service or route code.

  - Error codes are a versioned contract. They do not change once published.
  - Error messages are human-readable prose. They may be improved at any time.
  - OAuth round-trip failures are 400 (bad state) or 502 (provider failed);
    a missing session on a protected route is 401.
"""

from __future__ import annotations


class AppError(Exception):

    def __init__(
            self,
            code: str,
            message: str,
            http_status: int,
            field: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code        = code
        self.message     = message
        self.http_status = http_status
        self.field       = field  # which request/manifest field caused the error

    def to_dict(self) -> dict:
        payload = {
            "code":    self.code,
            "message": self.message,
        }
        if self.field is not None:
            payload["field"] = self.field
        return {"error": payload}

    def __repr__(self) -> str:
        return (
            f"AppError(code={self.code!r}, "
            f"http_status={self.http_status}, "
            f"message={self.message!r})"
        )


class ManifestValidationError(AppError):
    """
    A fetched manifest broke a schema rule. `field` is the path of the first
    offending value, e.g. "schemaVersion" or "pages[3].image.r2Key".
    """

    def __init__(self, field: str, message: str) -> None:
        super().__init__(ErrorCode.MANIFEST_INVALID, message, 422, field=field)


class UpstreamError(AppError):
    """A remote dependency (manifest host, OAuth provider) failed."""

    def __init__(self, message: str) -> None:
        super().__init__(ErrorCode.UPSTREAM_ERROR, message, 502)


# ── Error Code Registry ────────────────────────────────────────────────────
#
# Organised by category. HTTP status is indicated in the comment.
# These are the string values sent in the API response.
# ──────────────────────────────────────────────────────────────────────────

class ErrorCode:

    # ── Schema / Input Errors (400) ────────────────────────────────────────
    MISSING_FIELD          = "MISSING_FIELD"
    INVALID_FIELD          = "INVALID_FIELD"

    # ── OAuth state errors (400) ───────────────────────────────────────────
    STATE_MISSING          = "STATE_MISSING"     # code, state or cookie absent
    STATE_INVALID          = "STATE_INVALID"     # malformed cookie or bad signature
    STATE_MISMATCH         = "STATE_MISMATCH"    # cookie nonce != state param
    STATE_EXPIRED          = "STATE_EXPIRED"     # issued longer ago than the TTL

    # ── Auth Errors (401) ──────────────────────────────────────────────────
    UNAUTHENTICATED        = "UNAUTHENTICATED"

    # ── Not Found Errors (404) ─────────────────────────────────────────────
    NOT_FOUND              = "NOT_FOUND"
    REPOSITORY_NOT_FOUND   = "REPOSITORY_NOT_FOUND"
    COMIC_NOT_FOUND        = "COMIC_NOT_FOUND"
    PAGE_NOT_FOUND         = "PAGE_NOT_FOUND"
    OBJECT_NOT_FOUND       = "OBJECT_NOT_FOUND"
    METHOD_NOT_ALLOWED     = "METHOD_NOT_ALLOWED"  # 405

    # ── Manifest rule violations (422) ────────────────────────────────────
    MANIFEST_INVALID       = "MANIFEST_INVALID"

    # ── Upstream failures (502) ───────────────────────────────────────────
    UPSTREAM_ERROR         = "UPSTREAM_ERROR"

    # ── System Errors (500 / 503) ─────────────────────────────────────────
    INTERNAL_ERROR         = "INTERNAL_ERROR"
    STORAGE_UNAVAILABLE    = "STORAGE_UNAVAILABLE"
