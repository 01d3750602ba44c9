"""
security.py — Signing, token and cookie helpers.

State cookie wire format:

    <urlsafe-base64(JSON payload), unpadded> "." <hex HMAC-SHA256(payload part)>

The HMAC covers the encoded payload exactly as it appears in the cookie, so
verification never has to re-serialise JSON.

No Flask request access here; the cookie helpers only touch the Response
object they are given.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import secrets

STATE_COOKIE = "state"
SESSION_COOKIE = "session"


class InvalidSignature(Exception):
    """The signed value is malformed or its signature does not verify."""


# ── Primitives ─────────────────────────────────────────────────────────────

def constant_time_equals(a: str, b: str) -> bool:
    """
    Compares two strings without an early exit on the first differing byte.

    Unequal lengths are reported as unequal. hmac.compare_digest accumulates
    XOR differences across the full input.
    """
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def sign(value: str, secret: str) -> str:
    """Hex HMAC-SHA256 of `value` keyed with `secret`."""
    return hmac.new(
        secret.encode("utf-8"),
        value.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def new_token(nbytes: int = 32) -> str:
    """URL- and cookie-safe random token."""
    return secrets.token_urlsafe(nbytes)


def hash_token(raw_token: str) -> str:
    """SHA-256 hex digest of a raw token. Used for session id storage."""
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _b64decode(text: str) -> bytes:
    padding = "=" * (-len(text) % 4)
    return base64.urlsafe_b64decode((text + padding).encode("ascii"))


# ── Signed JSON values ─────────────────────────────────────────────────────

def encode_signed(payload: dict, secret: str) -> str:
    """Serialises `payload` and appends its signature."""
    body = _b64encode(
        json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8")
    )
    return f"{body}.{sign(body, secret)}"


def decode_signed(value: str, secret: str) -> dict:
    """
    Verifies and decodes a value produced by encode_signed().

    The signature is checked before the payload is decoded, so nothing from
    an unverified cookie is ever parsed.

    Raises:
      InvalidSignature — no separator, bad signature, or undecodable payload.
    """
    body, sep, signature = value.rpartition(".")
    if not sep or not body or not signature:
        raise InvalidSignature("Signed value has no signature part.")

    if not constant_time_equals(sign(body, secret), signature):
        raise InvalidSignature("Signature does not match.")

    try:
        payload = json.loads(_b64decode(body).decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError) as exc:
        raise InvalidSignature("Signed payload is not valid JSON.") from exc

    if not isinstance(payload, dict):
        raise InvalidSignature("Signed payload is not an object.")
    return payload


# ── Cookies ────────────────────────────────────────────────────────────────

def set_cookie(response, name: str, value: str, max_age: int, secure: bool = True) -> None:
    """Sets an HttpOnly, SameSite=Lax cookie scoped to the whole site."""
    response.set_cookie(
        name,
        value,
        max_age=max_age,
        path="/",
        secure=secure,
        httponly=True,
        samesite="Lax",
    )


def clear_cookie(response, name: str, secure: bool = True) -> None:
    """Overwrites `name` with an empty value and a zero max age."""
    set_cookie(response, name, "", max_age=0, secure=secure)
