"""
services/auth_service.py — GitHub OAuth login and session lifecycle.

Phases:
  start_login()    — mint a signed state value and the provider consent URL
  complete_login() — verify state, exchange the code, upsert the user,
                     mint a session
  resolve_session()— map a session cookie to a User, or None (anonymous)
  end_session()    — delete the session row, if any

State design:
  The state value {nonce, returnTo, ts} lives only in a signed cookie for the
  duration of the round trip. Nothing is stored server-side, so abandoned
  logins leave no rows behind. The cookie is trusted only after its HMAC
  verifies, and only for `state_ttl` after issuance.

Session design:
  Session id: 32 random bytes, urlsafe. Stored as a SHA-256 digest; the raw
  value goes to the browser once. Absolute expiry, no sliding renewal.
  An expired session is indistinguishable from an unknown one.

Layer rules:
  - No Flask imports. Secrets arrive in an OAuthSettings value; the GitHub
    client and the SQLAlchemy session are parameters.
  - Only flush; the route commits. A failure at any step raises before any
    session row is flushed.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from comicyore import security
from comicyore.db_helpers import insert_or_ignore
from comicyore.errors import AppError, ErrorCode
from comicyore.github_client import GitHubIdentity
from comicyore.models.login_session import LoginSession
from comicyore.models.user import User

logger = logging.getLogger(__name__)

DEFAULT_RETURN_TO = "/"


@dataclass(frozen=True)
class OAuthSettings:
    signing_secret: str
    state_ttl: timedelta = timedelta(minutes=10)
    session_ttl: timedelta = timedelta(days=7)

    @classmethod
    def from_config(cls, config) -> "OAuthSettings":
        return cls(
            signing_secret=config["STATE_SIGNING_SECRET"],
            state_ttl=config["OAUTH_STATE_TTL"],
            session_ttl=config["SESSION_TTL"],
        )


@dataclass(frozen=True)
class LoginStart:
    state_cookie: str
    authorize_url: str


@dataclass(frozen=True)
class LoginResult:
    session_id: str     # raw value for the cookie; never stored
    return_to: str
    user: User


# ── Private helpers ────────────────────────────────────────────────────────

def _now_ms(now: datetime | None) -> int:
    if now is None:
        return int(time.time() * 1000)
    return int(now.timestamp() * 1000)


def _state_error(code: str, message: str) -> AppError:
    return AppError(code, message, 400)


def user_id_for(github_user_id: int) -> str:
    """Internal user id derived from the GitHub account id."""
    return f"gh_{github_user_id}"


def safe_return_to(value: str | None) -> str:
    """
    Accepts only same-site absolute paths ("/read/a/b?page=2").
    Scheme-relative ("//evil") and backslash forms fall back to "/".
    """
    if not value or not value.startswith("/"):
        return DEFAULT_RETURN_TO
    if value.startswith("//") or "\\" in value:
        return DEFAULT_RETURN_TO
    return value


def _verify_state(
        state: str,
        state_cookie: str,
        settings: OAuthSettings,
        now: datetime | None,
) -> dict:
    """
    Returns the verified state payload.

    Raises:
      AppError(STATE_INVALID, 400)  — malformed cookie or signature mismatch
      AppError(STATE_MISMATCH, 400) — cookie nonce differs from ?state=
      AppError(STATE_EXPIRED, 400)  — issued more than state_ttl ago
    """
    try:
        payload = security.decode_signed(state_cookie, settings.signing_secret)
    except security.InvalidSignature as exc:
        logger.warning("Rejected OAuth state cookie: %s", exc)
        raise _state_error(ErrorCode.STATE_INVALID, "Invalid state.") from exc

    nonce = payload.get("nonce")
    return_to = payload.get("returnTo")
    issued_ms = payload.get("ts")
    if (
        not isinstance(nonce, str)
        or not isinstance(return_to, str)
        or not isinstance(issued_ms, int)
        or isinstance(issued_ms, bool)
    ):
        raise _state_error(ErrorCode.STATE_INVALID, "Invalid state.")

    if not security.constant_time_equals(nonce, state):
        logger.warning("Rejected OAuth callback: state parameter does not match cookie")
        raise _state_error(ErrorCode.STATE_MISMATCH, "State does not match.")

    age_ms = _now_ms(now) - issued_ms
    if age_ms > settings.state_ttl.total_seconds() * 1000:
        raise _state_error(ErrorCode.STATE_EXPIRED, "Login attempt expired. Please start again.")

    return payload


def build_user_dict(user: User) -> dict:
    """Serialises a User to the public shape. No business logic."""
    return {
        "id": user.id,
        "login": user.github_login,
    }


# ── Public service functions ───────────────────────────────────────────────

def start_login(
        return_to: str | None,
        settings: OAuthSettings,
        github,
        now: datetime | None = None,
) -> LoginStart:
    """
    Begins the OAuth round trip.

    Returns the signed value for the `state` cookie and the provider URL to
    redirect the browser to.
    """
    nonce = security.new_token(16)
    payload = {
        "nonce": nonce,
        "returnTo": safe_return_to(return_to),
        "ts": _now_ms(now),
    }
    return LoginStart(
        state_cookie=security.encode_signed(payload, settings.signing_secret),
        authorize_url=github.authorize_url(nonce),
    )


def upsert_user(identity: GitHubIdentity, session: Session, now: datetime | None = None) -> User:
    """
    Creates or refreshes the User for a GitHub account.

    Keyed on github_user_id: a re-login updates login, name and avatar and
    never creates a second row.
    """
    now = now or datetime.now(timezone.utc)

    insert_or_ignore(session, User, {
        "id": user_id_for(identity.github_user_id),
        "github_user_id": identity.github_user_id,
        "github_login": identity.login,
        "name": identity.name,
        "avatar_url": identity.avatar_url,
        "created_at": now,
        "updated_at": now,
    })

    session.execute(
        update(User)
        .where(User.github_user_id == identity.github_user_id)
        .values(
            github_login=identity.login,
            name=identity.name,
            avatar_url=identity.avatar_url,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    session.flush()

    return session.execute(
        select(User)
        .where(User.github_user_id == identity.github_user_id)
        .execution_options(populate_existing=True)
    ).scalar_one()


def create_session(
        user_id: str,
        settings: OAuthSettings,
        session: Session,
        now: datetime | None = None,
) -> str:
    """Persists a new session for `user_id` and returns its raw id."""
    now = now or datetime.now(timezone.utc)
    raw_session_id = security.new_token(32)

    session.add(LoginSession(
        id=security.hash_token(raw_session_id),
        user_id=user_id,
        expires_at=now + settings.session_ttl,
        created_at=now,
    ))
    session.flush()
    return raw_session_id


def complete_login(
        code: str | None,
        state: str | None,
        state_cookie: str | None,
        settings: OAuthSettings,
        github,
        session: Session,
        now: datetime | None = None,
) -> LoginResult:
    """
    Finishes the OAuth round trip.

    Raises:
      AppError(STATE_MISSING, 400)  — code, state or the state cookie absent
      AppError(STATE_*, 400)        — see _verify_state()
      UpstreamError(502)            — token exchange or identity fetch failed

    Returns: LoginResult with the raw session id and the redirect target.
    """
    if not code or not state or not state_cookie:
        raise _state_error(
            ErrorCode.STATE_MISSING,
            "Missing code, state, or state cookie.",
        )

    payload = _verify_state(state, state_cookie, settings, now)

    access_token = github.exchange_code(code)
    identity = github.fetch_identity(access_token)

    user = upsert_user(identity, session, now)
    raw_session_id = create_session(user.id, settings, session, now)

    logger.info("Login completed for %s", identity.login)
    return LoginResult(
        session_id=raw_session_id,
        return_to=safe_return_to(payload["returnTo"]),
        user=user,
    )


def resolve_session(
        raw_session_id: str | None,
        session: Session,
        now: datetime | None = None,
) -> User | None:
    """
    Returns the User owning an unexpired session, else None.

    Unknown and expired ids both return None; callers cannot tell them apart.
    """
    if not raw_session_id:
        return None
    now = now or datetime.now(timezone.utc)

    return session.execute(
        select(User)
        .join(LoginSession, LoginSession.user_id == User.id)
        .where(
            LoginSession.id == security.hash_token(raw_session_id),
            LoginSession.expires_at > now,
        )
    ).scalar_one_or_none()


def end_session(raw_session_id: str | None, session: Session) -> None:
    """Deletes the session row for `raw_session_id`. Idempotent."""
    if not raw_session_id:
        return
    session.execute(
        delete(LoginSession).where(
            LoginSession.id == security.hash_token(raw_session_id)
        )
    )
    session.flush()
