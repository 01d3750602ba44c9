"""
tests/unit/test_auth_service_units.py — auth_service rules that need no database.

The GitHub client and SQLAlchemy session are MagicMocks. Every state
rejection must happen before the provider is contacted.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from comicyore import security
from comicyore.errors import AppError, ErrorCode
from comicyore.services import auth_service
from comicyore.services.auth_service import OAuthSettings

SETTINGS = OAuthSettings(signing_secret="unit-state-secret")
NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def _github():
    github = MagicMock()
    github.authorize_url.side_effect = lambda nonce: f"https://github.test/authorize?state={nonce}"
    return github


def _state_cookie(nonce="nonce-1", return_to="/", issued=NOW, secret=SETTINGS.signing_secret):
    payload = {"nonce": nonce, "returnTo": return_to, "ts": int(issued.timestamp() * 1000)}
    return security.encode_signed(payload, secret)


def _assert_state_error(github, expected_code, **kwargs):
    args = {
        "code": "code-1",
        "state": "nonce-1",
        "state_cookie": _state_cookie(),
        "settings": SETTINGS,
        "github": github,
        "session": MagicMock(),
        "now": NOW,
    }
    args.update(kwargs)
    with pytest.raises(AppError) as exc_info:
        auth_service.complete_login(**args)
    assert exc_info.value.code == expected_code
    assert exc_info.value.http_status == 400
    github.exchange_code.assert_not_called()
    github.fetch_identity.assert_not_called()


# ── returnTo ───────────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "value, expected",
    [
        (None, "/"),
        ("", "/"),
        ("/", "/"),
        ("/read/acme/comic1?page=2", "/read/acme/comic1?page=2"),
        ("https://evil.test/", "/"),
        ("//evil.test/", "/"),
        ("/\\evil.test", "/"),
        ("relative/path", "/"),
    ],
)
def test_safe_return_to(value, expected):
    assert auth_service.safe_return_to(value) == expected


def test_user_id_is_derived_from_github_id():
    assert auth_service.user_id_for(4242) == "gh_4242"


# ── start_login ────────────────────────────────────────────────────────────

def test_start_login_signs_state_and_uses_nonce_in_url():
    github = _github()

    start = auth_service.start_login("/read/a/b", SETTINGS, github, now=NOW)
    payload = security.decode_signed(start.state_cookie, SETTINGS.signing_secret)

    assert payload["returnTo"] == "/read/a/b"
    assert payload["ts"] == int(NOW.timestamp() * 1000)
    assert start.authorize_url.endswith(f"state={payload['nonce']}")


def test_start_login_nonces_differ():
    github = _github()
    first = auth_service.start_login(None, SETTINGS, github, now=NOW)
    second = auth_service.start_login(None, SETTINGS, github, now=NOW)
    assert first.state_cookie != second.state_cookie


def test_start_login_defaults_unsafe_return_to():
    start = auth_service.start_login("https://evil.test", SETTINGS, _github(), now=NOW)
    payload = security.decode_signed(start.state_cookie, SETTINGS.signing_secret)
    assert payload["returnTo"] == "/"


# ── complete_login rejections ──────────────────────────────────────────────

@pytest.mark.parametrize(
    "missing",
    [{"code": None}, {"state": None}, {"state_cookie": None}, {"code": ""}],
)
def test_complete_login_missing_inputs(missing):
    _assert_state_error(_github(), ErrorCode.STATE_MISSING, **missing)


def test_complete_login_bad_signature():
    _assert_state_error(
        _github(),
        ErrorCode.STATE_INVALID,
        state_cookie=_state_cookie(secret="another-secret"),
    )


def test_complete_login_garbage_cookie():
    _assert_state_error(_github(), ErrorCode.STATE_INVALID, state_cookie="not-a-cookie")


def test_complete_login_payload_without_nonce():
    cookie = security.encode_signed({"returnTo": "/", "ts": 1}, SETTINGS.signing_secret)
    _assert_state_error(_github(), ErrorCode.STATE_INVALID, state_cookie=cookie)


def test_complete_login_nonce_mismatch():
    _assert_state_error(_github(), ErrorCode.STATE_MISMATCH, state="other-nonce")


def test_complete_login_expired_state():
    stale = NOW - SETTINGS.state_ttl - timedelta(seconds=1)
    _assert_state_error(
        _github(),
        ErrorCode.STATE_EXPIRED,
        state_cookie=_state_cookie(issued=stale),
    )


def test_complete_login_provider_failure_creates_no_session():
    from comicyore.errors import UpstreamError

    github = _github()
    github.exchange_code.side_effect = UpstreamError("GitHub token exchange failed.")
    session = MagicMock()

    with pytest.raises(UpstreamError):
        auth_service.complete_login(
            "code-1", "nonce-1", _state_cookie(), SETTINGS, github, session, now=NOW,
        )

    github.fetch_identity.assert_not_called()
    session.add.assert_not_called()


# ── session lookup ─────────────────────────────────────────────────────────

@pytest.mark.parametrize("raw", [None, ""])
def test_resolve_session_without_cookie(raw):
    session = MagicMock()
    assert auth_service.resolve_session(raw, session) is None
    session.execute.assert_not_called()


@pytest.mark.parametrize("raw", [None, ""])
def test_end_session_without_cookie_is_noop(raw):
    session = MagicMock()
    auth_service.end_session(raw, session)
    session.execute.assert_not_called()


def test_build_user_dict():
    user = MagicMock(id="gh_1", github_login="octo")
    assert auth_service.build_user_dict(user) == {"id": "gh_1", "login": "octo"}
