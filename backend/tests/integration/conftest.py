"""
tests/integration/conftest.py — Fixtures and helpers for all integration tests.

Design:
  - The app is created once per session using create_app("testing"), which
    points at an in-memory SQLite database unless TEST_DATABASE_URL is set.
  - All tables are created once via db.create_all() at session start.
  - Between tests, all rows are deleted in FK-safe order so tests are isolated.
  - The GitHub client is replaced by StubGitHub: no network, programmable
    identity and manifests, and a log of fetched URLs.
  - The object store points at a session-scoped temp directory.
  - The test client does NOT keep a cookie jar. Cookies are read from
    Set-Cookie headers and sent back explicitly, so each test states exactly
    which cookies a request carries.

Helper functions (not fixtures):
  - cookie_value(resp, name) → value from the response's Set-Cookie headers
  - login(client, ...)       → raw session id after a full OAuth round trip
  - session_cookie(sid)      → {"Cookie": "session=<sid>"}
  - register_repo(app, ...)  → runs `flask repos register`
"""

from __future__ import annotations

from urllib.parse import parse_qs, urlparse
from unittest.mock import MagicMock

import pytest
from sqlalchemy import text

from comicyore import create_app
from comicyore.errors import UpstreamError
from comicyore.extensions import db as _db
from comicyore.github_client import GitHubClient, GitHubIdentity
from comicyore.object_store import LocalObjectStore


# ═══════════════════════════════════════════════════════════════════════════
# GitHub stub
# ═══════════════════════════════════════════════════════════════════════════

class StubGitHub(GitHubClient):
    """Real URL building, canned network answers."""

    def __init__(self) -> None:
        super().__init__(
            "test-client-id",
            "test-client-secret",
            oauth_base_url="https://github.test",
            api_base_url="https://api.github.test",
            raw_base_url="https://raw.github.test",
            http=MagicMock(),
        )
        self.reset()

    def reset(self) -> None:
        self.identity = GitHubIdentity(
            github_user_id=4242,
            login="octo",
            name="Octo Cat",
            avatar_url="https://avatars.test/4242",
        )
        self.manifests: dict[str, object] = {}
        self.exchange_error: str | None = None
        self.exchanged_codes: list[str] = []
        self.fetched: list[str] = []

    def exchange_code(self, code: str) -> str:
        self.exchanged_codes.append(code)
        if self.exchange_error:
            raise UpstreamError(self.exchange_error)
        return f"token-{code}"

    def fetch_identity(self, access_token: str) -> GitHubIdentity:
        return self.identity

    def fetch_json(self, url: str):
        self.fetched.append(url)
        if url not in self.manifests:
            raise UpstreamError(f"Manifest fetch from {url} failed with HTTP 404.")
        return self.manifests[url]


# ═══════════════════════════════════════════════════════════════════════════
# Session-scoped app fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(scope="session")
def app(tmp_path_factory):
    flask_app = create_app("testing")
    flask_app.extensions["github"] = StubGitHub()
    flask_app.extensions["object_store"] = LocalObjectStore(
        tmp_path_factory.mktemp("objects")
    )

    with flask_app.app_context():
        _db.create_all()

    yield flask_app

    with flask_app.app_context():
        _db.drop_all()


# ═══════════════════════════════════════════════════════════════════════════
# Function-scoped test isolation
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def clean_tables(app):
    """Deletes all rows after every test, children before parents."""
    app.extensions["github"].reset()

    yield

    with app.app_context():
        _db.session.rollback()  # discard any uncommitted state from a failed test
        _db.session.execute(text("DELETE FROM sessions"))
        _db.session.execute(text("DELETE FROM comics"))
        _db.session.execute(text("DELETE FROM r2_objects"))
        _db.session.execute(text("DELETE FROM repos"))
        _db.session.execute(text("DELETE FROM users"))
        _db.session.commit()


@pytest.fixture
def client(app):
    """Flask test client without a cookie jar."""
    return app.test_client(use_cookies=False)


@pytest.fixture
def github(app) -> StubGitHub:
    return app.extensions["github"]


@pytest.fixture
def object_store(app) -> LocalObjectStore:
    return app.extensions["object_store"]


# ═══════════════════════════════════════════════════════════════════════════
# Shared helper functions (not fixtures)
# ═══════════════════════════════════════════════════════════════════════════

def set_cookies(resp) -> dict[str, str]:
    """All Set-Cookie name → raw header, last one wins."""
    cookies = {}
    for header in resp.headers.getlist("Set-Cookie"):
        name = header.split("=", 1)[0]
        cookies[name] = header
    return cookies


def cookie_value(resp, name: str) -> str | None:
    header = set_cookies(resp).get(name)
    if header is None:
        return None
    return header.split(";", 1)[0].split("=", 1)[1]


def state_from_location(resp) -> str:
    query = parse_qs(urlparse(resp.headers["Location"]).query)
    return query["state"][0]


def session_cookie(session_id: str) -> dict:
    return {"Cookie": f"session={session_id}"}


def login(client, return_to: str = "/", code: str = "good-code") -> str:
    """Runs /auth/start → /auth/callback and returns the raw session id."""
    start = client.get("/auth/start", query_string={"returnTo": return_to})
    assert start.status_code == 302, start.get_data(as_text=True)

    resp = client.get(
        "/auth/callback",
        query_string={"code": code, "state": state_from_location(start)},
        headers={"Cookie": f"state={cookie_value(start, 'state')}"},
    )
    assert resp.status_code == 302, f"login failed: {resp.get_json()}"
    session_id = cookie_value(resp, "session")
    assert session_id
    return session_id


def register_repo(
        app,
        owner: str = "acme",
        repo: str = "comic1",
        user: str = "octo",
        branch: str = "main",
        manifest_path: str = "m.json",
):
    result = app.test_cli_runner().invoke(args=[
        "repos", "register", owner, repo,
        "--user", user,
        "--branch", branch,
        "--manifest-path", manifest_path,
    ])
    assert result.exit_code == 0, result.output
    return result


def manifest_doc(slug: str = "issue-1", title: str = "Issue One", pages: int = 2) -> dict:
    return {
        "schemaVersion": 1,
        "issue": {"title": title, "slug": slug},
        "pages": [
            {
                "id": f"p{n}",
                "alt": f"Page {n}",
                "image": {"r2Key": f"acme/comic1/{slug}/{n:03d}.png"},
            }
            for n in range(1, pages + 1)
        ],
    }
