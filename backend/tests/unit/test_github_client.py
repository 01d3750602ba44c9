"""
tests/unit/test_github_client.py — GitHubClient against a mocked requests.Session.
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock
from urllib.parse import parse_qs, urlparse

import pytest
import requests

from comicyore.errors import ErrorCode, UpstreamError
from comicyore.github_client import GitHubClient


def _response(status: int = 200, body=None, json_error: bool = False):
    def _json():
        if json_error:
            raise ValueError("not json")
        return body

    return SimpleNamespace(ok=200 <= status < 300, status_code=status, json=_json)


@pytest.fixture
def http():
    return MagicMock()


@pytest.fixture
def client(http):
    return GitHubClient(
        "cid",
        "csecret",
        redirect_uri="https://app.test/auth/callback",
        oauth_base_url="https://github.test/",
        api_base_url="https://api.github.test",
        raw_base_url="https://raw.github.test",
        http=http,
    )


def test_authorize_url(client):
    url = urlparse(client.authorize_url("nonce-1"))
    assert url.netloc == "github.test"
    assert url.path == "/login/oauth/authorize"
    assert parse_qs(url.query) == {
        "client_id": ["cid"],
        "state": ["nonce-1"],
        "scope": ["read:user"],
        "redirect_uri": ["https://app.test/auth/callback"],
    }


def test_exchange_code_returns_token(client, http):
    http.post.return_value = _response(body={"access_token": "tok"})

    assert client.exchange_code("code-1") == "tok"

    args, kwargs = http.post.call_args
    assert args[0] == "https://github.test/login/oauth/access_token"
    assert kwargs["data"]["code"] == "code-1"
    assert kwargs["data"]["client_secret"] == "csecret"
    assert kwargs["headers"]["Accept"] == "application/json"


@pytest.mark.parametrize(
    "response",
    [
        _response(status=500, body={}),
        _response(body={"error": "bad_verification_code"}),
        _response(body={"access_token": ""}),
        _response(body=["tok"]),
        _response(json_error=True),
    ],
)
def test_exchange_code_failures_are_upstream_errors(client, http, response):
    http.post.return_value = response
    with pytest.raises(UpstreamError) as exc_info:
        client.exchange_code("code")
    assert exc_info.value.code == ErrorCode.UPSTREAM_ERROR
    assert exc_info.value.http_status == 502


def test_exchange_code_transport_error(client, http):
    http.post.side_effect = requests.ConnectionError("down")
    with pytest.raises(UpstreamError):
        client.exchange_code("code")


def test_fetch_identity(client, http):
    http.get.return_value = _response(body={
        "id": 99, "login": "octo", "name": "Octo", "avatar_url": "https://a.test/99",
    })

    identity = client.fetch_identity("tok")

    assert identity.github_user_id == 99
    assert identity.login == "octo"
    assert identity.name == "Octo"
    assert identity.avatar_url == "https://a.test/99"
    assert http.get.call_args.kwargs["headers"]["Authorization"] == "Bearer tok"


def test_fetch_identity_optional_fields(client, http):
    http.get.return_value = _response(body={"id": 99, "login": "octo", "name": None})
    identity = client.fetch_identity("tok")
    assert identity.name is None
    assert identity.avatar_url is None


@pytest.mark.parametrize(
    "body",
    [
        {"login": "octo"},
        {"id": "abc", "login": "octo"},
        {"id": True, "login": "octo"},
        {"id": 1.5, "login": "octo"},
        {"id": "\u00b2", "login": "octo"},
        {"id": 99},
        {"id": 99, "login": ""},
    ],
)
def test_fetch_identity_incomplete_profile(client, http, body):
    http.get.return_value = _response(body=body)
    with pytest.raises(UpstreamError):
        client.fetch_identity("tok")


def test_fetch_identity_non_success(client, http):
    http.get.return_value = _response(status=401, body={})
    with pytest.raises(UpstreamError):
        client.fetch_identity("tok")


def test_manifest_url_quotes_segments(client):
    assert client.manifest_url("acme", "comic1", "main", "m.json") == (
        "https://raw.github.test/acme/comic1/main/m.json"
    )
    assert client.manifest_url("acme", "comic 1", "main", "/dir/issue #1.json") == (
        "https://raw.github.test/acme/comic%201/main/dir/issue%20%231.json"
    )


def test_fetch_json(client, http):
    http.get.return_value = _response(body={"schemaVersion": 1})
    assert client.fetch_json("https://raw.github.test/x") == {"schemaVersion": 1}
    assert "Authorization" not in http.get.call_args.kwargs["headers"]


def test_fetch_json_non_success(client, http):
    http.get.return_value = _response(status=404)
    with pytest.raises(UpstreamError) as exc_info:
        client.fetch_json("https://raw.github.test/x")
    assert "404" in exc_info.value.message


def test_fetch_json_not_json(client, http):
    http.get.return_value = _response(json_error=True)
    with pytest.raises(UpstreamError):
        client.fetch_json("https://raw.github.test/x")


def test_fetch_json_transport_error(client, http):
    http.get.side_effect = requests.Timeout()
    with pytest.raises(UpstreamError):
        client.fetch_json("https://raw.github.test/x")


def test_fetch_identity_accepts_decimal_string_id(client, http):
    http.get.return_value = _response(body={"id": "4242", "login": "octo"})
    assert client.fetch_identity("tok").github_user_id == 4242
