"""
github_client.py — HTTP client for the GitHub OAuth endpoints, the GitHub
user API and raw manifest downloads.

All network failures surface as UpstreamError (502). The client keeps no
per-request state; one instance is created per app in create_app() and
stored on app.extensions["github"].
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote, urlencode

import requests

from comicyore.errors import UpstreamError

logger = logging.getLogger(__name__)

USER_AGENT = "comicyore/1.0"


@dataclass(frozen=True)
class GitHubIdentity:
    github_user_id: int
    login: str
    name: str | None = None
    avatar_url: str | None = None


def _coerce_account_id(raw: Any) -> int | None:
    # bool is an int subclass; a JSON true is not an account id.
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw.isdecimal():
        return int(raw)
    return None


class GitHubClient:

    def __init__(
            self,
            client_id: str,
            client_secret: str,
            *,
            redirect_uri: str = "",
            scope: str = "read:user",
            oauth_base_url: str = "https://github.com",
            api_base_url: str = "https://api.github.com",
            raw_base_url: str = "https://raw.githubusercontent.com",
            timeout: float = 10,
            http: requests.Session | None = None,
    ) -> None:
        self.client_id      = client_id
        self.client_secret  = client_secret
        self.redirect_uri   = redirect_uri
        self.scope          = scope
        self.oauth_base_url = oauth_base_url.rstrip("/")
        self.api_base_url   = api_base_url.rstrip("/")
        self.raw_base_url   = raw_base_url.rstrip("/")
        self.timeout        = timeout
        self.http           = http or requests.Session()

    @classmethod
    def from_config(cls, config) -> "GitHubClient":
        return cls(
            config["GITHUB_CLIENT_ID"],
            config["GITHUB_CLIENT_SECRET"],
            redirect_uri=config.get("GITHUB_REDIRECT_URI", ""),
            scope=config.get("GITHUB_OAUTH_SCOPE", "read:user"),
            oauth_base_url=config["GITHUB_OAUTH_BASE_URL"],
            api_base_url=config["GITHUB_API_BASE_URL"],
            raw_base_url=config["MANIFEST_BASE_URL"],
            timeout=config.get("HTTP_TIMEOUT_SECONDS", 10),
        )

    # ── OAuth ──────────────────────────────────────────────────────────────

    def authorize_url(self, state: str) -> str:
        """URL of the provider's consent screen for this login attempt."""
        params = {
            "client_id": self.client_id,
            "state": state,
            "scope": self.scope,
        }
        if self.redirect_uri:
            params["redirect_uri"] = self.redirect_uri
        return f"{self.oauth_base_url}/login/oauth/authorize?{urlencode(params)}"

    def exchange_code(self, code: str) -> str:
        """
        Trades an authorization code for an access token.

        Raises:
          UpstreamError — transport failure, non-2xx, or no access_token.
        """
        data = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "code": code,
        }
        if self.redirect_uri:
            data["redirect_uri"] = self.redirect_uri

        try:
            resp = self.http.post(
                f"{self.oauth_base_url}/login/oauth/access_token",
                data=data,
                headers={"Accept": "application/json", "User-Agent": USER_AGENT},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("OAuth token exchange failed: %s", exc.__class__.__name__)
            raise UpstreamError("Could not reach the identity provider.") from exc

        if not resp.ok:
            logger.warning("OAuth token exchange returned HTTP %s", resp.status_code)
            raise UpstreamError("The identity provider rejected the authorization code.")

        try:
            body = resp.json()
        except ValueError as exc:
            raise UpstreamError("The identity provider returned an unreadable token response.") from exc

        token = body.get("access_token") if isinstance(body, dict) else None
        if not isinstance(token, str) or not token:
            # GitHub answers 200 with {"error": "bad_verification_code"} on reuse.
            logger.warning(
                "OAuth token exchange returned no token (error=%s)",
                body.get("error") if isinstance(body, dict) else None,
            )
            raise UpstreamError("The identity provider did not issue an access token.")
        return token

    def fetch_identity(self, access_token: str) -> GitHubIdentity:
        """
        Returns the account behind `access_token`.

        Raises:
          UpstreamError — transport failure, non-2xx, or missing/non-numeric
                          id, or missing login.
        """
        try:
            resp = self.http.get(
                f"{self.api_base_url}/user",
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Accept": "application/vnd.github+json",
                    "User-Agent": USER_AGENT,
                },
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("Identity fetch failed: %s", exc.__class__.__name__)
            raise UpstreamError("Could not reach the identity provider.") from exc

        if not resp.ok:
            logger.warning("Identity fetch returned HTTP %s", resp.status_code)
            raise UpstreamError("The identity provider refused the access token.")

        try:
            body = resp.json()
        except ValueError as exc:
            raise UpstreamError("The identity provider returned an unreadable profile.") from exc

        if not isinstance(body, dict):
            raise UpstreamError("The identity provider returned an unreadable profile.")

        account_id = _coerce_account_id(body.get("id"))
        login = body.get("login")
        if account_id is None or not isinstance(login, str) or not login:
            raise UpstreamError("The identity provider returned an incomplete profile.")

        name = body.get("name")
        avatar_url = body.get("avatar_url")
        return GitHubIdentity(
            github_user_id=account_id,
            login=login,
            name=name if isinstance(name, str) else None,
            avatar_url=avatar_url if isinstance(avatar_url, str) else None,
        )

    # ── Manifests ──────────────────────────────────────────────────────────

    def manifest_url(self, owner: str, repo: str, branch: str, path: str) -> str:
        """Public raw-content URL of `path` on `branch`."""
        return "/".join((
            self.raw_base_url,
            quote(owner, safe=""),
            quote(repo, safe=""),
            quote(branch, safe=""),
            quote(path.lstrip("/"), safe="/"),
        ))

    def fetch_json(self, url: str) -> Any:
        """
        GETs `url` without credentials and decodes the body as JSON.

        Raises:
          UpstreamError — transport failure, non-2xx, or non-JSON body.
        """
        try:
            resp = self.http.get(
                url,
                headers={"Accept": "application/json", "User-Agent": USER_AGENT},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("Manifest fetch failed for %s: %s", url, exc.__class__.__name__)
            raise UpstreamError(f"Could not fetch manifest from {url}.") from exc

        if not resp.ok:
            logger.warning("Manifest fetch for %s returned HTTP %s", url, resp.status_code)
            raise UpstreamError(
                f"Manifest fetch from {url} failed with HTTP {resp.status_code}."
            )

        try:
            return resp.json()
        except ValueError as exc:
            raise UpstreamError(f"Manifest at {url} is not valid JSON.") from exc
