"""
services/refresh_service.py — Fetch, validate and cache one repository's
manifest.

Pipeline (each step raises and stops the request):
  registration lookup  → REPOSITORY_NOT_FOUND (404), before any network call
  fetch manifest       → UpstreamError (502) on non-2xx or non-JSON body
  validate             → ManifestValidationError (422)
  resolve slug         → request override wins over the manifest's slug
  cache                → manifest_cache.upsert_comic()

Authentication is the route's job (@require_auth), so an anonymous caller is
rejected before this module runs.

Layer rules:
  - No Flask imports. Only flush; the route commits.
"""

from __future__ import annotations

import json
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from comicyore.errors import AppError, ErrorCode
from comicyore.models.repository import Repository
from comicyore.services import manifest_cache
from comicyore.services.manifest_validator import validate_manifest

logger = logging.getLogger(__name__)


def get_repository(owner: str, repo: str, session: Session) -> Repository:
    """Returns the registration for owner/repo or raises REPOSITORY_NOT_FOUND (404)."""
    repository = session.execute(
        select(Repository).where(
            Repository.github_owner == owner,
            Repository.github_repo == repo,
        )
    ).scalar_one_or_none()

    if repository is None:
        raise AppError(
            ErrorCode.REPOSITORY_NOT_FOUND,
            f"Repository {owner}/{repo} is not registered.",
            404,
        )
    return repository


def refresh_comic(
        owner: str,
        repo: str,
        slug_override: str | None,
        github,
        session: Session,
) -> dict:
    """
    Re-reads the registered manifest for owner/repo into the cache.

    Returns: {"ok", "owner", "repo", "branch", "path", "source",
              "cached": {"slug", "title"}}
    """
    repository = get_repository(owner, repo, session)

    source = github.manifest_url(
        repository.github_owner,
        repository.github_repo,
        repository.branch,
        repository.manifest_path,
    )
    document = github.fetch_json(source)

    manifest = validate_manifest(document)
    slug = slug_override or manifest.slug

    comic = manifest_cache.upsert_comic(
        repo_id=repository.id,
        slug=slug,
        title=manifest.title,
        manifest_json=json.dumps(manifest.document, ensure_ascii=False),
        session=session,
    )

    logger.info("Cached %s/%s slug=%s pages=%d", owner, repo, slug, len(manifest.pages))
    return {
        "ok": True,
        "owner": repository.github_owner,
        "repo": repository.github_repo,
        "branch": repository.branch,
        "path": repository.manifest_path,
        "source": source,
        "cached": {
            "slug": comic.slug,
            "title": comic.title,
        },
    }
