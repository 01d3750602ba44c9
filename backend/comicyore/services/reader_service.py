"""
services/reader_service.py — Read-side lookup for the reader view.

No authentication: anything cached is public. Lookups never touch the
network; only rows written by a previous refresh are read.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from comicyore.errors import AppError, ErrorCode
from comicyore.models.comic import Comic
from comicyore.models.repository import Repository
from comicyore.services.page_resolver import ResolvedPage, page_link, resolve_page
from comicyore.services.refresh_service import get_repository


@dataclass(frozen=True)
class ReaderPage:
    repository: Repository
    comic: Comic
    page_number: int
    resolved: ResolvedPage
    prev_page: int | None = None
    next_page: int | None = None


def _get_comic(repo_id: str, slug: str | None, session: Session) -> Comic | None:
    stmt = select(Comic).where(Comic.repo_id == repo_id)
    if slug:
        stmt = stmt.where(Comic.slug == slug)
    else:
        # Most recently cached issue.
        stmt = stmt.order_by(Comic.cached_at.desc(), Comic.updated_at.desc()).limit(1)
    return session.execute(stmt).scalars().first()


def load_page(
        owner: str,
        repo: str,
        page_number: int,
        slug: str | None,
        session: Session,
) -> ReaderPage:
    """
    Raises:
      AppError(REPOSITORY_NOT_FOUND, 404)
      AppError(COMIC_NOT_FOUND, 404) — nothing cached (for `slug`, if given)
      AppError(PAGE_NOT_FOUND, 404)  — page_number resolves to no page
    """
    repository = get_repository(owner, repo, session)

    comic = _get_comic(repository.id, slug, session)
    if comic is None or not comic.cached_manifest_json:
        raise AppError(
            ErrorCode.COMIC_NOT_FOUND,
            f"No cached manifest for {owner}/{repo}" + (f" slug {slug}." if slug else "."),
            404,
        )

    manifest = json.loads(comic.cached_manifest_json)
    resolved = resolve_page(manifest, page_number)
    if resolved is None:
        raise AppError(
            ErrorCode.PAGE_NOT_FOUND,
            f"Page {page_number} not found.",
            404,
        )

    return ReaderPage(
        repository=repository,
        comic=comic,
        page_number=page_number,
        resolved=resolved,
        prev_page=page_link(manifest, resolved.index - 1),
        next_page=page_link(manifest, resolved.index + 1),
    )
