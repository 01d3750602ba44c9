"""
services/manifest_cache.py — Durable cache of validated manifests.

upsert_comic() is two statements issued in the caller's transaction:

  1. insert a row for (repo_id, slug) with a derived id, ignoring conflicts
  2. unconditionally update title, manifest JSON and both timestamps

Any number of calls with the same key leave exactly one row holding the
last UPDATE to land. If a request dies between 1 and 2 the row exists with
the first call's data and the next refresh overwrites it.

Layer rules:
  - No Flask imports. Only flush; the route commits.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from comicyore.db_helpers import insert_or_ignore
from comicyore.models.comic import Comic

_COMIC_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "comicyore:comics")


def comic_id_for(repo_id: str, slug: str) -> str:
    """Stable id for (repo_id, slug). Same inputs always give the same id."""
    return str(uuid.uuid5(_COMIC_NAMESPACE, f"{repo_id}\x1f{slug}"))


def upsert_comic(
        repo_id: str,
        slug: str,
        title: str,
        manifest_json: str,
        session: Session,
        now: datetime | None = None,
) -> Comic:
    """
    Inserts or refreshes the cached issue for (repo_id, slug).

    Returns the Comic row as it stands after the update.
    """
    now = now or datetime.now(timezone.utc)

    insert_or_ignore(session, Comic, {
        "id": comic_id_for(repo_id, slug),
        "repo_id": repo_id,
        "slug": slug,
        "title": title,
        "status": "draft",
        "cached_manifest_json": manifest_json,
        "cached_at": now,
        "updated_at": now,
    })

    session.execute(
        update(Comic)
        .where(Comic.repo_id == repo_id, Comic.slug == slug)
        .values(
            title=title,
            cached_manifest_json=manifest_json,
            cached_at=now,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    session.flush()

    # populate_existing: the identity map may hold a pre-update copy.
    return session.execute(
        select(Comic)
        .where(Comic.repo_id == repo_id, Comic.slug == slug)
        .execution_options(populate_existing=True)
    ).scalar_one()
