"""
services/asset_service.py — Object-store bookkeeping in r2_objects.

Layer rules:
  - No Flask imports. Only flush; the caller commits.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.orm import Session

from comicyore.db_helpers import insert_or_ignore
from comicyore.models.stored_object import StoredObject


def record_object(
        key: str,
        owner_user_id: str | None,
        session: Session,
        now: datetime | None = None,
) -> None:
    """Tracks `key` as written by `owner_user_id`. Re-recording keeps created_at."""
    now = now or datetime.now(timezone.utc)
    insert_or_ignore(session, StoredObject, {
        "key": key,
        "owner_user_id": owner_user_id,
        "created_at": now,
    })
    session.execute(
        update(StoredObject)
        .where(StoredObject.key == key)
        .values(owner_user_id=owner_user_id)
        .execution_options(synchronize_session=False)
    )
    session.flush()


def touch_object(key: str, session: Session, now: datetime | None = None) -> None:
    """Stamps last_referenced_at for a tracked key. Untracked keys are ignored."""
    session.execute(
        update(StoredObject)
        .where(StoredObject.key == key)
        .values(last_referenced_at=now or datetime.now(timezone.utc))
        .execution_options(synchronize_session=False)
    )
    session.flush()
