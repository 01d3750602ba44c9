"""
db_helpers.py — Statement helpers shared by services.

insert_or_ignore() is the first half of the insert-then-update upsert used
for users and cached comics: the insert is a no-op when any unique key
(primary key included) already exists, so concurrent duplicates converge on
one row instead of failing the request.
"""

from __future__ import annotations

from sqlalchemy import insert
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

_ON_CONFLICT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def insert_or_ignore(session: Session, model, values: dict) -> None:
    """INSERT … ON CONFLICT DO NOTHING, or a SAVEPOINT-guarded insert elsewhere."""
    dialect_insert = _ON_CONFLICT_DIALECTS.get(session.get_bind().dialect.name)

    if dialect_insert is not None:
        session.execute(dialect_insert(model).values(**values).on_conflict_do_nothing())
        return

    try:
        with session.begin_nested():
            session.execute(insert(model).values(**values))
    except IntegrityError:
        # Duplicate key: the row already exists and the caller's UPDATE follows.
        return
