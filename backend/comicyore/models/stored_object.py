"""
models/stored_object.py — Object-store reference tracking.

One row per object key written through `flask assets put`. Only the object
store bookkeeping touches this table; manifest caching and sessions never
read it.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column

from comicyore.extensions import db


class StoredObject(db.Model):
    __tablename__ = "r2_objects"

    key: Mapped[str] = mapped_column(String(1024), primary_key=True)

    owner_user_id: Mapped[str | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    last_referenced_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<StoredObject key={self.key!r}>"
