"""
models/comic.py — Cached comic issue table definition.

One row per (repo_id, slug). `id` is derived from both (see
manifest_cache.comic_id_for) so a duplicate insert collides on the primary
key as well as on the unique constraint.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from comicyore.extensions import db


class Comic(db.Model):
    __tablename__ = "comics"

    __table_args__ = (
        UniqueConstraint("repo_id", "slug", name="uq_comics_repo_slug"),
        # Reader fallback: latest cached issue per repository.
        Index("idx_comics_repo_cached", "repo_id", "cached_at"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    # ON DELETE RESTRICT: a registration with cached issues cannot be removed.
    repo_id: Mapped[str] = mapped_column(
        ForeignKey("repos.id", ondelete="RESTRICT"),
        nullable=False,
    )

    slug: Mapped[str] = mapped_column(String(255), nullable=False)

    title: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default="draft",
        server_default="draft",
    )

    # The validated manifest exactly as fetched, re-serialised as JSON.
    cached_manifest_json: Mapped[str | None] = mapped_column(Text, nullable=True)

    cached_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    repository: Mapped["Repository"] = relationship(  # noqa: F821
        "Repository",
        back_populates="comics",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Comic repo_id={self.repo_id!r} slug={self.slug!r}>"
