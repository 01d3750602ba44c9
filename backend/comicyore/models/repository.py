"""
models/repository.py — Repository registration table definition.

Maps a GitHub (owner, name) pair to the branch and path the manifest is read
from. Rows are provisioned by an administrator (`flask repos register`);
request handling only reads them.

FK policy: user_id ON DELETE RESTRICT — a user who owns a registration
cannot be deleted while it exists.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from comicyore.extensions import db

DEFAULT_BRANCH = "main"
DEFAULT_MANIFEST_PATH = "comicyore/manifest.json"


class Repository(db.Model):
    __tablename__ = "repos"

    __table_args__ = (
        UniqueConstraint(
            "github_owner",
            "github_repo",
            name="uq_repos_owner_repo",
        ),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )

    github_owner: Mapped[str] = mapped_column(String(255), nullable=False)

    github_repo: Mapped[str] = mapped_column(String(255), nullable=False)

    branch: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default=DEFAULT_BRANCH,
        server_default=DEFAULT_BRANCH,
    )

    manifest_path: Mapped[str] = mapped_column(
        String(1024),
        nullable=False,
        default=DEFAULT_MANIFEST_PATH,
        server_default=DEFAULT_MANIFEST_PATH,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    user: Mapped["User"] = relationship(  # noqa: F821
        "User",
        back_populates="repositories",
    )

    comics: Mapped[list["Comic"]] = relationship(  # noqa: F821
        "Comic",
        back_populates="repository",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Repository {self.github_owner}/{self.github_repo} branch={self.branch!r}>"
