"""
models/user.py — User table definition.

A user is a GitHub account that has completed the OAuth round trip at least
once. The primary key is derived from the GitHub account id (see
auth_service.user_id_for) so repeated logins converge on one row.
No business logic. No imports from services or routes.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from comicyore.extensions import db


class User(db.Model):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    github_user_id: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        unique=True,
    )

    github_login: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    sessions: Mapped[list["LoginSession"]] = relationship(  # noqa: F821
        "LoginSession",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    repositories: Mapped[list["Repository"]] = relationship(  # noqa: F821
        "Repository",
        back_populates="user",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<User id={self.id!r} login={self.github_login!r}>"
