"""
models/login_session.py — Login session table definition.

`id` is the SHA-256 hex digest of the raw session id. The raw value is sent
to the browser once, in the `session` cookie, and never stored.

FK policy: user_id ON DELETE CASCADE — sessions die with their user.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from comicyore.extensions import db


class LoginSession(db.Model):
    __tablename__ = "sessions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Absolute expiry. Lookups require expires_at > now.
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    user: Mapped["User"] = relationship(  # noqa: F821
        "User",
        back_populates="sessions",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<LoginSession user_id={self.user_id!r} expires_at={self.expires_at}>"
