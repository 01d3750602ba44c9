"""Initial schema — users, repos, comics, sessions, r2_objects.

Revision: 001_initial_schema
Created:  2026-10-18

Append-only: never edit this file after it has been applied to a database.
Schema changes go in a NEW revision.

Creation order (FK dependencies):
  users → repos → comics, sessions, r2_objects

ON DELETE policies:
  sessions.user_id        → CASCADE   (sessions die with their user)
  repos.user_id           → RESTRICT  (cannot delete a user owning registrations)
  comics.repo_id          → RESTRICT  (cannot drop a registration with cached issues)
  r2_objects.owner_user_id→ SET NULL  (objects outlive their uploader)
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# ── Alembic revision identifiers ──────────────────────────────────────────
revision: str = "001_initial_schema"
down_revision: str | None = None      # first migration
branch_labels: tuple | None = None
depends_on: tuple | None = None


def upgrade() -> None:

    # ── users ──────────────────────────────────────────────────────────────
    # id is derived from github_user_id ("gh_<id>"), so re-login never
    # creates a second row.

    op.create_table(
        "users",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("github_user_id", sa.BigInteger(), nullable=False),
        sa.Column("github_login", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("github_user_id", name="uq_users_github_user_id"),
    )

    # ── repos ──────────────────────────────────────────────────────────────

    op.create_table(
        "repos",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column(
            "user_id",
            sa.String(64),
            sa.ForeignKey("users.id", ondelete="RESTRICT", name="fk_repos_user"),
            nullable=False,
        ),
        sa.Column("github_owner", sa.String(255), nullable=False),
        sa.Column("github_repo", sa.String(255), nullable=False),
        sa.Column("branch", sa.String(255), nullable=False, server_default="main"),
        sa.Column(
            "manifest_path",
            sa.String(1024),
            nullable=False,
            server_default="comicyore/manifest.json",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_repos"),
        sa.UniqueConstraint("github_owner", "github_repo", name="uq_repos_owner_repo"),
    )

    # ── comics ─────────────────────────────────────────────────────────────
    # UNIQUE(repo_id, slug) plus a derived primary key: the insert half of
    # the cache upsert is a no-op on either collision.

    op.create_table(
        "comics",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column(
            "repo_id",
            sa.String(64),
            sa.ForeignKey("repos.id", ondelete="RESTRICT", name="fk_comics_repo"),
            nullable=False,
        ),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("status", sa.String(32), nullable=False, server_default="draft"),
        sa.Column("cached_manifest_json", sa.Text(), nullable=True),
        sa.Column("cached_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_comics"),
        sa.UniqueConstraint("repo_id", "slug", name="uq_comics_repo_slug"),
    )

    # ── sessions ───────────────────────────────────────────────────────────
    # id = SHA-256 hex of the raw cookie value.

    op.create_table(
        "sessions",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column(
            "user_id",
            sa.String(64),
            sa.ForeignKey("users.id", ondelete="CASCADE", name="fk_sessions_user"),
            nullable=False,
        ),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_sessions"),
    )

    # ── r2_objects ─────────────────────────────────────────────────────────

    op.create_table(
        "r2_objects",
        sa.Column("key", sa.String(1024), nullable=False),
        sa.Column(
            "owner_user_id",
            sa.String(64),
            sa.ForeignKey("users.id", ondelete="SET NULL", name="fk_r2_objects_owner"),
            nullable=True,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("last_referenced_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("key", name="pk_r2_objects"),
    )

    # ── Indexes ────────────────────────────────────────────────────────────

    op.create_index("ix_sessions_user_id", "sessions", ["user_id"])
    # Reader fallback: latest cached issue per repository.
    op.create_index("idx_comics_repo_cached", "comics", ["repo_id", "cached_at"])


def downgrade() -> None:
    """Drop everything created in upgrade(), in reverse dependency order."""

    op.drop_index("idx_comics_repo_cached", table_name="comics")
    op.drop_index("ix_sessions_user_id", table_name="sessions")

    op.drop_table("r2_objects")
    op.drop_table("sessions")
    op.drop_table("comics")
    op.drop_table("repos")
    op.drop_table("users")
