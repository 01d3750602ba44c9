"""
cli.py — Administrator commands, registered on the app as `flask repos …`
and `flask assets …`.

Repository registrations are provisioned here only; no HTTP route creates
them.
"""

from __future__ import annotations

import uuid
from pathlib import Path

import click
from flask import Flask
from flask.cli import AppGroup
from sqlalchemy import select

from comicyore.extensions import db, get_object_store
from comicyore.models.repository import DEFAULT_BRANCH, DEFAULT_MANIFEST_PATH, Repository
from comicyore.models.user import User
from comicyore.services import asset_service

repos_cli = AppGroup("repos", help="Manage repository registrations.")
assets_cli = AppGroup("assets", help="Manage stored objects.")


def _user_by_login(login: str) -> User:
    user = db.session.execute(
        select(User).where(User.github_login == login)
    ).scalars().first()
    if user is None:
        raise click.ClickException(
            f"No user with login {login!r}. They must sign in once first."
        )
    return user


@repos_cli.command("register")
@click.argument("owner")
@click.argument("repo")
@click.option("--user", "login", required=True, help="GitHub login of the owning user.")
@click.option("--branch", default=DEFAULT_BRANCH, show_default=True)
@click.option("--manifest-path", default=DEFAULT_MANIFEST_PATH, show_default=True)
def register_repo(owner: str, repo: str, login: str, branch: str, manifest_path: str) -> None:
    """Register OWNER/REPO, or update its branch and manifest path."""
    user = _user_by_login(login)

    repository = db.session.execute(
        select(Repository).where(
            Repository.github_owner == owner,
            Repository.github_repo == repo,
        )
    ).scalar_one_or_none()

    if repository is None:
        repository = Repository(
            id=uuid.uuid4().hex,
            user_id=user.id,
            github_owner=owner,
            github_repo=repo,
            branch=branch,
            manifest_path=manifest_path,
        )
        db.session.add(repository)
        action = "Registered"
    else:
        repository.user_id = user.id
        repository.branch = branch
        repository.manifest_path = manifest_path
        action = "Updated"

    db.session.commit()
    click.echo(f"{action} {owner}/{repo} ({branch}:{manifest_path})")


@repos_cli.command("list")
def list_repos() -> None:
    """List registered repositories."""
    rows = db.session.execute(
        select(Repository).order_by(Repository.github_owner, Repository.github_repo)
    ).scalars().all()
    for row in rows:
        click.echo(f"{row.github_owner}/{row.github_repo}\t{row.branch}\t{row.manifest_path}")


@assets_cli.command("put")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("key")
@click.option("--user", "login", default=None, help="GitHub login recorded as owner.")
@click.option("--content-type", default=None, help="Defaults to a guess from KEY.")
def put_asset(file: Path, key: str, login: str | None, content_type: str | None) -> None:
    """Store FILE under KEY and track it in r2_objects."""
    owner_id = _user_by_login(login).id if login else None
    try:
        info = get_object_store().put(key, file.read_bytes(), content_type)
    except ValueError as exc:
        raise click.ClickException(f"Invalid object key {key!r}.") from exc

    asset_service.record_object(key, owner_id, session=db.session)
    db.session.commit()
    click.echo(f"Stored {info.key} ({info.content_type}, {info.size} bytes)")


def register_cli(app: Flask) -> None:
    app.cli.add_command(repos_cli)
    app.cli.add_command(assets_cli)
