"""
routes/reader.py — Server-rendered single-page reader.

  GET /read/<owner>/<repo>?page=&slug=

No authentication. Errors here are plain text, not the JSON envelope,
because the consumer is a browser tab.
"""

from __future__ import annotations

from flask import Blueprint, Response, render_template, request
from marshmallow import ValidationError

from comicyore.errors import AppError
from comicyore.extensions import db
from comicyore.schemas.reader_schema import ReaderQuerySchema
from comicyore.services import reader_service

reader_bp = Blueprint("reader", __name__)


def _plain(message: str, status: int) -> Response:
    return Response(message, status=status, mimetype="text/plain")


@reader_bp.route("/<owner>/<repo>", methods=["GET"])
def read(owner: str, repo: str):
    """GET /read/<owner>/<repo> — Render one page of a cached issue."""
    try:
        query = ReaderQuerySchema().load(request.args.to_dict())
    except ValidationError:
        return _plain("page must be a positive integer.", 400)

    try:
        view = reader_service.load_page(
            owner=owner,
            repo=repo,
            page_number=query["page"],
            slug=query["slug"],
            session=db.session,
        )
    except AppError as err:
        return _plain(err.message, err.http_status)

    html = render_template(
        "reader.html",
        owner=view.repository.github_owner,
        repo=view.repository.github_repo,
        slug=view.comic.slug,
        title=view.comic.title,
        page=view.resolved.page,
        page_number=view.page_number,
        position=view.resolved.index + 1,
        total_pages=view.resolved.total_pages,
        image_key=view.resolved.image_key,
        prev_page=view.prev_page,
        next_page=view.next_page,
    )
    return Response(html, status=200, mimetype="text/html")
