"""
routes/api.py — JSON API route handlers.

Endpoints (url_prefix=/api):
  GET   /api/health   → 200 {"ok": true} | 503
  GET   /api/me       → 200 {"authenticated": bool, "user"?: {...}}
  POST  /api/refresh  → 200 refresh result (auth required)
"""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from comicyore.errors import ErrorCode
from comicyore.extensions import db, get_github
from comicyore.middleware.auth_middleware import load_current_user, require_auth
from comicyore.schemas.refresh_schema import RefreshRequestSchema
from comicyore.services import auth_service, refresh_service

api_bp = Blueprint("api", __name__)


@api_bp.route("/health", methods=["GET"])
def health():
    """GET /api/health — Liveness probe against the database."""
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        current_app.logger.exception("Health check failed")
        db.session.rollback()
        return jsonify({
            "ok": False,
            "error": {
                "code": ErrorCode.STORAGE_UNAVAILABLE,
                "message": "Database is unreachable.",
            },
        }), 503
    return jsonify({"ok": True}), 200


@api_bp.route("/me", methods=["GET"])
def me():
    """GET /api/me — Who is signed in, if anyone."""
    user = load_current_user()
    if user is None:
        return jsonify({"authenticated": False}), 200
    return jsonify({
        "authenticated": True,
        "user": auth_service.build_user_dict(user),
    }), 200


@api_bp.route("/refresh", methods=["POST"])
@require_auth
def refresh():
    """POST /api/refresh — Fetch, validate and cache a registered manifest."""
    data = RefreshRequestSchema().load(request.get_json(force=True, silent=True) or {})
    result = refresh_service.refresh_comic(
        owner=data["owner"],
        repo=data["repo"],
        slug_override=data["slug"],
        github=get_github(),
        session=db.session,
    )
    db.session.commit()
    return jsonify(result), 200
