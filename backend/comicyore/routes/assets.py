"""
routes/assets.py — Object-store proxy.

  GET /assets/<key>  → 200 object body | 404 OBJECT_NOT_FOUND

Keys are opaque and may contain "/". Responses are immutable: a key is
never rewritten with different content.
"""

from __future__ import annotations

from flask import Blueprint, Response

from comicyore.errors import AppError, ErrorCode
from comicyore.extensions import db, get_object_store
from comicyore.services import asset_service

assets_bp = Blueprint("assets", __name__)

IMMUTABLE_CACHE_CONTROL = "public, max-age=31536000, immutable"


@assets_bp.route("/<path:key>", methods=["GET"])
def get_asset(key: str):
    """GET /assets/<key> — Stream a stored object."""
    blob = get_object_store().get(key)
    if blob is None:
        raise AppError(
            ErrorCode.OBJECT_NOT_FOUND,
            f"Object {key} not found.",
            404,
        )

    asset_service.touch_object(key, session=db.session)
    db.session.commit()

    response = Response(blob.body, status=200, content_type=blob.info.content_type)
    response.headers["Cache-Control"] = IMMUTABLE_CACHE_CONTROL
    return response
