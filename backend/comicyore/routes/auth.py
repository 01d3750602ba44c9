"""
routes/auth.py — GitHub OAuth route handlers.

Parse the request, call ONE service function, commit, set cookies, redirect.
AppError propagates to the global error handler; routes never catch it.

Endpoints (url_prefix=/auth):
  GET   /auth/start?returnTo=        → 302 to GitHub, sets `state` cookie
  GET   /auth/callback?code=&state=  → 302 to returnTo, sets `session` cookie
  POST  /auth/logout                 → 200, clears `session` cookie
"""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, redirect, request

from comicyore import security
from comicyore.extensions import db, get_github
from comicyore.schemas.reader_schema import AuthStartQuerySchema
from comicyore.services import auth_service

auth_bp = Blueprint("auth", __name__)


def _settings() -> auth_service.OAuthSettings:
    return auth_service.OAuthSettings.from_config(current_app.config)


def _secure() -> bool:
    return bool(current_app.config.get("COOKIE_SECURE", True))


@auth_bp.route("/start", methods=["GET"])
def start():
    """GET /auth/start — Begin login. (No auth required.)"""
    data = AuthStartQuerySchema().load(request.args.to_dict())
    settings = _settings()
    login = auth_service.start_login(
        return_to=data["return_to"],
        settings=settings,
        github=get_github(),
    )

    response = redirect(login.authorize_url, code=302)
    security.set_cookie(
        response,
        security.STATE_COOKIE,
        login.state_cookie,
        max_age=int(settings.state_ttl.total_seconds()),
        secure=_secure(),
    )
    return response


@auth_bp.route("/callback", methods=["GET"])
def callback():
    """GET /auth/callback — Finish login, mint a session."""
    settings = _settings()
    result = auth_service.complete_login(
        code=request.args.get("code"),
        state=request.args.get("state"),
        state_cookie=request.cookies.get(security.STATE_COOKIE),
        settings=settings,
        github=get_github(),
        session=db.session,
    )
    db.session.commit()

    response = redirect(result.return_to, code=302)
    security.set_cookie(
        response,
        security.SESSION_COOKIE,
        result.session_id,
        max_age=int(settings.session_ttl.total_seconds()),
        secure=_secure(),
    )
    security.clear_cookie(response, security.STATE_COOKIE, secure=_secure())
    return response


@auth_bp.route("/logout", methods=["POST"])
def logout():
    """POST /auth/logout — End the session. Always clears the cookie."""
    auth_service.end_session(
        request.cookies.get(security.SESSION_COOKIE),
        session=db.session,
    )
    db.session.commit()

    response = jsonify({"ok": True})
    security.clear_cookie(response, security.SESSION_COOKIE, secure=_secure())
    return response, 200
