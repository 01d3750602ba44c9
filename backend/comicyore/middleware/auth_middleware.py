"""
middleware/auth_middleware.py — Session-cookie authentication.

load_current_user():
  Reads the `session` cookie, resolves it through auth_service and caches
  the result on flask.g.current_user (a User or None) for the request.
  Missing, unknown and expired sessions all yield None.

@require_auth:
  Raises UNAUTHENTICATED (401) when load_current_user() returns None,
  otherwise exposes the user as flask.g.current_user.

Authorization beyond "is logged in" does not happen here.
"""

from __future__ import annotations

import functools
from typing import Callable

from flask import g, request

from comicyore import security
from comicyore.errors import AppError, ErrorCode
from comicyore.extensions import db
from comicyore.services import auth_service

_UNSET = object()


def load_current_user():
    """Returns the authenticated User for this request, or None."""
    cached = g.get("current_user", _UNSET)
    if cached is not _UNSET:
        return cached

    user = auth_service.resolve_session(
        request.cookies.get(security.SESSION_COOKIE),
        session=db.session,
    )
    g.current_user = user
    return user


def require_auth(f: Callable) -> Callable:
    """
    Route decorator that enforces a valid session cookie.

    Usage:
        @api_bp.route("/refresh", methods=["POST"])
        @require_auth
        def refresh():
            user = g.current_user
    """
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        if load_current_user() is None:
            raise AppError(
                ErrorCode.UNAUTHENTICATED,
                "Sign in to continue.",
                401,
            )
        return f(*args, **kwargs)

    return decorated
