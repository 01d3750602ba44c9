"""
extensions.py — Flask extension singletons and collaborator accessors.

SQLAlchemy and marshmallow are created here with no app attached and bound
inside the app factory via init_app(). The GitHub client and the object
store are per-app collaborators stored on app.extensions so tests can swap
them for stubs:

    app.extensions["github"] = StubGitHub()

IMPORTANT — schema inheritance rule:
  Request schemas in comicyore/schemas/ inherit from marshmallow.Schema
  directly, NOT ma.Schema. ma.Schema requires an active application context
  and the unit tests in tests/unit/ run without one.
"""

from flask import current_app
from flask_marshmallow import Marshmallow
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

ma = Marshmallow()


def get_github():
    """Returns the GitHubClient bound to the current app."""
    return current_app.extensions["github"]


def get_object_store():
    """Returns the ObjectStore bound to the current app."""
    return current_app.extensions["object_store"]
