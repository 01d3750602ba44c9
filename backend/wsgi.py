"""
wsgi.py — Production entry point.

    flask --app wsgi run        (from backend/)
"""

import os

from comicyore import create_app

app = create_app(os.getenv("FLASK_ENV", "production"))
