"""
WSGI / Flask-Migrate entry point.

Usage:
    gunicorn wsgi:app
    flask --app wsgi db migrate -m "description"
    flask --app wsgi db upgrade
"""

import atexit

from stakemap import create_app, shutdown_app

app = create_app()
atexit.register(shutdown_app, app)
