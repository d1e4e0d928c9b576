"""
WSGI entry point; also the app Flask-Migrate / Alembic loads.

Usage:
    flask --app wsgi db upgrade
    flask --app wsgi seed-demo
    gunicorn wsgi:app
"""

from cmcs import create_app

app = create_app()
