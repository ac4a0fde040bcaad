"""WSGI entry point for gunicorn (``gunicorn -c gunicorn.conf.py wsgi:app``)."""

from pairauth import create_app

app = create_app()
