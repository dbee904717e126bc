"""WSGI entrypoint for serving the LankaTax backend behind gunicorn or Passenger."""

from lankatax.backend.app import create_app

# WSGI servers look up a module-level callable named ``application``.
application = create_app()
