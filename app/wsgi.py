"""
WSGI entry point: ``gunicorn app.wsgi:application``.

The lifespan hooks in ``app.main`` do not run under the WSGI bridge, so
the database engine is created on first use and never disposed here.
"""

from asgiref.wsgi import AsgiToWsgi

from app.main import app

application = AsgiToWsgi(app)
