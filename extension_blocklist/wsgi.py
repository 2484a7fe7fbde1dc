"""
WSGI entry point

Production: gunicorn extension_blocklist.wsgi:app
"""

from extension_blocklist.main import create_app

app = create_app()
