"""
WSGI entry point for the electricity tracker API.

Elastic Beanstalk and gunicorn look for a callable named "application":

    gunicorn application:application

Running this file directly serves the API on HOST:PORT (default 127.0.0.1:5000).
"""
import os
import sys

BUNDLE_ROOT = os.path.dirname(os.path.abspath(__file__))
if BUNDLE_ROOT not in sys.path:
    sys.path.insert(0, BUNDLE_ROOT)

from backend.app import app as application, service


def main():
    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "5000"))
    print(f"Electricity tracker on http://{host}:{port} (bill storage: {service.store.name})")
    application.run(host=host, port=port)


if __name__ == "__main__":
    main()
