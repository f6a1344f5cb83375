"""Web API for Docchain.

Public API:
    create_app: FastAPI application factory.
"""

from docchain.web.app import create_app

__all__ = ["create_app"]
