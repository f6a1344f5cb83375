"""Database layer for Docchain.

This module handles database connections, session management, and exposes
the SQLAlchemy models for projects, documents, versions and templates.

Public API:
    get_engine: Create an AsyncEngine from DatabaseConfig.
    get_session_factory: Create an async_sessionmaker from an engine.
    Base: SQLAlchemy declarative base for all models.
"""

from docchain.database.connection import get_engine, get_session_factory
from docchain.database.errors import NotFoundError, StoreError, ValidationError
from docchain.database.models import (
    DOCUMENT_TYPE_ORDER,
    Base,
    Document,
    DocumentStatus,
    DocumentType,
    GenerationMode,
    Project,
    Template,
    TimestampMixin,
    Version,
    VersionSource,
)

__all__ = [
    "get_engine",
    "get_session_factory",
    "StoreError",
    "NotFoundError",
    "ValidationError",
    "Base",
    "TimestampMixin",
    "Project",
    "GenerationMode",
    "Document",
    "DocumentType",
    "DocumentStatus",
    "DOCUMENT_TYPE_ORDER",
    "Version",
    "VersionSource",
    "Template",
]
