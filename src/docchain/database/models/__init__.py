"""SQLAlchemy ORM models for Docchain.

This module defines the database schema: projects, their documents, the
append-only version history of each document, and prompt templates.

All models use SQLAlchemy 2.0 declarative style with Mapped[] type annotations.
"""

from docchain.database.models.base import Base, TimestampMixin
from docchain.database.models.document import (
    DOCUMENT_TYPE_ORDER,
    Document,
    DocumentStatus,
    DocumentType,
)
from docchain.database.models.project import GenerationMode, Project
from docchain.database.models.template import Template
from docchain.database.models.version import Version, VersionSource

__all__ = [
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
