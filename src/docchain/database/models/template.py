"""Prompt template model for Docchain.

Templates are reusable prompt strings for one document type, containing
placeholder tokens such as {{IDEA}} or {{TECHNICAL_SPEC}}. One template per
type is flagged as the default; the store layer keeps that flag unique.
"""

from __future__ import annotations

from sqlalchemy import Boolean, Text
from sqlalchemy.orm import Mapped, mapped_column

from docchain.database.models.base import Base, TimestampMixin, value_enum
from docchain.database.models.document import DocumentType


class Template(TimestampMixin, Base):
    """A named prompt template for a document type.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        name: Human-readable template name.
        type: Document type the template generates.
        prompt: Prompt text with {{PLACEHOLDER}} tokens.
        is_default: Whether this is the type's default template.
        created_at: Row creation timestamp (from TimestampMixin).
        updated_at: Last modification timestamp (from TimestampMixin).
    """

    __tablename__ = "templates"

    name: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[DocumentType] = mapped_column(
        value_enum(DocumentType, "template_document_type"),
        nullable=False,
        index=True,
    )
    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
