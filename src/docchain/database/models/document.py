"""Document model for Docchain.

Defines the Document table together with the DocumentType and
DocumentStatus enums. DOCUMENT_TYPE_ORDER fixes the canonical sequence in
which documents are generated; each later type may consume every earlier
type's content as prompt context.
"""

from __future__ import annotations

import enum
import uuid

from sqlalchemy import ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from docchain.database.models.base import Base, TimestampMixin, value_enum


class DocumentType(str, enum.Enum):
    """The six stages of the documentation chain, in canonical order."""

    project_request = "project-request"
    technical_spec = "technical-spec"
    prd = "prd"
    user_flows = "user-flows"
    ui_guide = "ui-guide"
    implementation_plan = "implementation-plan"


DOCUMENT_TYPE_ORDER: tuple[DocumentType, ...] = tuple(DocumentType)


class DocumentStatus(str, enum.Enum):
    """Lifecycle status for a document.

    States:
        draft: Generated or edited, not yet finalised.
        completed: Agent mode finished its refinement attempts.
    """

    draft = "draft"
    completed = "completed"


class Document(TimestampMixin, Base):
    """The current document of one type within a project.

    At most one document exists per (project, type); older content lives
    in the versions table.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        project_id: Foreign key to the owning project.
        type: Document type within the chain.
        content: Current markdown content.
        status: Draft or completed.
        created_at: Row creation timestamp (from TimestampMixin).
        updated_at: Last modification timestamp (from TimestampMixin).
    """

    __tablename__ = "documents"
    __table_args__ = (
        UniqueConstraint("project_id", "type", name="uq_documents_project_type"),
    )

    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type: Mapped[DocumentType] = mapped_column(
        value_enum(DocumentType, "document_type"),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[DocumentStatus] = mapped_column(
        value_enum(DocumentStatus, "document_status"),
        default=DocumentStatus.draft,
        nullable=False,
    )
