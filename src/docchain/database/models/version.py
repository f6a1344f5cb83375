"""Version model for Docchain.

A Version is an immutable snapshot of a document's content, written just
before that content is overwritten. Versions are append-only and are only
removed when their document (or project) is deleted.
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from docchain.database.models.base import Base, utcnow, value_enum


class VersionSource(str, enum.Enum):
    """What overwrote the content captured by a version.

    Sources:
        manual: A user edit or a version restore.
        ai_generator: A single-shot (standard mode) generation.
        agent_refinement: A revision inside the agent-mode loop.
    """

    manual = "manual"
    ai_generator = "ai-generator"
    agent_refinement = "agent-refinement"


class Version(Base):
    """A historical snapshot of a document's content.

    Attributes:
        id: UUID primary key.
        document_id: Foreign key to the document the snapshot belongs to.
        content: Content as it was before the overwrite.
        source: Origin of the overwrite that triggered the snapshot.
        created_at: Snapshot timestamp.
    """

    __tablename__ = "versions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    document_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    source: Mapped[VersionSource] = mapped_column(
        value_enum(VersionSource, "version_source"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
