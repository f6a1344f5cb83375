"""Project model for Docchain.

Defines the Project table and GenerationMode enum. A project holds the
free-text idea that seeds the document chain, the generation mode chosen
at creation, and metadata/summary derived from its documents.
"""

from __future__ import annotations

import enum
from typing import Any

from sqlalchemy import Text
from sqlalchemy.orm import Mapped, mapped_column

from docchain.database.models.base import Base, JSONType, TimestampMixin, value_enum


class GenerationMode(str, enum.Enum):
    """How documents are produced for a project.

    Modes:
        standard: One document at a time, reviewed and edited by the user.
        agent: Every document generated, evaluated and refined autonomously.
    """

    standard = "standard"
    agent = "agent"


class Project(TimestampMixin, Base):
    """A planning project whose documents are generated in sequence.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        name: Human-readable project name.
        description: Free-text idea description, bound to {{IDEA}} in prompts.
        generation_mode: Standard (user-guided) or agent (autonomous).
        template: Identifier of the template set selected for the project.
        meta: Free-form metadata map (column ``metadata``).
        summary: Short text derived from the project's documents.
        created_at: Row creation timestamp (from TimestampMixin).
        updated_at: Last modification timestamp (from TimestampMixin).
    """

    __tablename__ = "projects"

    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    generation_mode: Mapped[GenerationMode] = mapped_column(
        value_enum(GenerationMode, "generation_mode"),
        default=GenerationMode.standard,
        nullable=False,
    )
    template: Mapped[str] = mapped_column(Text, default="default", nullable=False)
    # "metadata" is reserved on declarative classes
    meta: Mapped[dict[str, Any]] = mapped_column(
        "metadata",
        JSONType,
        default=dict,
        nullable=False,
    )
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
