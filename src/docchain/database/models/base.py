"""SQLAlchemy declarative base and common column mixins for Docchain.

This module defines the DeclarativeBase class, a TimestampMixin that
provides id, created_at, and updated_at columns, and the portable JSON
column type used for free-form maps.

Defaults are generated application-side so that the same models run on
PostgreSQL in production and SQLite in tests.

Example:
    >>> class MyModel(TimestampMixin, Base):
    ...     __tablename__ = "my_table"
    ...     name: Mapped[str] = mapped_column(Text, nullable=False)
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, Enum, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# JSONB on PostgreSQL, plain JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """SQLAlchemy 2.0 declarative base for all Docchain models."""

    pass


class TimestampMixin:
    """Mixin providing id (UUID), created_at, and updated_at columns.

    This mixin should be listed before Base in the class hierarchy
    to ensure the columns are included in the model's table definition.

    Attributes:
        id: UUID primary key generated with uuid4.
        created_at: Timestamp set on row creation.
        updated_at: Timestamp set on row creation and refreshed on each update.
    """

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )


def value_enum(enum_cls: type[enum.Enum], name: str) -> Enum:
    """Build a non-native Enum column type that stores member values.

    Member values such as "technical-spec" are persisted verbatim (rather than
    member names) in a VARCHAR column with a CHECK constraint.

    Args:
        enum_cls: The Python enum class to map.
        name: Name of the generated CHECK constraint / type.

    Returns:
        SQLAlchemy Enum type configured for value storage.
    """
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        length=32,
        validate_strings=True,
        values_callable=lambda members: [m.value for m in members],
    )
