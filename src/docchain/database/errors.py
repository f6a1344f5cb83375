"""Exceptions raised by the Docchain query layer."""

from __future__ import annotations


class StoreError(Exception):
    """Base exception for persistence failures."""


class NotFoundError(StoreError):
    """Raised when an update, delete or upsert targets a missing row."""

    def __init__(self, entity: str, identifier: object) -> None:
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} {identifier} not found")


class ValidationError(StoreError):
    """Raised for malformed input such as empty names or unknown enum values."""
