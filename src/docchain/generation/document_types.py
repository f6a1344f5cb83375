"""Display information and navigation helpers for document types."""

from __future__ import annotations

from typing import NamedTuple

from docchain.database.models.document import DOCUMENT_TYPE_ORDER, DocumentType


class DocumentTypeInfo(NamedTuple):
    name: str
    description: str


DOCUMENT_TYPE_INFO: dict[DocumentType, DocumentTypeInfo] = {
    DocumentType.project_request: DocumentTypeInfo(
        "Project Request",
        "Outlines the initial idea, goals, and scope.",
    ),
    DocumentType.technical_spec: DocumentTypeInfo(
        "Technical Specification",
        "Includes detailed code snippets and technical requirements.",
    ),
    DocumentType.prd: DocumentTypeInfo(
        "Product Requirements Document",
        "Defines product features, objectives, and constraints.",
    ),
    DocumentType.user_flows: DocumentTypeInfo(
        "User Flows",
        "Provides text descriptions and diagrams of user journeys.",
    ),
    DocumentType.ui_guide: DocumentTypeInfo(
        "UI and Styling Guide",
        "Details design elements and styling rules.",
    ),
    DocumentType.implementation_plan: DocumentTypeInfo(
        "Implementation Plan",
        "Offers a step-by-step roadmap for development.",
    ),
}


def ordinal(document_type: DocumentType) -> int:
    """Return the 1-based position of a type in the generation order."""
    return DOCUMENT_TYPE_ORDER.index(document_type) + 1


def display_name(document_type: DocumentType) -> str:
    """Return the human-readable name, e.g. "Technical Specification"."""
    return DOCUMENT_TYPE_INFO[document_type].name


def next_document_type(document_type: DocumentType) -> DocumentType | None:
    """Return the type generated after this one, or None for the last type."""
    index = DOCUMENT_TYPE_ORDER.index(document_type)
    if index + 1 < len(DOCUMENT_TYPE_ORDER):
        return DOCUMENT_TYPE_ORDER[index + 1]
    return None


def previous_document_type(document_type: DocumentType) -> DocumentType | None:
    """Return the type generated before this one, or None for the first type."""
    index = DOCUMENT_TYPE_ORDER.index(document_type)
    if index > 0:
        return DOCUMENT_TYPE_ORDER[index - 1]
    return None
