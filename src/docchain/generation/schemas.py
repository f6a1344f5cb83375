"""Structured-output schemas requested on first generation of each type.

Every schema requires ``mainContent``, which carries the complete formatted
document. The other properties only steer the model towards covering the
expected topics. Types without a dedicated schema use DEFAULT_SCHEMA.
"""

from __future__ import annotations

import copy
from typing import Any

from docchain.database.models.document import DocumentType


def _string(description: str | None = None) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "string"}
    if description:
        schema["description"] = description
    return schema


def _string_list(description: str | None = None) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "array", "items": {"type": "string"}}
    if description:
        schema["description"] = description
    return schema


def _object(*fields: str) -> dict[str, Any]:
    return {"type": "object", "properties": {field: _string() for field in fields}}


def _object_list(*fields: str) -> dict[str, Any]:
    return {"type": "array", "items": _object(*fields)}


def _document(main_description: str, **properties: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {**properties, "mainContent": _string(main_description)},
        "required": ["mainContent"],
    }


DOCUMENT_SCHEMAS: dict[DocumentType, dict[str, Any]] = {
    DocumentType.project_request: _document(
        "The complete, formatted project request document",
        projectName=_string("The name of the project"),
        overview=_string("Brief overview of the project"),
        businessGoals=_string_list("Business goals the project aims to achieve"),
        targetAudience=_string("Description of the target audience"),
        keyFeatures=_string_list("Key features of the project"),
    ),
    DocumentType.technical_spec: _document(
        "The complete, formatted technical specification document",
        architecture=_string("Description of the system architecture"),
        dataModel=_string("Data model description, including entities and relationships"),
        apiEndpoints=_object_list("path", "method", "description"),
        technologies=_string_list("List of technologies used"),
    ),
    DocumentType.prd: _document(
        "The complete, formatted PRD document",
        vision=_string("The product vision statement"),
        objectives=_string_list("Key product objectives"),
        userStories=_object_list("role", "goal", "benefit"),
        features=_object_list("name", "description", "priority"),
    ),
    DocumentType.user_flows: _document(
        "The complete, formatted user flows document",
        flows={
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": _string(),
                    "steps": _string_list(),
                    "diagram": _string(),
                },
            },
        },
    ),
    DocumentType.ui_guide: _document(
        "The complete, formatted UI style guide document",
        colors=_object("primary", "secondary", "accent", "background", "text"),
        typography=_object("headings", "body", "sizing"),
    ),
    DocumentType.implementation_plan: _document(
        "The complete, formatted implementation plan document",
        phases={
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": _string(),
                    "tasks": _string_list(),
                    "duration": _string(),
                },
            },
        },
        resources=_string_list(),
        risks=_object_list("description", "mitigation"),
    ),
}

DEFAULT_SCHEMA: dict[str, Any] = _document(
    "The complete, formatted document content",
    sections=_object_list("title", "content"),
)


def get_document_schema(document_type: DocumentType | str | None) -> dict[str, Any]:
    """Return a copy of the structured-output schema for a document type.

    Unknown types (and None) get the generic DEFAULT_SCHEMA.
    """
    try:
        schema = DOCUMENT_SCHEMAS[DocumentType(document_type)]
    except ValueError:
        schema = DEFAULT_SCHEMA
    return copy.deepcopy(schema)
