"""JSON export of a project and its documents."""

from __future__ import annotations

import re
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from docchain.database.models.document import Document
from docchain.database.models.project import Project
from docchain.generation.document_types import display_name


def _timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def export_filename(project_name: str) -> str:
    """Return the download filename, e.g. ``my-app-documentation.json``."""
    slug = re.sub(r"\s+", "-", project_name).lower()
    return f"{slug}-documentation.json"


def build_export(project: Project, documents: Sequence[Document]) -> dict[str, Any]:
    """Build a JSON-serialisable bundle of a project and its documents.

    Args:
        project: The project to export.
        documents: Its current documents, in canonical order.

    Returns:
        Dict with ``project`` and ``documents`` keys.
    """
    return {
        "project": {
            "id": str(project.id),
            "name": project.name,
            "description": project.description,
            "generation_mode": project.generation_mode.value,
            "template": project.template,
            "metadata": dict(project.meta or {}),
            "summary": project.summary,
            "created_at": _timestamp(project.created_at),
            "updated_at": _timestamp(project.updated_at),
        },
        "documents": [
            {
                "id": str(document.id),
                "type": document.type.value,
                "title": display_name(document.type),
                "content": document.content,
                "status": document.status.value,
                "created_at": _timestamp(document.created_at),
                "updated_at": _timestamp(document.updated_at),
            }
            for document in documents
        ],
    }
