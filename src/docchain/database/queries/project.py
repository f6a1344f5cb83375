"""Project CRUD query functions for Docchain.

Provides async functions for creating, reading, updating, and deleting
Project records using SQLAlchemy 2.0 select() API, plus recomputation of
the metadata and summary derived from a project's documents.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from docchain.database.errors import NotFoundError, ValidationError
from docchain.database.models.document import (
    DOCUMENT_TYPE_ORDER,
    Document,
    DocumentStatus,
    DocumentType,
)
from docchain.database.models.project import GenerationMode, Project
from docchain.database.models.version import Version

logger = structlog.get_logger(__name__)

SUMMARY_MAX_LENGTH = 200

_UPDATABLE_FIELDS = frozenset(
    {"name", "description", "generation_mode", "template", "meta", "summary"}
)


def _require_text(field: str, value: str | None) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"Project {field} must not be empty")
    return value


def _coerce_mode(value: GenerationMode | str) -> GenerationMode:
    try:
        return GenerationMode(value)
    except ValueError as e:
        raise ValidationError(f"Unknown generation mode: {value}") from e


def summarize(text: str, max_length: int = SUMMARY_MAX_LENGTH) -> str | None:
    """Derive a one-line summary from markdown text.

    Returns the first line that reads as prose, skipping blank lines,
    headings, code fences, tables and horizontal rules. Leading list and
    emphasis markers are stripped and the result is truncated to max_length.

    Args:
        text: Markdown content to summarize.
        max_length: Maximum length of the returned summary.

    Returns:
        The summary line, or None when the text holds no prose.
    """
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith(("#", "```", "|", "---", "===", "<")):
            continue
        line = line.lstrip("-*>+ ").strip("*_ ")
        if not line:
            continue
        if len(line) > max_length:
            return line[: max_length - 3].rstrip() + "..."
        return line
    return None


async def create_project(
    session: AsyncSession,
    name: str,
    description: str,
    generation_mode: GenerationMode | str = GenerationMode.standard,
    template: str = "default",
    meta: dict[str, Any] | None = None,
) -> Project:
    """Create a new project.

    Args:
        session: Active async database session.
        name: Human-readable project name.
        description: Free-text idea that seeds the document chain.
        generation_mode: Standard or agent generation.
        template: Identifier of the template set to use.
        meta: Optional initial metadata map.

    Returns:
        The newly created Project instance.

    Raises:
        ValidationError: If name or description is empty or the mode is unknown.
    """
    project = Project(
        name=_require_text("name", name).strip(),
        description=_require_text("description", description),
        generation_mode=_coerce_mode(generation_mode),
        template=template,
        meta=dict(meta or {}),
        summary=summarize(description),
    )

    session.add(project)
    await session.flush()
    await session.refresh(project)
    await session.commit()

    logger.info(
        "project_created",
        project_id=str(project.id),
        name=project.name,
        generation_mode=project.generation_mode.value,
    )

    return project


async def get_project(
    session: AsyncSession,
    project_id: UUID,
) -> Project | None:
    """Retrieve a project by ID.

    Args:
        session: Active async database session.
        project_id: UUID of the project to retrieve.

    Returns:
        The Project instance if found, None otherwise.
    """
    stmt = select(Project).where(Project.id == project_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_projects(
    session: AsyncSession,
    mode_filter: GenerationMode | None = None,
) -> list[Project]:
    """List projects, most recently updated first.

    Args:
        session: Active async database session.
        mode_filter: Optional generation mode to filter by.

    Returns:
        List of matching Project instances.
    """
    stmt = select(Project)

    if mode_filter is not None:
        stmt = stmt.where(Project.generation_mode == mode_filter)

    stmt = stmt.order_by(Project.updated_at.desc(), Project.created_at.desc())
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def update_project(
    session: AsyncSession,
    project_id: UUID,
    **updates: Any,
) -> Project:
    """Update a project's fields.

    Args:
        session: Active async database session.
        project_id: UUID of the project to update.
        **updates: Field names and values to update.

    Returns:
        The updated Project instance.

    Raises:
        NotFoundError: If the project does not exist.
        ValidationError: If a field is unknown or a value is invalid.
    """
    unknown = set(updates) - _UPDATABLE_FIELDS
    if unknown:
        raise ValidationError(f"Unknown project fields: {sorted(unknown)}")

    project = await get_project(session, project_id)
    if project is None:
        raise NotFoundError("Project", project_id)

    if "name" in updates:
        updates["name"] = _require_text("name", updates["name"]).strip()
    if "description" in updates:
        updates["description"] = _require_text("description", updates["description"])
    if "generation_mode" in updates:
        updates["generation_mode"] = _coerce_mode(updates["generation_mode"])

    for field, value in updates.items():
        setattr(project, field, value)

    await session.flush()
    await session.refresh(project)
    await session.commit()

    logger.info(
        "project_updated",
        project_id=str(project_id),
        fields_updated=list(updates.keys()),
    )

    return project


async def delete_project(
    session: AsyncSession,
    project_id: UUID,
) -> None:
    """Delete a project together with its documents and their versions.

    Args:
        session: Active async database session.
        project_id: UUID of the project to delete.

    Raises:
        NotFoundError: If the project does not exist.
    """
    project = await get_project(session, project_id)
    if project is None:
        logger.warning("project_not_found", project_id=str(project_id))
        raise NotFoundError("Project", project_id)

    document_ids = select(Document.id).where(Document.project_id == project_id)
    versions = await session.execute(
        delete(Version).where(Version.document_id.in_(document_ids))
    )
    documents = await session.execute(
        delete(Document).where(Document.project_id == project_id)
    )
    await session.execute(delete(Project).where(Project.id == project_id))
    await session.commit()

    logger.info(
        "project_deleted",
        project_id=str(project_id),
        documents_deleted=documents.rowcount,
        versions_deleted=versions.rowcount,
    )


async def refresh_project_metadata(
    session: AsyncSession,
    project_id: UUID,
) -> Project:
    """Recompute the metadata and summary derived from a project's documents.

    Sets ``document_count``, ``completed_count`` and ``document_types`` in the
    project's metadata map (other keys are preserved) and derives the summary
    from the project request, falling back to the project description.

    Args:
        session: Active async database session.
        project_id: UUID of the project to refresh.

    Returns:
        The refreshed Project instance.

    Raises:
        NotFoundError: If the project does not exist.
    """
    project = await get_project(session, project_id)
    if project is None:
        raise NotFoundError("Project", project_id)

    result = await session.execute(
        select(Document).where(Document.project_id == project_id)
    )
    documents = {doc.type: doc for doc in result.scalars().all()}

    meta = dict(project.meta or {})
    meta["document_count"] = len(documents)
    meta["completed_count"] = sum(
        1 for doc in documents.values() if doc.status == DocumentStatus.completed
    )
    meta["document_types"] = [t.value for t in DOCUMENT_TYPE_ORDER if t in documents]
    project.meta = meta

    request = documents.get(DocumentType.project_request)
    summary = summarize(request.content) if request is not None else None
    project.summary = summary or summarize(project.description)

    await session.flush()
    await session.refresh(project)
    await session.commit()

    logger.debug(
        "project_metadata_refreshed",
        project_id=str(project_id),
        document_count=meta["document_count"],
        completed_count=meta["completed_count"],
    )

    return project
