"""Document CRUD query functions for Docchain.

Provides async functions for reading and writing the current document of
each type within a project. Every overwrite of existing content first
snapshots the previous content into the versions table, in the same
transaction as the overwrite.
"""

from __future__ import annotations

from uuid import UUID

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from docchain.database.errors import NotFoundError, ValidationError
from docchain.database.models.document import (
    DOCUMENT_TYPE_ORDER,
    Document,
    DocumentStatus,
    DocumentType,
)
from docchain.database.models.project import Project
from docchain.database.models.version import Version, VersionSource

logger = structlog.get_logger(__name__)


def coerce_document_type(value: DocumentType | str) -> DocumentType:
    """Convert a value such as "technical-spec" to a DocumentType.

    Raises:
        ValidationError: If the value is not a known document type.
    """
    try:
        return DocumentType(value)
    except ValueError as e:
        raise ValidationError(f"Unknown document type: {value}") from e


def coerce_document_status(value: DocumentStatus | str) -> DocumentStatus:
    """Convert a value such as "completed" to a DocumentStatus.

    Raises:
        ValidationError: If the value is not a known status.
    """
    try:
        return DocumentStatus(value)
    except ValueError as e:
        raise ValidationError(f"Unknown document status: {value}") from e


def coerce_version_source(value: VersionSource | str) -> VersionSource:
    """Convert a value such as "ai-generator" to a VersionSource.

    Raises:
        ValidationError: If the value is not a known source.
    """
    try:
        return VersionSource(value)
    except ValueError as e:
        raise ValidationError(f"Unknown version source: {value}") from e


async def _require_project(session: AsyncSession, project_id: UUID) -> None:
    exists = await session.scalar(select(Project.id).where(Project.id == project_id))
    if exists is None:
        raise NotFoundError("Project", project_id)


async def list_documents(
    session: AsyncSession,
    project_id: UUID,
) -> list[Document]:
    """List a project's current documents in canonical type order.

    Args:
        session: Active async database session.
        project_id: UUID of the owning project.

    Returns:
        Documents sorted by DOCUMENT_TYPE_ORDER, never by timestamps.
    """
    stmt = select(Document).where(Document.project_id == project_id)
    result = await session.execute(stmt)
    documents = list(result.scalars().all())
    documents.sort(key=lambda doc: DOCUMENT_TYPE_ORDER.index(doc.type))
    return documents


async def get_document(
    session: AsyncSession,
    document_id: UUID,
) -> Document | None:
    """Retrieve a document by ID.

    Args:
        session: Active async database session.
        document_id: UUID of the document to retrieve.

    Returns:
        The Document instance if found, None otherwise.
    """
    stmt = select(Document).where(Document.id == document_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_document_by_type(
    session: AsyncSession,
    project_id: UUID,
    document_type: DocumentType | str,
) -> Document | None:
    """Retrieve a project's current document of the given type.

    Args:
        session: Active async database session.
        project_id: UUID of the owning project.
        document_type: Type of the document.

    Returns:
        The Document instance if found, None otherwise.
    """
    stmt = select(Document).where(
        Document.project_id == project_id,
        Document.type == coerce_document_type(document_type),
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def create_document(
    session: AsyncSession,
    project_id: UUID,
    document_type: DocumentType | str,
    content: str,
    status: DocumentStatus | str = DocumentStatus.draft,
) -> Document:
    """Create the first document of a type for a project.

    Args:
        session: Active async database session.
        project_id: UUID of the owning project.
        document_type: Type of the new document.
        content: Initial content.
        status: Initial status.

    Returns:
        The newly created Document instance.

    Raises:
        NotFoundError: If the project does not exist.
        ValidationError: If a document of that type already exists.
    """
    doc_type = coerce_document_type(document_type)
    doc_status = coerce_document_status(status)
    await _require_project(session, project_id)

    if await get_document_by_type(session, project_id, doc_type) is not None:
        raise ValidationError(
            f"Project {project_id} already has a {doc_type.value} document"
        )

    document = Document(
        project_id=project_id,
        type=doc_type,
        content=content,
        status=doc_status,
    )
    session.add(document)
    await session.flush()
    await session.refresh(document)
    await session.commit()

    logger.info(
        "document_created",
        document_id=str(document.id),
        project_id=str(project_id),
        document_type=doc_type.value,
    )

    return document


async def update_document(
    session: AsyncSession,
    document_id: UUID,
    content: str,
    source: VersionSource | str = VersionSource.manual,
    status: DocumentStatus | str | None = None,
) -> Document:
    """Overwrite a document's content, snapshotting the previous content.

    Args:
        session: Active async database session.
        document_id: UUID of the document to overwrite.
        content: New content.
        source: What is overwriting the content.
        status: New status, or None to keep the current one.

    Returns:
        The updated Document instance.

    Raises:
        NotFoundError: If the document does not exist.
    """
    document = await get_document(session, document_id)
    if document is None:
        raise NotFoundError("Document", document_id)

    return await _overwrite(session, document, content, source, status)


async def _overwrite(
    session: AsyncSession,
    document: Document,
    content: str,
    source: VersionSource | str,
    status: DocumentStatus | str | None,
) -> Document:
    version_source = coerce_version_source(source)
    new_status = coerce_document_status(status) if status is not None else None

    # snapshot first: the version carries the content being replaced
    version = Version(
        document_id=document.id,
        content=document.content,
        source=version_source,
    )
    session.add(version)

    document.content = content
    if new_status is not None:
        document.status = new_status

    await session.flush()
    await session.refresh(document)
    await session.commit()

    logger.info(
        "document_overwritten",
        document_id=str(document.id),
        project_id=str(document.project_id),
        document_type=document.type.value,
        version_id=str(version.id),
        source=version_source.value,
    )

    return document


async def set_document_status(
    session: AsyncSession,
    document_id: UUID,
    status: DocumentStatus | str,
) -> Document:
    """Change a document's status without touching its content.

    Args:
        session: Active async database session.
        document_id: UUID of the document.
        status: New status.

    Returns:
        The updated Document instance.

    Raises:
        NotFoundError: If the document does not exist.
        ValidationError: If the status is unknown.
    """
    new_status = coerce_document_status(status)
    document = await get_document(session, document_id)
    if document is None:
        raise NotFoundError("Document", document_id)

    old_status = document.status
    document.status = new_status
    await session.flush()
    await session.refresh(document)
    await session.commit()

    logger.info(
        "document_status_changed",
        document_id=str(document_id),
        old_status=old_status.value,
        new_status=new_status.value,
    )

    return document


async def delete_document(
    session: AsyncSession,
    document_id: UUID,
) -> None:
    """Delete a document and its version history.

    Args:
        session: Active async database session.
        document_id: UUID of the document to delete.

    Raises:
        NotFoundError: If the document does not exist.
    """
    document = await get_document(session, document_id)
    if document is None:
        raise NotFoundError("Document", document_id)

    versions = await session.execute(
        delete(Version).where(Version.document_id == document_id)
    )
    await session.execute(delete(Document).where(Document.id == document_id))
    await session.commit()

    logger.info(
        "document_deleted",
        document_id=str(document_id),
        project_id=str(document.project_id),
        versions_deleted=versions.rowcount,
    )


async def upsert_document_content(
    session: AsyncSession,
    project_id: UUID,
    document_type: DocumentType | str,
    content: str,
    source: VersionSource | str,
    status: DocumentStatus | str = DocumentStatus.draft,
) -> Document:
    """Write the current content of a project's document of one type.

    If a document of that type exists its previous content is written to a
    Version tagged with ``source`` before the overwrite; otherwise the
    document is created and no version is written. When a concurrent writer
    creates the document first, the content is written over theirs.

    Args:
        session: Active async database session.
        project_id: UUID of the owning project.
        document_type: Type of the document.
        content: New content.
        source: What is writing the content.
        status: Status the document is left in.

    Returns:
        The created or updated Document instance.

    Raises:
        NotFoundError: If the project does not exist.
        ValidationError: If the type, source or status is unknown.
    """
    doc_type = coerce_document_type(document_type)
    version_source = coerce_version_source(source)

    existing = await get_document_by_type(session, project_id, doc_type)
    if existing is not None:
        return await _overwrite(session, existing, content, version_source, status)

    try:
        return await create_document(session, project_id, doc_type, content, status)
    except IntegrityError:
        # another writer inserted the first document of this type concurrently
        await session.rollback()
        existing = await get_document_by_type(session, project_id, doc_type)
        if existing is None:
            raise
        logger.warning(
            "document_create_conflict",
            project_id=str(project_id),
            document_type=doc_type.value,
            document_id=str(existing.id),
        )
        return await _overwrite(session, existing, content, version_source, status)
