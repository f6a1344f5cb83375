"""Version query functions for Docchain.

Versions are append-only snapshots of document content. They are listed
newest first and restored by writing their content back through the
normal upsert path, which itself snapshots the content being replaced.
"""

from __future__ import annotations

from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docchain.database.errors import NotFoundError
from docchain.database.models.document import Document
from docchain.database.models.version import Version, VersionSource
from docchain.database.queries.document import (
    coerce_version_source,
    get_document,
    upsert_document_content,
)

logger = structlog.get_logger(__name__)


async def list_versions(
    session: AsyncSession,
    document_id: UUID,
) -> list[Version]:
    """List a document's versions, newest first.

    Args:
        session: Active async database session.
        document_id: UUID of the document.

    Returns:
        List of Version instances ordered by created_at descending.
    """
    stmt = (
        select(Version)
        .where(Version.document_id == document_id)
        .order_by(Version.created_at.desc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_version(
    session: AsyncSession,
    version_id: UUID,
) -> Version | None:
    """Retrieve a version by ID."""
    stmt = select(Version).where(Version.id == version_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def create_version(
    session: AsyncSession,
    document_id: UUID,
    content: str,
    source: VersionSource | str,
) -> Version:
    """Append a version snapshot for a document.

    Args:
        session: Active async database session.
        document_id: UUID of the document the snapshot belongs to.
        content: Snapshot content.
        source: Origin tag of the snapshot.

    Returns:
        The newly created Version instance.

    Raises:
        NotFoundError: If the document does not exist.
        ValidationError: If the source is unknown.
    """
    version_source = coerce_version_source(source)

    if await get_document(session, document_id) is None:
        raise NotFoundError("Document", document_id)

    version = Version(document_id=document_id, content=content, source=version_source)
    session.add(version)
    await session.flush()
    await session.refresh(version)
    await session.commit()

    logger.info(
        "version_created",
        version_id=str(version.id),
        document_id=str(document_id),
        source=version_source.value,
    )

    return version


async def restore_version(
    session: AsyncSession,
    document_id: UUID,
    version_id: UUID,
) -> Document:
    """Make an old version's content current again.

    The restore is a manual save: the content being replaced is itself
    snapshotted with source ``manual``.

    Args:
        session: Active async database session.
        document_id: UUID of the document to restore.
        version_id: UUID of the version whose content is restored.

    Returns:
        The updated Document instance.

    Raises:
        NotFoundError: If the document or version does not exist, or the
            version belongs to another document.
    """
    document = await get_document(session, document_id)
    if document is None:
        raise NotFoundError("Document", document_id)

    version = await get_version(session, version_id)
    if version is None or version.document_id != document_id:
        raise NotFoundError("Version", version_id)

    restored = await upsert_document_content(
        session,
        document.project_id,
        document.type,
        version.content,
        source=VersionSource.manual,
        status=document.status,
    )

    logger.info(
        "version_restored",
        document_id=str(document_id),
        version_id=str(version_id),
    )

    return restored
