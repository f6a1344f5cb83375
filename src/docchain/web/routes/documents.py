"""Document and version endpoints for Docchain.

Documents are addressed either by project and type (the current document
of that type) or directly by ID. Manual saves go through the same
versioned write path as generation: the content being replaced is kept as
a version tagged ``manual``.

Example:
    >>> from fastapi import FastAPI
    >>> from docchain.web.routes.documents import create_documents_router
    >>>
    >>> app = FastAPI()
    >>> app.include_router(create_documents_router())
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from fastapi import status as http_status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from docchain.database.errors import StoreError
from docchain.database.models.document import (
    DOCUMENT_TYPE_ORDER,
    DocumentStatus,
    DocumentType,
)
from docchain.database.models.version import VersionSource
from docchain.database.queries import document as document_queries
from docchain.database.queries import project as project_queries
from docchain.database.queries import version as version_queries
from docchain.generation.document_types import (
    DOCUMENT_TYPE_INFO,
    next_document_type,
    ordinal,
    previous_document_type,
)
from docchain.logging import get_logger
from docchain.web.dependencies import get_session_factory, to_http_exception

logger = get_logger(__name__)


class DocumentResponse(BaseModel):
    """Response schema for document data."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    project_id: UUID
    type: DocumentType
    content: str
    status: DocumentStatus
    created_at: datetime
    updated_at: datetime


class DocumentSave(BaseModel):
    """Request schema for a manual save of a project's document.

    Attributes:
        content: New document content
        status: Optional new status (the current one is kept when omitted)
    """

    content: str
    status: DocumentStatus | None = None


class DocumentStatusUpdate(BaseModel):
    status: DocumentStatus


class VersionResponse(BaseModel):
    """Response schema for a version snapshot."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    document_id: UUID
    content: str
    source: VersionSource
    created_at: datetime


class DocumentTypeResponse(BaseModel):
    """Display information for a document type.

    Attributes:
        type: Document type value
        position: 1-based position in the generation order
        name: Human-readable name
        description: One-line description
        previous: Type generated before this one, if any
        next: Type generated after this one, if any
    """

    type: DocumentType
    position: int = Field(ge=1)
    name: str
    description: str
    previous: DocumentType | None
    next: DocumentType | None


def create_documents_router() -> APIRouter:
    """Create documents router.

    Routes:
        GET /api/document-types - Ordered document types with display info
        GET /api/projects/{project_id}/documents - Documents in canonical order
        GET /api/projects/{project_id}/documents/{document_type} - Current document
        PUT /api/projects/{project_id}/documents/{document_type} - Manual save
        GET /api/documents/{document_id} - Document by ID
        PATCH /api/documents/{document_id} - Change status
        DELETE /api/documents/{document_id} - Delete document and versions
        GET /api/documents/{document_id}/versions - Versions, newest first
        POST /api/documents/{document_id}/versions/{version_id}/restore - Restore
    """
    router = APIRouter(prefix="/api", tags=["documents"])

    @router.get("/document-types", response_model=list[DocumentTypeResponse])
    async def list_document_types() -> list[DocumentTypeResponse]:
        return [
            DocumentTypeResponse(
                type=document_type,
                position=ordinal(document_type),
                name=DOCUMENT_TYPE_INFO[document_type].name,
                description=DOCUMENT_TYPE_INFO[document_type].description,
                previous=previous_document_type(document_type),
                next=next_document_type(document_type),
            )
            for document_type in DOCUMENT_TYPE_ORDER
        ]

    @router.get(
        "/projects/{project_id}/documents", response_model=list[DocumentResponse]
    )
    async def list_project_documents(
        project_id: UUID,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> list[DocumentResponse]:
        async with session_factory() as session:
            if await project_queries.get_project(session, project_id) is None:
                raise HTTPException(
                    status_code=http_status.HTTP_404_NOT_FOUND,
                    detail=f"Project {project_id} not found",
                )
            documents = await document_queries.list_documents(session, project_id)

        return [DocumentResponse.model_validate(d) for d in documents]

    @router.get(
        "/projects/{project_id}/documents/{document_type}",
        response_model=DocumentResponse,
    )
    async def get_project_document(
        project_id: UUID,
        document_type: DocumentType,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> DocumentResponse:
        async with session_factory() as session:
            document = await document_queries.get_document_by_type(
                session, project_id, document_type
            )

        if document is None:
            raise HTTPException(
                status_code=http_status.HTTP_404_NOT_FOUND,
                detail=f"No {document_type.value} document for project {project_id}",
            )
        return DocumentResponse.model_validate(document)

    @router.put(
        "/projects/{project_id}/documents/{document_type}",
        response_model=DocumentResponse,
    )
    async def save_project_document(
        project_id: UUID,
        document_type: DocumentType,
        payload: DocumentSave,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> DocumentResponse:
        """Save user-edited content as the current document of a type.

        Saving content identical to the current content (with no status
        change) is a no-op and writes no version.
        """
        try:
            async with session_factory() as session:
                existing = await document_queries.get_document_by_type(
                    session, project_id, document_type
                )
                if (
                    existing is not None
                    and existing.content == payload.content
                    and payload.status in (None, existing.status)
                ):
                    logger.info(
                        "document_save_unchanged",
                        document_id=str(existing.id),
                        document_type=document_type.value,
                    )
                    return DocumentResponse.model_validate(existing)

                if existing is not None and existing.content == payload.content:
                    document = await document_queries.set_document_status(
                        session, existing.id, payload.status
                    )
                else:
                    status = payload.status or (
                        existing.status if existing is not None else DocumentStatus.draft
                    )
                    document = await document_queries.upsert_document_content(
                        session,
                        project_id,
                        document_type,
                        payload.content,
                        source=VersionSource.manual,
                        status=status,
                    )
                await project_queries.refresh_project_metadata(session, project_id)
        except StoreError as exc:
            raise to_http_exception(exc) from exc

        logger.info(
            "document_saved_via_api",
            document_id=str(document.id),
            document_type=document_type.value,
        )
        return DocumentResponse.model_validate(document)

    @router.get("/documents/{document_id}", response_model=DocumentResponse)
    async def get_document(
        document_id: UUID,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> DocumentResponse:
        async with session_factory() as session:
            document = await document_queries.get_document(session, document_id)

        if document is None:
            raise HTTPException(
                status_code=http_status.HTTP_404_NOT_FOUND,
                detail=f"Document {document_id} not found",
            )
        return DocumentResponse.model_validate(document)

    @router.patch("/documents/{document_id}", response_model=DocumentResponse)
    async def update_document_status(
        document_id: UUID,
        payload: DocumentStatusUpdate,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> DocumentResponse:
        try:
            async with session_factory() as session:
                document = await document_queries.set_document_status(
                    session, document_id, payload.status
                )
                await project_queries.refresh_project_metadata(
                    session, document.project_id
                )
        except StoreError as exc:
            raise to_http_exception(exc) from exc

        return DocumentResponse.model_validate(document)

    @router.delete(
        "/documents/{document_id}", status_code=http_status.HTTP_204_NO_CONTENT
    )
    async def delete_document(
        document_id: UUID,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> None:
        try:
            async with session_factory() as session:
                document = await document_queries.get_document(session, document_id)
                if document is None:
                    raise HTTPException(
                        status_code=http_status.HTTP_404_NOT_FOUND,
                        detail=f"Document {document_id} not found",
                    )
                project_id = document.project_id
                await document_queries.delete_document(session, document_id)
                await project_queries.refresh_project_metadata(session, project_id)
        except StoreError as exc:
            raise to_http_exception(exc) from exc

    @router.get(
        "/documents/{document_id}/versions", response_model=list[VersionResponse]
    )
    async def list_document_versions(
        document_id: UUID,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> list[VersionResponse]:
        async with session_factory() as session:
            if await document_queries.get_document(session, document_id) is None:
                raise HTTPException(
                    status_code=http_status.HTTP_404_NOT_FOUND,
                    detail=f"Document {document_id} not found",
                )
            versions = await version_queries.list_versions(session, document_id)

        return [VersionResponse.model_validate(v) for v in versions]

    @router.post(
        "/documents/{document_id}/versions/{version_id}/restore",
        response_model=DocumentResponse,
    )
    async def restore_document_version(
        document_id: UUID,
        version_id: UUID,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> DocumentResponse:
        try:
            async with session_factory() as session:
                document = await version_queries.restore_version(
                    session, document_id, version_id
                )
                await project_queries.refresh_project_metadata(
                    session, document.project_id
                )
        except StoreError as exc:
            raise to_http_exception(exc) from exc

        return DocumentResponse.model_validate(document)

    return router
