"""Prompt template endpoints for Docchain.

Example:
    >>> from fastapi import FastAPI
    >>> from docchain.web.routes.templates import create_templates_router
    >>>
    >>> app = FastAPI()
    >>> app.include_router(create_templates_router())
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from fastapi import status as http_status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from docchain.database.errors import StoreError
from docchain.database.models.document import DocumentType
from docchain.database.queries import template as template_queries
from docchain.logging import get_logger
from docchain.web.dependencies import get_session_factory, to_http_exception

logger = get_logger(__name__)


class TemplateCreate(BaseModel):
    """Request schema for creating a template.

    Attributes:
        name: Human-readable template name
        type: Document type the template generates
        prompt: Prompt text with {{PLACEHOLDER}} tokens
        is_default: Make this the type's default template
    """

    name: str = Field(..., min_length=1, max_length=255)
    type: DocumentType
    prompt: str = Field(..., min_length=1)
    is_default: bool = False


class TemplateUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    type: DocumentType | None = None
    prompt: str | None = Field(default=None, min_length=1)
    is_default: bool | None = None


class TemplateResponse(BaseModel):
    """Response schema for template data."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    type: DocumentType
    prompt: str
    is_default: bool
    created_at: datetime
    updated_at: datetime


def create_templates_router() -> APIRouter:
    """Create templates router.

    Routes:
        GET /api/templates - List templates, optionally filtered by type
        GET /api/templates/default/{document_type} - Default template for a type
        GET /api/templates/{template_id} - Template by ID
        POST /api/templates - Create template
        PATCH /api/templates/{template_id} - Update template
    """
    router = APIRouter(prefix="/api/templates", tags=["templates"])

    @router.get("", response_model=list[TemplateResponse])
    async def list_templates(
        type: DocumentType | None = None,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> list[TemplateResponse]:
        async with session_factory() as session:
            templates = await template_queries.list_templates(session, type)

        return [TemplateResponse.model_validate(t) for t in templates]

    @router.get("/default/{document_type}", response_model=TemplateResponse)
    async def get_default_template(
        document_type: DocumentType,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> TemplateResponse:
        async with session_factory() as session:
            template = await template_queries.get_default_template(
                session, document_type
            )

        if template is None:
            raise HTTPException(
                status_code=http_status.HTTP_404_NOT_FOUND,
                detail="Default template not found",
            )
        return TemplateResponse.model_validate(template)

    @router.get("/{template_id}", response_model=TemplateResponse)
    async def get_template(
        template_id: UUID,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> TemplateResponse:
        async with session_factory() as session:
            template = await template_queries.get_template(session, template_id)

        if template is None:
            raise HTTPException(
                status_code=http_status.HTTP_404_NOT_FOUND,
                detail=f"Template {template_id} not found",
            )
        return TemplateResponse.model_validate(template)

    @router.post(
        "", response_model=TemplateResponse, status_code=http_status.HTTP_201_CREATED
    )
    async def create_template(
        template_data: TemplateCreate,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> TemplateResponse:
        try:
            async with session_factory() as session:
                template = await template_queries.create_template(
                    session,
                    name=template_data.name,
                    document_type=template_data.type,
                    prompt=template_data.prompt,
                    is_default=template_data.is_default,
                )
        except StoreError as exc:
            raise to_http_exception(exc) from exc

        return TemplateResponse.model_validate(template)

    @router.patch("/{template_id}", response_model=TemplateResponse)
    async def update_template(
        template_id: UUID,
        template_data: TemplateUpdate,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> TemplateResponse:
        updates = template_data.model_dump(exclude_none=True)
        if not updates:
            raise HTTPException(
                status_code=http_status.HTTP_400_BAD_REQUEST,
                detail="No fields to update",
            )

        try:
            async with session_factory() as session:
                template = await template_queries.update_template(
                    session, template_id, **updates
                )
        except StoreError as exc:
            raise to_http_exception(exc) from exc

        return TemplateResponse.model_validate(template)

    return router
