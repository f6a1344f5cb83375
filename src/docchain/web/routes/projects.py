"""Project endpoints for Docchain.

This module provides REST API endpoints for managing Project resources:
- List projects, most recently updated first
- Get individual project by ID
- Create new projects (optionally starting generation in the background)
- Update and delete projects
- Export a project with its documents as a JSON download

Example:
    >>> from fastapi import FastAPI
    >>> from docchain.web.routes.projects import create_projects_router
    >>>
    >>> app = FastAPI()
    >>> app.include_router(create_projects_router())
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from fastapi import status as http_status
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from docchain.database.errors import StoreError
from docchain.database.models.project import GenerationMode, Project
from docchain.database.queries import document as document_queries
from docchain.database.queries import project as project_queries
from docchain.generation.export import build_export, export_filename
from docchain.generation.orchestrator import SequentialGenerationOrchestrator
from docchain.logging import get_logger
from docchain.web.dependencies import (
    get_orchestrator,
    get_session_factory,
    to_http_exception,
)

logger = get_logger(__name__)


class ProjectCreate(BaseModel):
    """Request schema for creating a new project.

    Attributes:
        name: Human-readable project name
        description: The project idea that seeds the document chain
        generation_mode: "standard" or "agent"
        template: Template set identifier
        metadata: Initial metadata map
        auto_generate: Start generation in the background after creation
    """

    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    generation_mode: GenerationMode = GenerationMode.standard
    template: str = "default"
    metadata: dict[str, Any] = Field(default_factory=dict)
    auto_generate: bool = True


class ProjectUpdate(BaseModel):
    """Request schema for updating a project. Only provided fields change."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, min_length=1)
    generation_mode: GenerationMode | None = None
    template: str | None = None
    metadata: dict[str, Any] | None = None


class ProjectResponse(BaseModel):
    """Response schema for project data."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str
    generation_mode: GenerationMode
    template: str
    metadata: dict[str, Any] = Field(validation_alias=AliasChoices("meta", "metadata"))
    summary: str | None
    created_at: datetime
    updated_at: datetime


async def run_start_project(
    orchestrator: SequentialGenerationOrchestrator,
    project: Project,
) -> None:
    """Background task running the initial generation for a new project."""
    try:
        documents = await orchestrator.start_project(project)
    except Exception as exc:
        logger.error(
            "background_generation_failed",
            project_id=str(project.id),
            generation_mode=project.generation_mode.value,
            error=str(exc),
            exc_info=True,
        )
        return

    logger.info(
        "background_generation_completed",
        project_id=str(project.id),
        documents=len(documents),
    )


def create_projects_router() -> APIRouter:
    """Create projects router.

    Routes:
        GET /api/projects - List projects
        GET /api/projects/{project_id} - Get project by ID
        POST /api/projects - Create project
        PATCH /api/projects/{project_id} - Update project
        DELETE /api/projects/{project_id} - Delete project and its documents
        GET /api/projects/{project_id}/export - Download project as JSON
    """
    router = APIRouter(prefix="/api/projects", tags=["projects"])

    @router.get("", response_model=list[ProjectResponse])
    async def list_projects(
        mode: GenerationMode | None = None,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> list[ProjectResponse]:
        async with session_factory() as session:
            projects = await project_queries.list_projects(session, mode_filter=mode)

        logger.info("projects_listed", count=len(projects), mode_filter=mode)
        return [ProjectResponse.model_validate(p) for p in projects]

    @router.get("/{project_id}", response_model=ProjectResponse)
    async def get_project(
        project_id: UUID,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> ProjectResponse:
        async with session_factory() as session:
            project = await project_queries.get_project(session, project_id)

        if project is None:
            logger.warning("project_not_found", project_id=str(project_id))
            raise HTTPException(
                status_code=http_status.HTTP_404_NOT_FOUND,
                detail=f"Project {project_id} not found",
            )

        return ProjectResponse.model_validate(project)

    @router.post(
        "", response_model=ProjectResponse, status_code=http_status.HTTP_201_CREATED
    )
    async def create_project(
        project_data: ProjectCreate,
        background_tasks: BackgroundTasks,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
        orchestrator: SequentialGenerationOrchestrator = Depends(  # noqa: B008
            get_orchestrator
        ),
    ) -> ProjectResponse:
        """Create a project and, if requested, start generating its documents.

        Standard mode generates the project request; agent mode generates and
        refines every document. Generation runs after the response is sent.
        """
        try:
            async with session_factory() as session:
                project = await project_queries.create_project(
                    session,
                    name=project_data.name,
                    description=project_data.description,
                    generation_mode=project_data.generation_mode,
                    template=project_data.template,
                    meta=project_data.metadata,
                )
        except StoreError as exc:
            raise to_http_exception(exc) from exc

        if project_data.auto_generate:
            background_tasks.add_task(run_start_project, orchestrator, project)

        logger.info(
            "project_created_via_api",
            project_id=str(project.id),
            auto_generate=project_data.auto_generate,
        )
        return ProjectResponse.model_validate(project)

    @router.patch("/{project_id}", response_model=ProjectResponse)
    async def update_project(
        project_id: UUID,
        project_data: ProjectUpdate,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> ProjectResponse:
        updates = project_data.model_dump(exclude_none=True)
        if "metadata" in updates:
            updates["meta"] = updates.pop("metadata")

        if not updates:
            raise HTTPException(
                status_code=http_status.HTTP_400_BAD_REQUEST,
                detail="No fields to update",
            )

        try:
            async with session_factory() as session:
                project = await project_queries.update_project(
                    session, project_id, **updates
                )
        except StoreError as exc:
            logger.warning(
                "project_update_failed", project_id=str(project_id), error=str(exc)
            )
            raise to_http_exception(exc) from exc

        return ProjectResponse.model_validate(project)

    @router.delete("/{project_id}", status_code=http_status.HTTP_204_NO_CONTENT)
    async def delete_project(
        project_id: UUID,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> None:
        try:
            async with session_factory() as session:
                await project_queries.delete_project(session, project_id)
        except StoreError as exc:
            raise to_http_exception(exc) from exc

    @router.get("/{project_id}/export")
    async def export_project(
        project_id: UUID,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> JSONResponse:
        """Download the project and its documents as a JSON attachment."""
        async with session_factory() as session:
            project = await project_queries.get_project(session, project_id)
            if project is None:
                raise HTTPException(
                    status_code=http_status.HTTP_404_NOT_FOUND,
                    detail=f"Project {project_id} not found",
                )
            documents = await document_queries.list_documents(session, project_id)

        filename = export_filename(project.name)
        logger.info(
            "project_exported",
            project_id=str(project_id),
            documents=len(documents),
            filename=filename,
        )
        return JSONResponse(
            content=build_export(project, documents),
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    return router
