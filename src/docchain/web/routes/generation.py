"""Generation endpoints for Docchain.

Exposes the raw generation and evaluation clients as well as the
orchestrated operations on a project's documents: single-shot generation,
agent-mode refinement of one type, and a background run over the whole
chain.

Example:
    >>> from fastapi import FastAPI
    >>> from docchain.web.routes.generation import create_generation_router
    >>>
    >>> app = FastAPI()
    >>> app.include_router(create_generation_router())
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from fastapi import status as http_status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from docchain.database.errors import StoreError
from docchain.database.models.document import Document, DocumentType
from docchain.database.models.project import Project
from docchain.database.queries import document as document_queries
from docchain.database.queries import project as project_queries
from docchain.generation.orchestrator import (
    RefinementState,
    SequentialGenerationOrchestrator,
)
from docchain.llm.errors import LLMClientError
from docchain.llm.evaluation import EvaluationClient, EvaluationResult
from docchain.llm.generation import GenerationClient
from docchain.logging import get_logger
from docchain.web.dependencies import (
    get_evaluation_client,
    get_generation_client,
    get_orchestrator,
    get_session_factory,
    to_http_exception,
)
from docchain.web.routes.documents import DocumentResponse

logger = get_logger(__name__)


class GenerateRequest(BaseModel):
    """Request schema for raw generation.

    Attributes:
        prompt: Fully resolved prompt
        model: Optional model identifier (must be allowed)
        document_type: Request structured output for this type
    """

    prompt: str = Field(..., min_length=1)
    model: str | None = None
    document_type: DocumentType | None = None


class GenerateResponse(BaseModel):
    content: str


class EvaluateRequest(BaseModel):
    content: str = Field(..., min_length=1)
    criteria: str = Field(..., min_length=1)


class GenerateDocumentRequest(BaseModel):
    template_id: UUID | None = None


class RefineDocumentRequest(BaseModel):
    """Request schema for agent-mode refinement of one document type.

    Attributes:
        max_iterations: Evaluate/revise budget (configured default when omitted)
        template_id: Template for the initial generation
    """

    max_iterations: int | None = Field(default=None, ge=1, le=10)
    template_id: UUID | None = None


class RefinementResponse(BaseModel):
    document: DocumentResponse
    revisions: int
    exit_state: RefinementState
    last_evaluation: EvaluationResult | None


class GenerateAllResponse(BaseModel):
    project_id: UUID
    status: str


async def _load_project(
    session_factory: async_sessionmaker[AsyncSession],
    project_id: UUID,
) -> tuple[Project, list[Document]]:
    async with session_factory() as session:
        project = await project_queries.get_project(session, project_id)
        if project is None:
            raise HTTPException(
                status_code=http_status.HTTP_404_NOT_FOUND,
                detail=f"Project {project_id} not found",
            )
        documents = await document_queries.list_documents(session, project_id)
    return project, documents


async def run_generate_all(
    orchestrator: SequentialGenerationOrchestrator,
    project: Project,
) -> None:
    """Background task generating and refining a project's whole chain."""
    try:
        await orchestrator.generate_all(project)
    except Exception as exc:
        logger.error(
            "background_generate_all_failed",
            project_id=str(project.id),
            error=str(exc),
            exc_info=True,
        )


def create_generation_router() -> APIRouter:
    """Create generation router.

    Routes:
        POST /api/generate - Generate text for a prompt
        POST /api/evaluate - Evaluate content against a rubric
        POST /api/projects/{project_id}/documents/{document_type}/generate
        POST /api/projects/{project_id}/documents/{document_type}/refine
        POST /api/projects/{project_id}/generate-all
    """
    router = APIRouter(prefix="/api", tags=["generation"])

    @router.post("/generate", response_model=GenerateResponse)
    async def generate(
        payload: GenerateRequest,
        generation_client: GenerationClient = Depends(  # noqa: B008
            get_generation_client
        ),
    ) -> GenerateResponse:
        if payload.model is not None and payload.model not in (
            generation_client.config.allowed_models
        ):
            raise HTTPException(
                status_code=http_status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid model specified: {payload.model}",
            )

        try:
            content = await generation_client.generate(
                payload.prompt,
                model=payload.model,
                document_type=payload.document_type,
            )
        except LLMClientError as exc:
            raise to_http_exception(exc) from exc

        return GenerateResponse(content=content)

    @router.post("/evaluate", response_model=EvaluationResult)
    async def evaluate(
        payload: EvaluateRequest,
        evaluation_client: EvaluationClient = Depends(  # noqa: B008
            get_evaluation_client
        ),
    ) -> EvaluationResult:
        try:
            return await evaluation_client.evaluate(payload.content, payload.criteria)
        except LLMClientError as exc:
            raise to_http_exception(exc) from exc

    @router.post(
        "/projects/{project_id}/documents/{document_type}/generate",
        response_model=DocumentResponse,
    )
    async def generate_document(
        project_id: UUID,
        document_type: DocumentType,
        payload: GenerateDocumentRequest | None = None,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
        orchestrator: SequentialGenerationOrchestrator = Depends(  # noqa: B008
            get_orchestrator
        ),
    ) -> DocumentResponse:
        """Generate (or regenerate) one document from its template."""
        project, documents = await _load_project(session_factory, project_id)
        template_id = payload.template_id if payload is not None else None

        try:
            document = await orchestrator.generate_one(
                project, document_type, documents, template_id=template_id
            )
        except (StoreError, LLMClientError) as exc:
            raise to_http_exception(exc) from exc

        return DocumentResponse.model_validate(document)

    @router.post(
        "/projects/{project_id}/documents/{document_type}/refine",
        response_model=RefinementResponse,
    )
    async def refine_document(
        project_id: UUID,
        document_type: DocumentType,
        payload: RefineDocumentRequest | None = None,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
        orchestrator: SequentialGenerationOrchestrator = Depends(  # noqa: B008
            get_orchestrator
        ),
    ) -> RefinementResponse:
        """Generate one document and refine it with the agent loop."""
        project, documents = await _load_project(session_factory, project_id)
        options = payload or RefineDocumentRequest()

        try:
            outcome = await orchestrator.refine(
                project,
                document_type,
                documents,
                max_iterations=options.max_iterations,
                template_id=options.template_id,
            )
        except (StoreError, LLMClientError) as exc:
            raise to_http_exception(exc) from exc

        return RefinementResponse(
            document=DocumentResponse.model_validate(outcome.document),
            revisions=outcome.revisions,
            exit_state=outcome.exit_state,
            last_evaluation=outcome.last_evaluation,
        )

    @router.post(
        "/projects/{project_id}/generate-all",
        response_model=GenerateAllResponse,
        status_code=http_status.HTTP_202_ACCEPTED,
    )
    async def generate_all(
        project_id: UUID,
        background_tasks: BackgroundTasks,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
        orchestrator: SequentialGenerationOrchestrator = Depends(  # noqa: B008
            get_orchestrator
        ),
    ) -> GenerateAllResponse:
        """Schedule agent-mode generation of every document type."""
        project, _ = await _load_project(session_factory, project_id)
        background_tasks.add_task(run_generate_all, orchestrator, project)
        logger.info("generate_all_scheduled", project_id=str(project_id))
        return GenerateAllResponse(project_id=project_id, status="accepted")

    return router
