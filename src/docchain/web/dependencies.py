"""FastAPI dependencies resolving shared services from app.state.

The lifespan handler in docchain.web.app stores the session factory and the
language model clients on app.state; route handlers receive them through
these functions via Depends().
"""

from __future__ import annotations

from fastapi import HTTPException, Request
from fastapi import status as http_status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from docchain.database.errors import NotFoundError, StoreError, ValidationError
from docchain.generation.orchestrator import SequentialGenerationOrchestrator
from docchain.llm.errors import LLMClientError
from docchain.llm.evaluation import EvaluationClient
from docchain.llm.generation import GenerationClient


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    """Dependency that retrieves session factory from app state.

    Args:
        request: FastAPI request object

    Returns:
        Session factory from app.state
    """
    return request.app.state.session_factory  # type: ignore[no-any-return]


def get_generation_client(request: Request) -> GenerationClient:
    """Dependency that retrieves the generation client from app state."""
    return request.app.state.generation_client  # type: ignore[no-any-return]


def get_evaluation_client(request: Request) -> EvaluationClient:
    """Dependency that retrieves the evaluation client from app state."""
    return request.app.state.evaluation_client  # type: ignore[no-any-return]


def get_orchestrator(request: Request) -> SequentialGenerationOrchestrator:
    """Dependency that retrieves the generation orchestrator from app state."""
    return request.app.state.orchestrator  # type: ignore[no-any-return]


def to_http_exception(exc: StoreError | LLMClientError) -> HTTPException:
    """Map a store or language model error to an HTTPException.

    NotFoundError maps to 404, ValidationError to 400 and language model
    failures to 502.
    """
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=http_status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, LLMClientError):
        return HTTPException(status_code=http_status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    return HTTPException(
        status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
    )
