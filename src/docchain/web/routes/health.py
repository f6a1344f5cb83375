"""Health check endpoints for Docchain.

/health/ is a liveness probe. /health/ready additionally verifies that the
database accepts queries and reports whether a provider API key is set.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from docchain.logging import get_logger
from docchain.web.dependencies import get_session_factory

logger = get_logger(__name__)


class HealthResponse(BaseModel):
    status: str


class ReadinessResponse(BaseModel):
    """Readiness check response model.

    Attributes:
        status: "ok" or "unhealthy"
        database: "connected" or "disconnected"
        llm: "configured" when an API key is set, otherwise "unconfigured"
    """

    status: str
    database: str
    llm: str


def create_health_router() -> APIRouter:
    """Create health check router.

    Routes:
        GET /health/ - Liveness check
        GET /health/ready - Readiness check with database verification
    """
    router = APIRouter(prefix="/health", tags=["health"])

    @router.get("/", response_model=HealthResponse)
    async def health() -> dict[str, Any]:
        return {"status": "ok"}

    @router.get("/ready", response_model=ReadinessResponse)
    async def readiness(
        request: Request,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> dict[str, Any]:
        llm = "configured" if request.app.state.config.llm.api_key else "unconfigured"
        try:
            async with session_factory() as session:
                await session.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as exc:
            logger.warning(
                "readiness_check_failed",
                database="disconnected",
                error=str(exc),
            )
            return {"status": "unhealthy", "database": "disconnected", "llm": llm}

        logger.debug("readiness_check_passed", database="connected", llm=llm)
        return {"status": "ok", "database": "connected", "llm": llm}

    return router
