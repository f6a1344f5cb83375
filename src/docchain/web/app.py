"""FastAPI application factory for Docchain.

This module provides the application factory that creates and configures
a FastAPI application with:
- CORS middleware for the browser client
- Request logging middleware with correlation IDs
- Database engine, session factory and template seeding at startup
- Gemini client lifecycle and the generation services built on it

Example usage:
    >>> from docchain.config import DocchainConfig
    >>> from docchain.web.app import create_app
    >>>
    >>> app = create_app(DocchainConfig())
    >>>
    >>> import uvicorn
    >>> uvicorn.run(app, host="0.0.0.0", port=8000)
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from docchain import __version__
from docchain.config import DocchainConfig
from docchain.database.connection import get_engine, get_session_factory
from docchain.database.queries.template import seed_default_templates
from docchain.generation.orchestrator import SequentialGenerationOrchestrator
from docchain.llm.client import GeminiClient
from docchain.llm.evaluation import EvaluationClient
from docchain.llm.generation import GenerationClient
from docchain.logging import get_logger
from docchain.web.middleware import RequestLoggingMiddleware
from docchain.web.routes.documents import create_documents_router
from docchain.web.routes.generation import create_generation_router
from docchain.web.routes.health import create_health_router
from docchain.web.routes.projects import create_projects_router
from docchain.web.routes.templates import create_templates_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage database and language model resources for the app's lifetime.

    On startup the engine, session factory, Gemini client and the services
    built on them are stored in app.state for dependency injection, and the
    built-in templates are seeded when enabled. On shutdown the Gemini
    client is closed and the engine disposed.

    Args:
        app: FastAPI application instance

    Yields:
        None after startup
    """
    config: DocchainConfig = app.state.config

    logger.info("app_startup_begin", host=config.web.host, port=config.web.port)

    engine = get_engine(config.database)
    session_factory = get_session_factory(engine)
    app.state.engine = engine
    app.state.session_factory = session_factory

    if config.web.seed_templates:
        try:
            async with session_factory() as session:
                await seed_default_templates(session)
        except SQLAlchemyError as exc:
            logger.warning(
                "template_seed_failed",
                error=str(exc),
                hint="run `docchain init-db` to create the schema",
            )

    if not config.llm.api_key:
        logger.warning("llm_api_key_missing")

    async with GeminiClient(config.llm) as gemini:
        generation_client = GenerationClient(gemini, config.llm)
        evaluation_client = EvaluationClient(gemini, config.llm)
        app.state.generation_client = generation_client
        app.state.evaluation_client = evaluation_client
        app.state.orchestrator = SequentialGenerationOrchestrator(
            session_factory,
            generation_client,
            evaluation_client,
            primary_model=config.llm.primary_model,
            max_iterations=config.agent.max_iterations,
        )

        logger.info(
            "app_startup_complete",
            primary_model=config.llm.primary_model,
            evaluation_model=config.llm.evaluation_model,
            max_iterations=config.agent.max_iterations,
        )

        yield

    logger.info("app_shutdown_begin")
    await engine.dispose()
    logger.info("database_pool_disposed")


def create_app(config: DocchainConfig | None = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Args:
        config: Optional DocchainConfig. If None, creates default config.

    Returns:
        Configured FastAPI application instance.
    """
    if config is None:
        config = DocchainConfig()

    app = FastAPI(
        title="Docchain",
        version=__version__,
        description="Sequential LLM generation of project planning documents",
        lifespan=lifespan,
    )
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.web.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(create_health_router())
    app.include_router(create_projects_router())
    app.include_router(create_documents_router())
    app.include_router(create_templates_router())
    app.include_router(create_generation_router())

    logger.info(
        "app_created",
        cors_origins=config.web.cors_origins,
        version=__version__,
    )

    return app
