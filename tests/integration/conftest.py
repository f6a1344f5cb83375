"""Shared fixtures for integration tests.

Provides an in-memory SQLite database with the full schema, session
fixtures, a seeded template set, and a FastAPI application wired to that
database with language model clients backed by a mocked Gemini transport.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from docchain.config import DatabaseConfig, DocchainConfig, LLMConfig, WebConfig
from docchain.database.connection import get_session_factory
from docchain.database.models import Base, Project, Template
from docchain.database.queries.project import create_project
from docchain.database.queries.template import seed_default_templates
from docchain.generation.orchestrator import SequentialGenerationOrchestrator
from docchain.llm.evaluation import EvaluationClient
from docchain.llm.generation import GenerationClient
from docchain.web.app import create_app

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

PASSING_EVALUATION = (
    '{"score": 9, "feedback": "Thorough and clear.", '
    '"meets_criteria": true, "improvement_suggestions": []}'
)


@pytest.fixture
def anyio_backend() -> str:
    """Configure anyio to use asyncio backend."""
    return "asyncio"


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create an in-memory SQLite engine with every table created.

    StaticPool keeps a single connection so all sessions see the same
    in-memory database.

    Yields:
        AsyncEngine connected to the test database.
    """
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(
    engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to the test engine."""
    return get_session_factory(engine)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a new async database session for each test.

    Yields:
        AsyncSession instance for the test.
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def seeded_templates(
    session_factory: async_sessionmaker[AsyncSession],
) -> list[Template]:
    """Insert the built-in default template for every document type."""
    async with session_factory() as session:
        return await seed_default_templates(session)


@pytest_asyncio.fixture
async def project(session_factory: async_sessionmaker[AsyncSession]) -> Project:
    """Create a standard-mode project."""
    async with session_factory() as session:
        return await create_project(
            session,
            name="Recipe Box",
            description="A web app where home cooks save and share recipes.",
        )


@pytest.fixture
def llm_config() -> LLMConfig:
    """LLM configuration with a dummy API key."""
    return LLMConfig(api_key="test-key")


@pytest.fixture
def gemini() -> AsyncMock:
    """Mocked GeminiClient.

    Structured generation replies carry mainContent; evaluation replies
    pass the rubric. Tests override ``generate_content`` as needed.
    """
    client = AsyncMock()

    async def _reply(prompt: str, model: str, response_schema: Any = None) -> str:
        if prompt.startswith("Evaluate the following content"):
            return PASSING_EVALUATION
        if response_schema is not None:
            return '{"mainContent": "# Generated document\\n\\nGenerated body."}'
        return "Revised body."

    client.generate_content.side_effect = _reply
    return client


@pytest_asyncio.fixture
async def app(
    session_factory: async_sessionmaker[AsyncSession],
    seeded_templates: list[Template],
    llm_config: LLMConfig,
    gemini: AsyncMock,
) -> FastAPI:
    """Create the FastAPI app with services wired to the test database.

    ASGITransport does not run the lifespan, so app.state is populated
    here the way the lifespan handler would populate it.
    """
    config = DocchainConfig(
        database=DatabaseConfig(url=TEST_DATABASE_URL),
        llm=llm_config,
        web=WebConfig(seed_templates=False),
    )
    application = create_app(config)

    generation_client = GenerationClient(gemini, llm_config)
    evaluation_client = EvaluationClient(gemini, llm_config)
    application.state.session_factory = session_factory
    application.state.generation_client = generation_client
    application.state.evaluation_client = evaluation_client
    application.state.orchestrator = SequentialGenerationOrchestrator(
        session_factory,
        generation_client,
        evaluation_client,
        primary_model=llm_config.primary_model,
        max_iterations=config.agent.max_iterations,
    )
    return application


@pytest_asyncio.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing the FastAPI app.

    Yields:
        AsyncClient configured to test the application.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
