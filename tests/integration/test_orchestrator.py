"""Integration tests for SequentialGenerationOrchestrator.

The generation and evaluation clients are mocked; templates, documents and
versions go through the real query layer on an in-memory database.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from docchain.database.errors import NotFoundError, ValidationError
from docchain.database.models import (
    DOCUMENT_TYPE_ORDER,
    DocumentStatus,
    DocumentType,
    Project,
    Template,
    VersionSource,
)
from docchain.database.queries.document import (
    get_document_by_type,
    list_documents,
    upsert_document_content,
)
from docchain.database.queries.project import create_project, get_project
from docchain.database.queries.template import create_template
from docchain.database.queries.version import list_versions
from docchain.generation.orchestrator import (
    RefinementState,
    SequentialGenerationOrchestrator,
)
from docchain.llm.errors import EvaluationError, GenerationError
from docchain.llm.evaluation import EvaluationResult

PASS = EvaluationResult(score=9, feedback="Great", meets_criteria=True)
FAIL = EvaluationResult(
    score=4,
    feedback="Too thin",
    meets_criteria=False,
    improvement_suggestions=["Add detail"],
)


@pytest.fixture
def generation() -> MagicMock:
    client = MagicMock()
    client.generate = AsyncMock(return_value="Initial content")
    return client


@pytest.fixture
def evaluation() -> MagicMock:
    client = MagicMock()
    client.evaluate = AsyncMock(return_value=PASS)
    return client


@pytest_asyncio.fixture
async def orchestrator(
    session_factory: async_sessionmaker[AsyncSession],
    seeded_templates: list[Template],
    generation: MagicMock,
    evaluation: MagicMock,
) -> SequentialGenerationOrchestrator:
    return SequentialGenerationOrchestrator(
        session_factory,
        generation,
        evaluation,
        primary_model="gemini-2.5-pro-preview-03-25",
        max_iterations=3,
    )


async def _versions(
    session_factory: async_sessionmaker[AsyncSession],
    project: Project,
    document_type: DocumentType,
) -> list[Any]:
    async with session_factory() as session:
        document = await get_document_by_type(session, project.id, document_type)
        assert document is not None
        return await list_versions(session, document.id)


@pytest.mark.integration
class TestGenerateOne:
    """Tests for single-shot generation."""

    @pytest.mark.asyncio
    async def test_persists_draft_from_default_template(
        self,
        orchestrator: SequentialGenerationOrchestrator,
        project: Project,
        generation: MagicMock,
    ) -> None:
        document = await orchestrator.generate_one(
            project, DocumentType.project_request, []
        )

        assert document.type == DocumentType.project_request
        assert document.content == "Initial content"
        assert document.status == DocumentStatus.draft

        prompt = generation.generate.await_args.args[0]
        kwargs = generation.generate.await_args.kwargs
        assert project.description in prompt
        assert "{{IDEA}}" not in prompt
        assert kwargs["model"] == "gemini-2.5-pro-preview-03-25"
        assert kwargs["document_type"] == DocumentType.project_request

    @pytest.mark.asyncio
    async def test_prompt_includes_prior_documents(
        self,
        orchestrator: SequentialGenerationOrchestrator,
        session_factory: async_sessionmaker[AsyncSession],
        project: Project,
        generation: MagicMock,
    ) -> None:
        async with session_factory() as session:
            await upsert_document_content(
                session,
                project.id,
                DocumentType.project_request,
                "REQUEST BODY",
                source=VersionSource.manual,
            )
            prior = await list_documents(session, project.id)

        await orchestrator.generate_one(project, DocumentType.technical_spec, prior)

        prompt = generation.generate.await_args.args[0]
        assert "REQUEST BODY" in prompt
        assert "{{PROJECT_REQUEST}}" not in prompt

    @pytest.mark.asyncio
    async def test_regeneration_versions_previous_content(
        self,
        orchestrator: SequentialGenerationOrchestrator,
        session_factory: async_sessionmaker[AsyncSession],
        project: Project,
        generation: MagicMock,
    ) -> None:
        generation.generate.side_effect = ["First", "Second"]

        await orchestrator.generate_one(project, DocumentType.project_request, [])
        document = await orchestrator.generate_one(
            project, DocumentType.project_request, []
        )

        versions = await _versions(session_factory, project, DocumentType.project_request)
        assert document.content == "Second"
        assert [v.content for v in versions] == ["First"]
        assert versions[0].source == VersionSource.ai_generator

    @pytest.mark.asyncio
    async def test_refreshes_project_metadata(
        self,
        orchestrator: SequentialGenerationOrchestrator,
        session_factory: async_sessionmaker[AsyncSession],
        project: Project,
    ) -> None:
        await orchestrator.generate_one(project, DocumentType.project_request, [])

        async with session_factory() as session:
            refreshed = await get_project(session, project.id)

        assert refreshed is not None
        assert refreshed.meta["document_count"] == 1
        assert refreshed.summary == "Initial content"

    @pytest.mark.asyncio
    async def test_explicit_template(
        self,
        orchestrator: SequentialGenerationOrchestrator,
        session_factory: async_sessionmaker[AsyncSession],
        project: Project,
        generation: MagicMock,
    ) -> None:
        async with session_factory() as session:
            template = await create_template(
                session, "Terse", DocumentType.prd, "Terse PRD for: {{IDEA}}"
            )

        await orchestrator.generate_one(
            project, DocumentType.prd, [], template_id=template.id
        )

        prompt = generation.generate.await_args.args[0]
        assert prompt == f"Terse PRD for: {project.description}"

    @pytest.mark.asyncio
    async def test_template_for_other_type_rejected(
        self,
        orchestrator: SequentialGenerationOrchestrator,
        session_factory: async_sessionmaker[AsyncSession],
        project: Project,
        generation: MagicMock,
    ) -> None:
        async with session_factory() as session:
            template = await create_template(session, "UI", DocumentType.ui_guide, "ui")

        with pytest.raises(ValidationError):
            await orchestrator.generate_one(
                project, DocumentType.prd, [], template_id=template.id
            )
        generation.generate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_default_template(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        project: Project,
        generation: MagicMock,
        evaluation: MagicMock,
    ) -> None:
        orchestrator = SequentialGenerationOrchestrator(
            session_factory, generation, evaluation, primary_model="gemini-pro"
        )

        with pytest.raises(NotFoundError, match="Default template"):
            await orchestrator.generate_one(project, DocumentType.prd, [])

    @pytest.mark.asyncio
    async def test_generation_failure_persists_nothing(
        self,
        orchestrator: SequentialGenerationOrchestrator,
        session_factory: async_sessionmaker[AsyncSession],
        project: Project,
        generation: MagicMock,
    ) -> None:
        generation.generate.side_effect = GenerationError("provider down")

        with pytest.raises(GenerationError):
            await orchestrator.generate_one(project, DocumentType.project_request, [])

        async with session_factory() as session:
            assert await list_documents(session, project.id) == []


@pytest.mark.integration
class TestRefine:
    """Tests for the evaluate/revise loop."""

    @pytest.mark.asyncio
    async def test_accepted_on_first_evaluation(
        self,
        orchestrator: SequentialGenerationOrchestrator,
        session_factory: async_sessionmaker[AsyncSession],
        project: Project,
        generation: MagicMock,
        evaluation: MagicMock,
    ) -> None:
        outcome = await orchestrator.refine(project, DocumentType.prd, [])

        assert outcome.exit_state == RefinementState.accepted
        assert outcome.revisions == 0
        assert outcome.document.content == "Initial content"
        assert outcome.document.status == DocumentStatus.completed
        assert outcome.last_evaluation == PASS
        assert generation.generate.await_count == 1
        evaluation.evaluate.assert_awaited_once()
        assert await _versions(session_factory, project, DocumentType.prd) == []

    @pytest.mark.asyncio
    async def test_evaluation_uses_type_rubric(
        self,
        orchestrator: SequentialGenerationOrchestrator,
        project: Project,
        evaluation: MagicMock,
    ) -> None:
        await orchestrator.refine(project, DocumentType.ui_guide, [])

        content, criteria = evaluation.evaluate.await_args.args
        assert content == "Initial content"
        assert "Evaluate for completeness" not in criteria

    @pytest.mark.asyncio
    async def test_exhausts_iteration_budget(
        self,
        orchestrator: SequentialGenerationOrchestrator,
        session_factory: async_sessionmaker[AsyncSession],
        project: Project,
        generation: MagicMock,
        evaluation: MagicMock,
    ) -> None:
        generation.generate.side_effect = ["v0", "v1", "v2", "v3"]
        evaluation.evaluate.return_value = FAIL

        outcome = await orchestrator.refine(project, DocumentType.prd, [])

        versions = await _versions(session_factory, project, DocumentType.prd)
        assert outcome.exit_state == RefinementState.exhausted
        assert outcome.revisions == 3
        assert outcome.document.content == "v3"
        assert outcome.document.status == DocumentStatus.completed
        assert evaluation.evaluate.await_count == 3
        assert sorted(v.content for v in versions) == ["v0", "v1", "v2"]
        assert {v.source for v in versions} == {VersionSource.agent_refinement}

    @pytest.mark.asyncio
    async def test_revision_prompt_carries_feedback(
        self,
        orchestrator: SequentialGenerationOrchestrator,
        project: Project,
        generation: MagicMock,
        evaluation: MagicMock,
    ) -> None:
        generation.generate.side_effect = ["v0", "v1"]
        evaluation.evaluate.side_effect = [FAIL, PASS]

        outcome = await orchestrator.refine(project, DocumentType.technical_spec, [])

        revision_call = generation.generate.await_args_list[1]
        prompt = revision_call.args[0]
        assert outcome.revisions == 1
        assert outcome.exit_state == RefinementState.accepted
        assert "2. technical spec" in prompt
        assert "Too thin" in prompt
        assert "Add detail" in prompt
        assert "v0" in prompt
        assert "document_type" not in revision_call.kwargs

    @pytest.mark.asyncio
    async def test_max_iterations_override(
        self,
        orchestrator: SequentialGenerationOrchestrator,
        project: Project,
        generation: MagicMock,
        evaluation: MagicMock,
    ) -> None:
        evaluation.evaluate.return_value = FAIL

        outcome = await orchestrator.refine(
            project, DocumentType.prd, [], max_iterations=1
        )

        assert outcome.revisions == 1
        assert evaluation.evaluate.await_count == 1

    @pytest.mark.asyncio
    async def test_evaluation_failure_keeps_last_revision(
        self,
        orchestrator: SequentialGenerationOrchestrator,
        project: Project,
        generation: MagicMock,
        evaluation: MagicMock,
    ) -> None:
        generation.generate.side_effect = ["v0", "v1"]
        evaluation.evaluate.side_effect = [FAIL, EvaluationError("evaluator down")]

        outcome = await orchestrator.refine(project, DocumentType.prd, [])

        assert outcome.exit_state == RefinementState.aborted
        assert outcome.revisions == 1
        assert outcome.document.content == "v1"
        assert outcome.document.status == DocumentStatus.completed
        assert outcome.last_evaluation == FAIL

    @pytest.mark.asyncio
    async def test_revision_failure_keeps_initial_content(
        self,
        orchestrator: SequentialGenerationOrchestrator,
        project: Project,
        generation: MagicMock,
        evaluation: MagicMock,
    ) -> None:
        generation.generate.side_effect = ["v0", GenerationError("quota")]
        evaluation.evaluate.return_value = FAIL

        outcome = await orchestrator.refine(project, DocumentType.prd, [])

        assert outcome.exit_state == RefinementState.aborted
        assert outcome.revisions == 0
        assert outcome.document.content == "v0"
        assert outcome.document.status == DocumentStatus.completed

    @pytest.mark.asyncio
    async def test_initial_generation_failure_propagates(
        self,
        orchestrator: SequentialGenerationOrchestrator,
        session_factory: async_sessionmaker[AsyncSession],
        project: Project,
        generation: MagicMock,
        evaluation: MagicMock,
    ) -> None:
        generation.generate.side_effect = GenerationError("provider down")

        with pytest.raises(GenerationError):
            await orchestrator.refine(project, DocumentType.prd, [])

        evaluation.evaluate.assert_not_awaited()
        async with session_factory() as session:
            assert await list_documents(session, project.id) == []


@pytest.mark.integration
class TestGenerateAll:
    """Tests for whole-chain generation."""

    @pytest.mark.asyncio
    async def test_generates_every_type_in_order(
        self,
        orchestrator: SequentialGenerationOrchestrator,
        session_factory: async_sessionmaker[AsyncSession],
        project: Project,
        generation: MagicMock,
    ) -> None:
        async def _generate(
            prompt: str, model: str, document_type: DocumentType | None = None
        ) -> str:
            return f"Body of {document_type.value}"

        generation.generate.side_effect = _generate

        documents = await orchestrator.generate_all(project)

        generated_types = [
            call.kwargs["document_type"] for call in generation.generate.await_args_list
        ]
        assert generated_types == list(DOCUMENT_TYPE_ORDER)
        assert [d.type for d in documents] == list(DOCUMENT_TYPE_ORDER)
        assert all(d.status == DocumentStatus.completed for d in documents)

        async with session_factory() as session:
            stored = await list_documents(session, project.id)
            refreshed = await get_project(session, project.id)
        assert len(stored) == len(DOCUMENT_TYPE_ORDER)
        assert refreshed is not None
        assert refreshed.meta["completed_count"] == len(DOCUMENT_TYPE_ORDER)

    @pytest.mark.asyncio
    async def test_later_prompts_see_earlier_documents(
        self,
        orchestrator: SequentialGenerationOrchestrator,
        project: Project,
        generation: MagicMock,
    ) -> None:
        async def _generate(
            prompt: str, model: str, document_type: DocumentType | None = None
        ) -> str:
            return f"Body of {document_type.value}"

        generation.generate.side_effect = _generate

        await orchestrator.generate_all(project)

        prompts = {
            call.kwargs["document_type"]: call.args[0]
            for call in generation.generate.await_args_list
        }
        assert "Body of project-request" in prompts[DocumentType.technical_spec]
        assert "Body of technical-spec" in prompts[DocumentType.implementation_plan]


@pytest.mark.integration
class TestStartProject:
    """Tests for the initial generation of a new project."""

    @pytest.mark.asyncio
    async def test_standard_mode_generates_project_request(
        self,
        orchestrator: SequentialGenerationOrchestrator,
        project: Project,
        evaluation: MagicMock,
    ) -> None:
        documents = await orchestrator.start_project(project)

        assert [d.type for d in documents] == [DocumentType.project_request]
        assert documents[0].status == DocumentStatus.draft
        evaluation.evaluate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_agent_mode_generates_whole_chain(
        self,
        orchestrator: SequentialGenerationOrchestrator,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        async with session_factory() as session:
            agent_project = await create_project(
                session,
                name="Agent",
                description="Fully automatic planning.",
                generation_mode="agent",
            )

        documents = await orchestrator.start_project(agent_project)

        assert [d.type for d in documents] == list(DOCUMENT_TYPE_ORDER)
