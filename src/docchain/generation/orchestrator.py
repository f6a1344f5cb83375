"""Sequential document generation for Docchain.

This module drives a project's document chain. Each document type is
generated from a prompt template whose placeholders are filled with the
project idea and the content of the documents generated before it, so the
chain is strictly sequential.

Two procedures are provided:

- generate_one: a single structured generation, persisted as the current
  document (the previous content, if any, becomes a version).
- refine: agent mode. After the initial generation the document is scored
  against its rubric and revised until the evaluation passes or the
  iteration cap is reached:

      GENERATING -> EVALUATING -> ACCEPTED
                              \\-> REVISING -> EVALUATING ...
                              \\-> ABORTED (any error inside an iteration)
      ... -> COMPLETED

  COMPLETED is always reached: the document is marked completed whether
  the evaluation passed, the budget ran out, or an iteration failed.

generate_all runs refine for every type in canonical order, re-reading the
project's documents before each step.
"""

from __future__ import annotations

import enum
from collections.abc import Sequence
from dataclasses import dataclass
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from docchain.database.errors import NotFoundError, ValidationError
from docchain.database.models.document import (
    DOCUMENT_TYPE_ORDER,
    Document,
    DocumentStatus,
    DocumentType,
)
from docchain.database.models.project import GenerationMode, Project
from docchain.database.models.template import Template
from docchain.database.models.version import VersionSource
from docchain.database.queries.document import (
    list_documents,
    set_document_status,
    upsert_document_content,
)
from docchain.database.queries.project import refresh_project_metadata
from docchain.database.queries.template import get_default_template, get_template
from docchain.generation.prompts import (
    build_improvement_prompt,
    build_replacements,
    resolve_placeholders,
)
from docchain.generation.rubrics import get_criteria
from docchain.llm.evaluation import EvaluationClient, EvaluationResult
from docchain.llm.generation import GenerationClient
from docchain.logging import bind_generation_context

logger = structlog.get_logger(__name__)

DEFAULT_MAX_ITERATIONS = 3


class RefinementState(str, enum.Enum):
    """States of the agent-mode refinement loop.

    States:
        generating: Initial structured generation.
        evaluating: Scoring the current content against the rubric.
        revising: Generating and persisting an improved version.
        accepted: The evaluation passed; no further revisions.
        exhausted: The iteration budget ran out without a passing evaluation.
        aborted: An iteration failed; the last persisted content is kept.
        completed: Terminal. The document has been marked completed.
    """

    generating = "generating"
    evaluating = "evaluating"
    revising = "revising"
    accepted = "accepted"
    exhausted = "exhausted"
    aborted = "aborted"
    completed = "completed"


@dataclass
class RefinementOutcome:
    """Result of a refinement run.

    Attributes:
        document: The final persisted document (status completed).
        revisions: Number of revisions persisted.
        exit_state: How the loop ended (accepted, exhausted or aborted).
        last_evaluation: The most recent evaluation, if any succeeded.
    """

    document: Document
    revisions: int
    exit_state: RefinementState
    last_evaluation: EvaluationResult | None = None


class SequentialGenerationOrchestrator:
    """Generates and refines a project's documents in canonical order.

    Every store operation runs in its own short-lived session from the
    session factory, so no session is held open across a provider call.

    Attributes:
        session_factory: Factory producing AsyncSession instances.
        generation: Client producing document text.
        evaluation: Client scoring document text.
        primary_model: Model used for generation and revision.
        max_iterations: Default evaluate/revise budget for refine.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        generation: GenerationClient,
        evaluation: EvaluationClient,
        primary_model: str,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
    ) -> None:
        self.session_factory = session_factory
        self.generation = generation
        self.evaluation = evaluation
        self.primary_model = primary_model
        self.max_iterations = max_iterations
        self.logger = logger.bind(component="SequentialGenerationOrchestrator")

    async def _resolve_template(
        self,
        session: AsyncSession,
        document_type: DocumentType,
        template_id: UUID | None,
    ) -> Template:
        if template_id is not None:
            template = await get_template(session, template_id)
            if template is None:
                raise NotFoundError("Template", template_id)
            if template.type != document_type:
                raise ValidationError(
                    f"Template {template_id} generates {template.type.value}, "
                    f"not {document_type.value}"
                )
            return template

        template = await get_default_template(session, document_type)
        if template is None:
            raise NotFoundError("Default template", document_type.value)
        return template

    async def generate_one(
        self,
        project: Project,
        document_type: DocumentType,
        prior_documents: Sequence[Document],
        template_id: UUID | None = None,
    ) -> Document:
        """Generate a document and persist it as the current one of its type.

        Args:
            project: Project being generated.
            document_type: Type to generate.
            prior_documents: Documents whose content fills the prompt.
            template_id: Explicit template to use instead of the type's default.

        Returns:
            The persisted Document (status draft).

        Raises:
            NotFoundError: If no usable template exists.
            ValidationError: If the template is for another document type.
            GenerationError: If generation fails. Nothing is persisted.
        """
        with bind_generation_context(str(project.id), document_type.value):
            async with self.session_factory() as session:
                template = await self._resolve_template(
                    session, document_type, template_id
                )

            replacements = build_replacements(project.description, prior_documents)
            prompt = resolve_placeholders(template.prompt, replacements)

            self.logger.info(
                "document_generation_started",
                template_id=str(template.id),
                prior_documents=len(prior_documents),
                prompt_length=len(prompt),
            )

            content = await self.generation.generate(
                prompt,
                model=self.primary_model,
                document_type=document_type,
            )

            async with self.session_factory() as session:
                document = await upsert_document_content(
                    session,
                    project.id,
                    document_type,
                    content,
                    source=VersionSource.ai_generator,
                    status=DocumentStatus.draft,
                )
                await refresh_project_metadata(session, project.id)

            self.logger.info(
                "document_generated",
                document_id=str(document.id),
                content_length=len(content),
            )
            return document

    async def refine(
        self,
        project: Project,
        document_type: DocumentType,
        prior_documents: Sequence[Document],
        max_iterations: int | None = None,
        template_id: UUID | None = None,
    ) -> RefinementOutcome:
        """Generate a document, then evaluate and revise it in a bounded loop.

        Errors from the initial generation propagate. Any error inside an
        evaluate/revise iteration ends the loop, keeping the last persisted
        content. The document is always marked completed at the end.

        Args:
            project: Project being generated.
            document_type: Type to generate.
            prior_documents: Documents whose content fills the prompt.
            max_iterations: Evaluate/revise budget; defaults to the
                orchestrator's configured value.
            template_id: Explicit template for the initial generation.

        Returns:
            RefinementOutcome wrapping the completed document.
        """
        budget = self.max_iterations if max_iterations is None else max_iterations

        with bind_generation_context(str(project.id), document_type.value):
            self.logger.info(
                "refinement_state", state=RefinementState.generating.value
            )
            document = await self.generate_one(
                project, document_type, prior_documents, template_id=template_id
            )

            criteria = get_criteria(document_type)
            revisions = 0
            last_evaluation: EvaluationResult | None = None
            exit_state = RefinementState.exhausted

            for iteration in range(1, budget + 1):
                try:
                    self.logger.info(
                        "refinement_state",
                        state=RefinementState.evaluating.value,
                        iteration=iteration,
                    )
                    evaluation = await self.evaluation.evaluate(document.content, criteria)
                    last_evaluation = evaluation

                    if evaluation.meets_criteria:
                        exit_state = RefinementState.accepted
                        self.logger.info(
                            "refinement_state",
                            state=exit_state.value,
                            iteration=iteration,
                            score=evaluation.score,
                        )
                        break

                    self.logger.info(
                        "refinement_state",
                        state=RefinementState.revising.value,
                        iteration=iteration,
                        score=evaluation.score,
                    )
                    prompt = build_improvement_prompt(
                        document_type, document.content, evaluation
                    )
                    improved = await self.generation.generate(
                        prompt, model=self.primary_model
                    )

                    async with self.session_factory() as session:
                        document = await upsert_document_content(
                            session,
                            project.id,
                            document_type,
                            improved,
                            source=VersionSource.agent_refinement,
                            status=DocumentStatus.draft,
                        )
                    revisions += 1
                except Exception as e:
                    exit_state = RefinementState.aborted
                    self.logger.warning(
                        "refinement_state",
                        state=exit_state.value,
                        iteration=iteration,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    break

            if exit_state == RefinementState.exhausted:
                self.logger.info(
                    "refinement_state", state=exit_state.value, revisions=revisions
                )

            async with self.session_factory() as session:
                document = await set_document_status(
                    session, document.id, DocumentStatus.completed
                )
                await refresh_project_metadata(session, project.id)

            self.logger.info(
                "refinement_state",
                state=RefinementState.completed.value,
                exit_state=exit_state.value,
                revisions=revisions,
                final_score=last_evaluation.score if last_evaluation else None,
            )

            return RefinementOutcome(
                document=document,
                revisions=revisions,
                exit_state=exit_state,
                last_evaluation=last_evaluation,
            )

    async def generate_all(self, project: Project) -> list[Document]:
        """Refine every document type of a project in canonical order.

        The project's current documents are re-read before each step so each
        prompt sees the freshest content, including concurrent manual edits.

        Args:
            project: Project to generate.

        Returns:
            The completed documents, one per type, in canonical order.
        """
        self.logger.info(
            "generate_all_started",
            project_id=str(project.id),
            document_types=len(DOCUMENT_TYPE_ORDER),
        )

        documents: list[Document] = []
        for document_type in DOCUMENT_TYPE_ORDER:
            async with self.session_factory() as session:
                prior_documents = await list_documents(session, project.id)

            outcome = await self.refine(project, document_type, prior_documents)
            documents.append(outcome.document)

        self.logger.info(
            "generate_all_completed",
            project_id=str(project.id),
            documents=len(documents),
        )
        return documents

    async def start_project(self, project: Project) -> list[Document]:
        """Run the initial generation appropriate for a new project's mode.

        Standard mode generates the project request only; agent mode
        generates and refines the whole chain.

        Args:
            project: Newly created project.

        Returns:
            The documents produced.
        """
        if project.generation_mode == GenerationMode.agent:
            return await self.generate_all(project)

        document = await self.generate_one(project, DocumentType.project_request, [])
        return [document]
