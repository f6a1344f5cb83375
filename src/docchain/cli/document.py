"""Document CLI commands.

Inspect a project's documents and their version history, and run the
generation operations (single-shot, agent refinement, whole chain)
against the configured model provider.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Annotated, Optional, TypeVar
from uuid import UUID

import typer
from rich.console import Console
from rich.table import Table

from docchain.database.errors import StoreError
from docchain.database.models.document import DocumentType
from docchain.database.queries.document import get_document, list_documents
from docchain.database.queries.project import get_project
from docchain.database.queries.version import list_versions
from docchain.generation.document_types import display_name
from docchain.generation.orchestrator import SequentialGenerationOrchestrator
from docchain.llm.client import GeminiClient
from docchain.llm.errors import LLMClientError
from docchain.llm.evaluation import EvaluationClient
from docchain.llm.generation import GenerationClient

if TYPE_CHECKING:
    from docchain.main import AppContext

app = typer.Typer(help="Document commands")
console = Console()

T = TypeVar("T")


async def run_with_orchestrator(
    ctx: AppContext,
    operation: Callable[[SequentialGenerationOrchestrator], Awaitable[T]],
) -> T:
    """Open a Gemini client, build an orchestrator and run one operation."""
    config = ctx.config
    async with GeminiClient(config.llm) as gemini:
        orchestrator = SequentialGenerationOrchestrator(
            ctx.session_factory,
            GenerationClient(gemini, config.llm),
            EvaluationClient(gemini, config.llm),
            primary_model=config.llm.primary_model,
            max_iterations=config.agent.max_iterations,
        )
        return await operation(orchestrator)


def _load_project(ctx: AppContext, project_id: UUID):
    async def _load():
        async with ctx.session_factory() as session:
            project = await get_project(session, project_id)
            documents = await list_documents(session, project_id) if project else []
            return project, documents

    project, documents = asyncio.run(_load())
    if project is None:
        console.print(f"[red]Project not found:[/red] {project_id}")
        raise typer.Exit(code=1)
    return project, documents


@app.command("list")
def list_(
    project_id: Annotated[UUID, typer.Argument(help="Project ID")],
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format (table or json)"),
    ] = "table",
) -> None:
    """List a project's documents in generation order."""
    from docchain.main import get_app_context

    _, documents = _load_project(get_app_context(), project_id)

    if format == "json":
        output = [
            {
                "id": str(d.id),
                "type": d.type.value,
                "status": d.status.value,
                "content": d.content,
                "updated_at": d.updated_at.isoformat(),
            }
            for d in documents
        ]
        typer.echo(json.dumps(output, indent=2))
        return

    if not documents:
        console.print("[yellow]No documents found[/yellow]")
        return

    table = Table(title="Documents")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Type", style="bold")
    table.add_column("Status", style="magenta")
    table.add_column("Length", justify="right")
    for d in documents:
        table.add_row(str(d.id), display_name(d.type), d.status.value, str(len(d.content)))
    console.print(table)


@app.command()
def history(
    document_id: Annotated[UUID, typer.Argument(help="Document ID")],
) -> None:
    """Show a document's version history, newest first."""
    from docchain.main import get_app_context

    ctx = get_app_context()

    async def _load():
        async with ctx.session_factory() as session:
            document = await get_document(session, document_id)
            versions = await list_versions(session, document_id) if document else []
            return document, versions

    document, versions = asyncio.run(_load())
    if document is None:
        console.print(f"[red]Document not found:[/red] {document_id}")
        raise typer.Exit(code=1)

    if not versions:
        console.print("[yellow]No previous versions[/yellow]")
        return

    table = Table(title=f"{display_name(document.type)} history")
    table.add_column("Version", style="cyan", no_wrap=True)
    table.add_column("Source", style="magenta")
    table.add_column("Length", justify="right")
    table.add_column("Created", style="dim")
    for v in versions:
        table.add_row(
            str(v.id),
            v.source.value,
            str(len(v.content)),
            v.created_at.strftime("%Y-%m-%d %H:%M:%S"),
        )
    console.print(table)


@app.command()
def generate(
    project_id: Annotated[UUID, typer.Argument(help="Project ID")],
    document_type: Annotated[DocumentType, typer.Argument(help="Document type")],
    template_id: Annotated[
        Optional[UUID],
        typer.Option("--template", "-t", help="Template ID (default template if omitted)"),
    ] = None,
) -> None:
    """Generate one document from its template."""
    from docchain.main import get_app_context

    ctx = get_app_context()
    project, documents = _load_project(ctx, project_id)

    try:
        document = asyncio.run(
            run_with_orchestrator(
                ctx,
                lambda o: o.generate_one(
                    project, document_type, documents, template_id=template_id
                ),
            )
        )
    except (StoreError, LLMClientError) as e:
        console.print(f"[red]Generation failed:[/red] {e}")
        raise typer.Exit(code=1)

    console.print(
        f"[green]Generated {display_name(document.type)}[/green] "
        f"({len(document.content)} characters)"
    )


@app.command()
def refine(
    project_id: Annotated[UUID, typer.Argument(help="Project ID")],
    document_type: Annotated[DocumentType, typer.Argument(help="Document type")],
    max_iterations: Annotated[
        Optional[int],
        typer.Option("--max-iterations", "-n", min=1, max=10, help="Revision budget"),
    ] = None,
) -> None:
    """Generate one document and refine it with the agent loop."""
    from docchain.main import get_app_context

    ctx = get_app_context()
    project, documents = _load_project(ctx, project_id)

    try:
        outcome = asyncio.run(
            run_with_orchestrator(
                ctx,
                lambda o: o.refine(
                    project, document_type, documents, max_iterations=max_iterations
                ),
            )
        )
    except (StoreError, LLMClientError) as e:
        console.print(f"[red]Refinement failed:[/red] {e}")
        raise typer.Exit(code=1)

    score = outcome.last_evaluation.score if outcome.last_evaluation else "-"
    console.print(
        f"[green]{display_name(document_type)} completed[/green] "
        f"after {outcome.revisions} revision(s) "
        f"({outcome.exit_state.value}, last score {score})"
    )


@app.command("generate-all")
def generate_all(
    project_id: Annotated[UUID, typer.Argument(help="Project ID")],
) -> None:
    """Generate and refine every document of a project in order."""
    from docchain.main import get_app_context

    ctx = get_app_context()
    project, _ = _load_project(ctx, project_id)

    try:
        documents = asyncio.run(
            run_with_orchestrator(ctx, lambda o: o.generate_all(project))
        )
    except (StoreError, LLMClientError) as e:
        console.print(f"[red]Generation failed:[/red] {e}")
        raise typer.Exit(code=1)

    console.print(f"[green]Generated {len(documents)} document(s)[/green]")
