"""Project management CLI commands.

This module provides CLI commands for creating, listing, inspecting,
deleting and exporting projects.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Annotated, Optional
from uuid import UUID

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from docchain.database.errors import StoreError
from docchain.database.models.project import GenerationMode
from docchain.database.queries.document import list_documents
from docchain.database.queries.project import (
    create_project,
    delete_project,
    get_project,
    list_projects,
)
from docchain.generation.document_types import display_name
from docchain.generation.export import build_export, export_filename
from docchain.llm.errors import LLMClientError

app = typer.Typer(help="Project management commands")
console = Console()


@app.command()
def create(
    name: Annotated[str, typer.Argument(help="Project name")],
    description: Annotated[
        str,
        typer.Option("--description", "-d", help="The project idea"),
    ],
    mode: Annotated[
        GenerationMode,
        typer.Option("--mode", "-m", help="Generation mode"),
    ] = GenerationMode.standard,
    generate: Annotated[
        bool,
        typer.Option(
            "--generate/--no-generate",
            help="Run the mode's initial generation right away",
        ),
    ] = False,
) -> None:
    """Create a new project."""
    from docchain.cli.document import run_with_orchestrator
    from docchain.main import get_app_context

    ctx = get_app_context()

    async def _create_project():
        async with ctx.session_factory() as session:
            return await create_project(
                session,
                name=name,
                description=description,
                generation_mode=mode,
            )

    try:
        project = asyncio.run(_create_project())
    except StoreError as e:
        console.print(f"[red]Error creating project:[/red] {e}")
        raise typer.Exit(code=1)

    console.print(
        Panel(
            f"[green]Project created successfully![/green]\n\n"
            f"[bold]ID:[/bold] {project.id}\n"
            f"[bold]Name:[/bold] {project.name}\n"
            f"[bold]Mode:[/bold] {project.generation_mode.value}\n"
            f"[bold]Created:[/bold] {project.created_at.strftime('%Y-%m-%d %H:%M:%S')}",
            title="Project Created",
            border_style="green",
        )
    )

    if generate:
        try:
            documents = asyncio.run(
                run_with_orchestrator(ctx, lambda o: o.start_project(project))
            )
        except (StoreError, LLMClientError) as e:
            console.print(f"[red]Generation failed:[/red] {e}")
            raise typer.Exit(code=1)
        console.print(f"[green]Generated {len(documents)} document(s)[/green]")


@app.command("list")
def list_(
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format (table or json)"),
    ] = "table",
) -> None:
    """List projects, most recently updated first."""
    from docchain.main import get_app_context

    ctx = get_app_context()

    async def _list_projects():
        async with ctx.session_factory() as session:
            return await list_projects(session)

    projects = asyncio.run(_list_projects())

    if format == "json":
        output = [
            {
                "id": str(p.id),
                "name": p.name,
                "generation_mode": p.generation_mode.value,
                "document_count": (p.meta or {}).get("document_count", 0),
                "updated_at": p.updated_at.isoformat(),
            }
            for p in projects
        ]
        typer.echo(json.dumps(output, indent=2))
        return

    if not projects:
        console.print("[yellow]No projects found[/yellow]")
        return

    table = Table(title="Projects")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="bold")
    table.add_column("Mode", style="magenta")
    table.add_column("Docs", justify="right")
    table.add_column("Updated", style="dim")

    for p in projects:
        table.add_row(
            str(p.id),
            p.name,
            p.generation_mode.value,
            str((p.meta or {}).get("document_count", 0)),
            p.updated_at.strftime("%Y-%m-%d %H:%M"),
        )

    console.print(table)


@app.command()
def show(
    project_id: Annotated[UUID, typer.Argument(help="Project ID")],
) -> None:
    """Show a project and the status of its documents."""
    from docchain.main import get_app_context

    ctx = get_app_context()

    async def _load():
        async with ctx.session_factory() as session:
            project = await get_project(session, project_id)
            documents = await list_documents(session, project_id) if project else []
            return project, documents

    project, documents = asyncio.run(_load())
    if project is None:
        console.print(f"[red]Project not found:[/red] {project_id}")
        raise typer.Exit(code=1)

    console.print(
        Panel(
            f"[bold]ID:[/bold] {project.id}\n"
            f"[bold]Name:[/bold] {project.name}\n"
            f"[bold]Mode:[/bold] {project.generation_mode.value}\n"
            f"[bold]Summary:[/bold] {escape(project.summary or '-')}\n\n"
            f"{escape(project.description)}",
            title=project.name,
            border_style="cyan",
        )
    )

    if not documents:
        console.print("[yellow]No documents yet[/yellow]")
        return

    table = Table(title="Documents")
    table.add_column("Type", style="bold")
    table.add_column("Status", style="magenta")
    table.add_column("Length", justify="right")
    table.add_column("Updated", style="dim")
    for d in documents:
        table.add_row(
            display_name(d.type),
            d.status.value,
            str(len(d.content)),
            d.updated_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


@app.command()
def delete(
    project_id: Annotated[UUID, typer.Argument(help="Project ID")],
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation"),
    ] = False,
) -> None:
    """Delete a project with all its documents and versions."""
    from docchain.main import get_app_context

    ctx = get_app_context()

    if not yes:
        typer.confirm(f"Delete project {project_id} and all its documents?", abort=True)

    async def _delete():
        async with ctx.session_factory() as session:
            await delete_project(session, project_id)

    try:
        asyncio.run(_delete())
    except StoreError as e:
        console.print(f"[red]Error deleting project:[/red] {e}")
        raise typer.Exit(code=1)

    console.print(f"[green]Project deleted:[/green] {project_id}")


@app.command()
def export(
    project_id: Annotated[UUID, typer.Argument(help="Project ID")],
    output: Annotated[
        Optional[Path],
        typer.Option(
            "--output",
            "-o",
            help="Output file (default: <name>-documentation.json in the current directory)",
            dir_okay=False,
        ),
    ] = None,
) -> None:
    """Export a project and its documents to a JSON file."""
    from docchain.main import get_app_context

    ctx = get_app_context()

    async def _load():
        async with ctx.session_factory() as session:
            project = await get_project(session, project_id)
            documents = await list_documents(session, project_id) if project else []
            return project, documents

    project, documents = asyncio.run(_load())
    if project is None:
        console.print(f"[red]Project not found:[/red] {project_id}")
        raise typer.Exit(code=1)

    path = output or Path.cwd() / export_filename(project.name)
    path.write_text(json.dumps(build_export(project, documents), indent=2), encoding="utf-8")

    console.print(f"[green]Exported {len(documents)} document(s) to[/green] {path}")
