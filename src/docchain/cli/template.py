"""Prompt template CLI commands."""

from __future__ import annotations

import asyncio
from typing import Annotated, Optional
from uuid import UUID

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from docchain.database.models.document import DocumentType
from docchain.database.queries.template import get_template, list_templates

app = typer.Typer(help="Prompt template commands")
console = Console()


@app.command("list")
def list_(
    document_type: Annotated[
        Optional[DocumentType],
        typer.Option("--type", "-t", help="Filter by document type"),
    ] = None,
) -> None:
    """List prompt templates."""
    from docchain.main import get_app_context

    ctx = get_app_context()

    async def _list():
        async with ctx.session_factory() as session:
            return await list_templates(session, document_type)

    templates = asyncio.run(_list())
    if not templates:
        console.print("[yellow]No templates found[/yellow]")
        return

    table = Table(title="Templates")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="bold")
    table.add_column("Type", style="magenta")
    table.add_column("Default")
    for t in templates:
        table.add_row(str(t.id), t.name, t.type.value, "yes" if t.is_default else "")
    console.print(table)


@app.command()
def show(
    template_id: Annotated[UUID, typer.Argument(help="Template ID")],
) -> None:
    """Show a template's prompt text."""
    from docchain.main import get_app_context

    ctx = get_app_context()

    async def _get():
        async with ctx.session_factory() as session:
            return await get_template(session, template_id)

    template = asyncio.run(_get())
    if template is None:
        console.print(f"[red]Template not found:[/red] {template_id}")
        raise typer.Exit(code=1)

    console.print(
        Panel(
            escape(template.prompt),
            title=f"{template.name} ({template.type.value})",
            subtitle="default" if template.is_default else None,
            border_style="cyan",
        )
    )
