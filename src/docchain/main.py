"""Main CLI entry point for Docchain.

This module provides the main Typer application with sub-commands for
projects, documents and templates, plus the web server and schema setup.

Usage:
    docchain init-db
    docchain project create "Recipe Box" -d "A web app to organise recipes"
    docchain document generate-all <project-id>
    docchain serve --port 8000
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from docchain.cli import document as document_cli
from docchain.cli import project as project_cli
from docchain.cli import template as template_cli
from docchain.config import DocchainConfig, load_config
from docchain.database.connection import get_engine, get_session_factory
from docchain.database.models import Base
from docchain.database.queries.template import seed_default_templates
from docchain.logging import setup_logging

app = typer.Typer(
    name="docchain",
    help="Docchain: sequential LLM generation of project planning documents",
    no_args_is_help=True,
)

app.add_typer(project_cli.app, name="project", help="Manage projects")
app.add_typer(document_cli.app, name="document", help="Generate and inspect documents")
app.add_typer(template_cli.app, name="template", help="Inspect prompt templates")

console = Console()


class AppContext:
    """Application context shared across CLI commands.

    Every command runs its own event loop with asyncio.run, so the engine
    does not pool connections across commands.

    Attributes:
        config: Loaded Docchain configuration
        engine: Async SQLAlchemy engine
        session_factory: Factory for creating database sessions
    """

    def __init__(self, config: DocchainConfig):
        self.config = config
        self.engine = get_engine(config.database, poolclass=NullPool)
        self.session_factory = get_session_factory(self.engine)


_app_context: AppContext | None = None


def get_app_context() -> AppContext:
    """Get the shared application context.

    Raises:
        RuntimeError: If context has not been initialized
    """
    if _app_context is None:
        raise RuntimeError(
            "Application context not initialized. Call initialize_context first."
        )
    return _app_context


def initialize_context(config: DocchainConfig) -> AppContext:
    """Initialize the global application context."""
    global _app_context
    _app_context = AppContext(config)
    return _app_context


@app.command()
def serve(
    host: Annotated[
        Optional[str],
        typer.Option("--host", "-h", help="Host to bind to (default from config)"),
    ] = None,
    port: Annotated[
        Optional[int],
        typer.Option("--port", "-p", help="Port to bind to (default from config)"),
    ] = None,
) -> None:
    """Start the Docchain web server."""
    import uvicorn

    from docchain.web.app import create_app

    config = get_app_context().config
    bind_host = host or config.web.host
    bind_port = port or config.web.port

    console.print("[bold cyan]Starting Docchain Web Server[/bold cyan]")
    console.print(f"[dim]Host:[/dim] {bind_host}")
    console.print(f"[dim]Port:[/dim] {bind_port}")
    console.print()

    setup_logging(config.logging)
    uvicorn.run(create_app(config), host=bind_host, port=bind_port, log_level="info")


@app.command("init-db")
def init_db(
    seed: Annotated[
        bool,
        typer.Option("--seed/--no-seed", help="Insert the built-in templates"),
    ] = True,
) -> None:
    """Create the database tables and seed the default templates.

    Intended for local SQLite setups and first runs; production databases
    are managed with Alembic migrations.
    """
    ctx = get_app_context()

    async def _init() -> int:
        async with ctx.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        if not seed:
            return 0
        async with ctx.session_factory() as session:
            return len(await seed_default_templates(session))

    try:
        seeded = asyncio.run(_init())
    except SQLAlchemyError as e:
        console.print(f"[red]Error initializing database:[/red] {e}")
        raise typer.Exit(code=1)

    console.print("[green]Database initialized[/green]")
    if seed:
        console.print(f"[dim]Templates seeded:[/dim] {seeded}")


@app.callback()
def main_callback(
    config_path: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file (TOML format)",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Configure global options and initialize application context."""
    try:
        config = load_config(config_path)
    except (ValueError, OSError) as e:
        console.print(f"[red]Error loading configuration:[/red] {e}")
        raise typer.Exit(code=1)

    # command output goes to stdout; logs stay on stderr and quiet by default
    cli_logging = config.logging.model_copy(
        update={"level": "DEBUG" if verbose else "WARNING", "format": "console"}
    )
    setup_logging(cli_logging, stream=sys.stderr)

    initialize_context(config)

    if verbose:
        console.print("[dim]Debug logging enabled[/dim]")


if __name__ == "__main__":
    app()
