"""Docchain - sequential LLM generation of project-planning documents.

This package drives a large language model through a fixed chain of planning
documents (project request, technical spec, PRD, user flows, UI guide,
implementation plan), feeding every finished document into the prompt for the
next one. Documents are stored with full version history in PostgreSQL and
exposed through a FastAPI service and a Typer CLI.
"""

__version__ = "0.1.0"
