"""Typer sub-applications for the Docchain CLI."""
