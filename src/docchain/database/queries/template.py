"""Prompt template query functions for Docchain.

Provides async functions for listing, reading, creating and updating
prompt templates. At most one template per document type carries the
default flag: setting it on one template clears it on the others of the
same type in the same transaction.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from docchain.database.errors import NotFoundError, ValidationError
from docchain.database.models.document import DocumentType
from docchain.database.models.template import Template
from docchain.database.queries.document import coerce_document_type
from docchain.generation.default_templates import DEFAULT_TEMPLATES

logger = structlog.get_logger(__name__)

_UPDATABLE_FIELDS = frozenset({"name", "type", "prompt", "is_default"})


def _require_text(field: str, value: str | None) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"Template {field} must not be empty")
    return value


async def _clear_default(
    session: AsyncSession,
    document_type: DocumentType,
    keep_id: UUID | None = None,
) -> None:
    stmt = (
        update(Template)
        .where(Template.type == document_type, Template.is_default.is_(True))
        .values(is_default=False)
        .execution_options(synchronize_session="fetch")
    )
    if keep_id is not None:
        stmt = stmt.where(Template.id != keep_id)
    await session.execute(stmt)


async def list_templates(
    session: AsyncSession,
    document_type: DocumentType | str | None = None,
) -> list[Template]:
    """List templates, optionally filtered by document type.

    Args:
        session: Active async database session.
        document_type: Optional type to filter by.

    Returns:
        Templates ordered by type then name.
    """
    stmt = select(Template)
    if document_type is not None:
        stmt = stmt.where(Template.type == coerce_document_type(document_type))
    stmt = stmt.order_by(Template.type, Template.name)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_template(
    session: AsyncSession,
    template_id: UUID,
) -> Template | None:
    """Retrieve a template by ID.

    Args:
        session: Active async database session.
        template_id: UUID of the template to retrieve.

    Returns:
        The Template instance if found, None otherwise.
    """
    stmt = select(Template).where(Template.id == template_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_default_template(
    session: AsyncSession,
    document_type: DocumentType | str,
) -> Template | None:
    """Retrieve the default template for a document type.

    Args:
        session: Active async database session.
        document_type: Type whose default template is wanted.

    Returns:
        The default Template if one is flagged, None otherwise.
    """
    stmt = (
        select(Template)
        .where(
            Template.type == coerce_document_type(document_type),
            Template.is_default.is_(True),
        )
        .order_by(Template.updated_at.desc())
        .limit(1)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def create_template(
    session: AsyncSession,
    name: str,
    document_type: DocumentType | str,
    prompt: str,
    is_default: bool = False,
) -> Template:
    """Create a new prompt template.

    Args:
        session: Active async database session.
        name: Human-readable template name.
        document_type: Type the template generates.
        prompt: Prompt text with {{PLACEHOLDER}} tokens.
        is_default: Make this the type's default, clearing any previous one.

    Returns:
        The newly created Template instance.

    Raises:
        ValidationError: If name or prompt is empty or the type is unknown.
    """
    doc_type = coerce_document_type(document_type)
    template = Template(
        name=_require_text("name", name).strip(),
        type=doc_type,
        prompt=_require_text("prompt", prompt),
        is_default=is_default,
    )

    if is_default:
        await _clear_default(session, doc_type)

    session.add(template)
    await session.flush()
    await session.refresh(template)
    await session.commit()

    logger.info(
        "template_created",
        template_id=str(template.id),
        document_type=doc_type.value,
        is_default=is_default,
    )

    return template


async def update_template(
    session: AsyncSession,
    template_id: UUID,
    **updates: Any,
) -> Template:
    """Update a template's fields.

    Args:
        session: Active async database session.
        template_id: UUID of the template to update.
        **updates: Field names (name, type, prompt, is_default) and values.

    Returns:
        The updated Template instance.

    Raises:
        NotFoundError: If the template does not exist.
        ValidationError: If a field is unknown or a value is invalid.
    """
    unknown = set(updates) - _UPDATABLE_FIELDS
    if unknown:
        raise ValidationError(f"Unknown template fields: {sorted(unknown)}")

    template = await get_template(session, template_id)
    if template is None:
        raise NotFoundError("Template", template_id)

    if "name" in updates:
        updates["name"] = _require_text("name", updates["name"]).strip()
    if "prompt" in updates:
        updates["prompt"] = _require_text("prompt", updates["prompt"])
    if "type" in updates:
        updates["type"] = coerce_document_type(updates["type"])

    for field, value in updates.items():
        setattr(template, field, value)

    if template.is_default:
        await session.flush()
        await _clear_default(session, template.type, keep_id=template.id)

    await session.flush()
    await session.refresh(template)
    await session.commit()

    logger.info(
        "template_updated",
        template_id=str(template_id),
        fields_updated=list(updates.keys()),
    )

    return template


async def seed_default_templates(session: AsyncSession) -> list[Template]:
    """Insert the built-in default templates when no templates exist.

    Idempotent: a non-empty templates table is left untouched.

    Args:
        session: Active async database session.

    Returns:
        The templates inserted (empty when the table was already populated).
    """
    existing = await session.scalar(select(func.count()).select_from(Template))
    if existing:
        logger.debug("template_seed_skipped", existing=existing)
        return []

    templates = [
        Template(
            name=default.name,
            type=default.type,
            prompt=default.prompt,
            is_default=True,
        )
        for default in DEFAULT_TEMPLATES
    ]
    session.add_all(templates)
    await session.flush()
    await session.commit()

    logger.info("default_templates_seeded", count=len(templates))

    return templates
