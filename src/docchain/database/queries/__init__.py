"""Query functions for Docchain database operations.

Each module groups the async query functions for one entity. All functions
take an AsyncSession as their first argument and commit their own work.
"""

from docchain.database.queries.document import (
    create_document,
    delete_document,
    get_document,
    get_document_by_type,
    list_documents,
    set_document_status,
    update_document,
    upsert_document_content,
)
from docchain.database.queries.project import (
    create_project,
    delete_project,
    get_project,
    list_projects,
    refresh_project_metadata,
    update_project,
)
from docchain.database.queries.template import (
    create_template,
    get_default_template,
    get_template,
    list_templates,
    seed_default_templates,
    update_template,
)
from docchain.database.queries.version import (
    create_version,
    get_version,
    list_versions,
    restore_version,
)

__all__ = [
    "create_project",
    "get_project",
    "list_projects",
    "update_project",
    "delete_project",
    "refresh_project_metadata",
    "list_documents",
    "get_document",
    "get_document_by_type",
    "create_document",
    "update_document",
    "set_document_status",
    "delete_document",
    "upsert_document_content",
    "list_versions",
    "get_version",
    "create_version",
    "restore_version",
    "list_templates",
    "get_template",
    "get_default_template",
    "create_template",
    "update_template",
    "seed_default_templates",
]
