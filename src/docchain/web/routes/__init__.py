"""FastAPI route definitions for the Docchain web API.

This module contains route handlers for projects, documents and versions,
prompt templates, generation, and health checks.
"""

from __future__ import annotations

from docchain.web.routes.documents import (
    DocumentResponse,
    DocumentSave,
    VersionResponse,
    create_documents_router,
)
from docchain.web.routes.generation import (
    GenerateRequest,
    RefinementResponse,
    create_generation_router,
)
from docchain.web.routes.health import (
    HealthResponse,
    ReadinessResponse,
    create_health_router,
)
from docchain.web.routes.projects import (
    ProjectCreate,
    ProjectResponse,
    ProjectUpdate,
    create_projects_router,
)
from docchain.web.routes.templates import (
    TemplateCreate,
    TemplateResponse,
    TemplateUpdate,
    create_templates_router,
)

__all__ = [
    # Documents
    "DocumentResponse",
    "DocumentSave",
    "VersionResponse",
    "create_documents_router",
    # Generation
    "GenerateRequest",
    "RefinementResponse",
    "create_generation_router",
    # Health
    "HealthResponse",
    "ReadinessResponse",
    "create_health_router",
    # Projects
    "ProjectCreate",
    "ProjectResponse",
    "ProjectUpdate",
    "create_projects_router",
    # Templates
    "TemplateCreate",
    "TemplateResponse",
    "TemplateUpdate",
    "create_templates_router",
]
