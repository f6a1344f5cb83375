"""Built-in prompt templates seeded into an empty templates table."""

from __future__ import annotations

from typing import NamedTuple

from docchain.database.models.document import DocumentType


class DefaultTemplate(NamedTuple):
    name: str
    type: DocumentType
    prompt: str


DEFAULT_TEMPLATES: tuple[DefaultTemplate, ...] = (
    DefaultTemplate(
        name="Default Project Request",
        type=DocumentType.project_request,
        prompt=(
            "I have a web app idea I'd like to develop. Here's my initial concept:\n\n"
            "{{IDEA}}\n\n"
            "I'm looking to collaborate with you to turn this into a detailed "
            "project request."
        ),
    ),
    DefaultTemplate(
        name="Default Technical Spec",
        type=DocumentType.technical_spec,
        prompt=(
            "Create a technical specification for the following project:\n\n"
            "{{PROJECT_REQUEST}}\n\n"
            "Include system architecture, data models, API endpoints, and "
            "implementation details."
        ),
    ),
    DefaultTemplate(
        name="Default PRD",
        type=DocumentType.prd,
        prompt=(
            "Create a product requirements document for the following project:\n\n"
            "{{PROJECT_REQUEST}}\n\n"
            "Include product objectives, user stories, feature requirements, and "
            "success metrics."
        ),
    ),
    DefaultTemplate(
        name="Default User Flows",
        type=DocumentType.user_flows,
        prompt=(
            "Create user flow diagrams and descriptions for the following project:\n\n"
            "{{PROJECT_REQUEST}}\n\n"
            "Include text descriptions and mermaid diagrams for each primary user "
            "journey."
        ),
    ),
    DefaultTemplate(
        name="Default UI Guide",
        type=DocumentType.ui_guide,
        prompt=(
            "Create a UI styling guide for the following project:\n\n"
            "{{PROJECT_REQUEST}}\n\n"
            "Include color palettes, typography, component design, and layout "
            "principles."
        ),
    ),
    DefaultTemplate(
        name="Default Implementation Plan",
        type=DocumentType.implementation_plan,
        prompt=(
            "Create an implementation plan for the following project:\n\n"
            "{{PROJECT_REQUEST}}\n\n"
            "{{TECHNICAL_SPEC}}\n\n"
            "Include step-by-step development tasks, timeline estimates, and "
            "resource requirements."
        ),
    ),
)
