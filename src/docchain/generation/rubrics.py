"""Evaluation rubrics for agent-mode refinement, one per document type."""

from __future__ import annotations

from docchain.database.models.document import DocumentType

GENERIC_CRITERIA = "Evaluate for completeness, clarity, and usefulness."

EVALUATION_CRITERIA: dict[DocumentType, str] = {
    DocumentType.project_request: """\
Evaluate this Project Request document on these criteria:
1. Clarity of project description
2. Completeness of scope definition
3. Clear identification of target audience
4. Well-defined goals and objectives
5. Appropriate level of detail for initial requirements""",
    DocumentType.technical_spec: """\
Evaluate this Technical Specification document on these criteria:
1. Clear system architecture description
2. Comprehensive data model definition
3. Detailed API endpoints and interfaces
4. Appropriate error handling considerations
5. Technical feasibility assessment
6. Inclusion of relevant code snippets or pseudocode""",
    DocumentType.prd: """\
Evaluate this Product Requirements Document on these criteria:
1. Clear product vision and objectives
2. Well-defined user stories or jobs-to-be-done
3. Comprehensive feature requirements
4. Detailed functional specifications
5. Clear success metrics and acceptance criteria
6. Prioritization of requirements""",
    DocumentType.user_flows: """\
Evaluate this User Flows document on these criteria:
1. Clear identification of key user journeys
2. Step-by-step flow descriptions
3. Inclusion of diagrams (Mermaid or otherwise)
4. Coverage of edge cases and alternate paths
5. User-centric perspective""",
    DocumentType.ui_guide: """\
Evaluate this UI Style Guide document on these criteria:
1. Comprehensive color palette definition
2. Clear typography guidelines
3. Component styling patterns and rules
4. Layout principles and guidelines
5. Consistency across elements
6. Accessibility considerations""",
    DocumentType.implementation_plan: """\
Evaluate this Implementation Plan document on these criteria:
1. Clear breakdown of tasks and subtasks
2. Logical sequencing of development steps
3. Realistic timeline estimates
4. Resource allocation and requirements
5. Risk identification and mitigation strategies
6. Testing and deployment considerations""",
}


def get_criteria(document_type: DocumentType | str | None) -> str:
    """Return the rubric for a document type, or the generic rubric."""
    try:
        return EVALUATION_CRITERIA[DocumentType(document_type)]
    except ValueError:
        return GENERIC_CRITERIA
