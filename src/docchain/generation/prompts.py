"""Prompt construction for document generation, evaluation and revision.

Templates carry ``{{KEY}}`` placeholder tokens. ``{{IDEA}}`` is bound to the
project description and every prior document is bound under the upper
snake-case form of its type, so ``technical-spec`` fills
``{{TECHNICAL_SPEC}}``. Placeholders with no replacement are left as they
are.

Example:
    >>> resolve_placeholders("Hello {{IDEA}} and {{IDEA}}", {"IDEA": "X"})
    'Hello X and X'
    >>> resolve_placeholders("Hello {{MISSING}}", {})
    'Hello {{MISSING}}'
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from docchain.database.models.document import Document, DocumentType
from docchain.generation.document_types import ordinal

if TYPE_CHECKING:
    from docchain.llm.evaluation import EvaluationResult

IDEA_KEY = "IDEA"


def resolve_placeholders(template: str, replacements: Mapping[str, str]) -> str:
    """Replace every ``{{KEY}}`` occurrence for each supplied key.

    Matching is literal and case-sensitive. Replacement values are inserted
    verbatim and are not themselves scanned for placeholders of keys that
    were already processed.

    Args:
        template: Prompt text containing placeholder tokens.
        replacements: Mapping of placeholder key to replacement text.

    Returns:
        The prompt with all supplied placeholders substituted.
    """
    result = template
    for key, value in replacements.items():
        result = result.replace("{{" + key + "}}", value)
    return result


def placeholder_key(document_type: DocumentType) -> str:
    """Return the placeholder key for a type, e.g. ``TECHNICAL_SPEC``."""
    return document_type.value.upper().replace("-", "_")


def build_replacements(
    idea: str,
    prior_documents: Iterable[Document],
) -> dict[str, str]:
    """Build the placeholder map for a generation prompt.

    Args:
        idea: Project description, bound to ``IDEA``.
        prior_documents: Documents already generated for the project.

    Returns:
        Mapping of placeholder key to replacement text.
    """
    replacements = {IDEA_KEY: idea}
    for document in prior_documents:
        replacements[placeholder_key(document.type)] = document.content
    return replacements


def build_improvement_prompt(
    document_type: DocumentType,
    content: str,
    evaluation: EvaluationResult,
) -> str:
    """Build the prompt asking for a revised version of a document.

    Args:
        document_type: Type of the document being revised.
        content: Current document content, embedded verbatim.
        evaluation: Evaluation whose feedback and suggestions drive the revision.

    Returns:
        The revision prompt.
    """
    type_label = document_type.value.replace("-", " ")
    suggestions = "\n".join(evaluation.improvement_suggestions)
    return (
        f"Please improve the following {ordinal(document_type)}. {type_label} "
        f"based on this feedback:\n\n"
        f"{evaluation.feedback}\n\n"
        f"Suggested improvements:\n"
        f"{suggestions}\n\n"
        f"Current content:\n"
        f"{content}\n\n"
        f"Please provide a complete, revised version addressing the feedback."
    )


def build_evaluation_prompt(content: str, criteria: str) -> str:
    """Build the prompt asking the evaluator to score content as JSON.

    Args:
        content: Document content to evaluate.
        criteria: Rubric text.

    Returns:
        The evaluation prompt.
    """
    return (
        "Evaluate the following content based on these criteria:\n"
        f"{criteria.strip()}\n\n"
        "Content to evaluate:\n"
        f"{content}\n\n"
        "Provide your evaluation as a JSON object with the following structure:\n"
        "{\n"
        '  "score": [0-10 numerical score],\n'
        '  "feedback": "Detailed feedback about the content",\n'
        '  "meets_criteria": true/false,\n'
        '  "improvement_suggestions": ["Suggestion 1", "Suggestion 2"]\n'
        "}"
    )
