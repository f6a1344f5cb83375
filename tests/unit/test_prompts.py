"""Unit tests for prompt construction."""

from __future__ import annotations

from docchain.database.models import Document, DocumentType
from docchain.generation.prompts import (
    build_evaluation_prompt,
    build_improvement_prompt,
    build_replacements,
    placeholder_key,
    resolve_placeholders,
)
from docchain.llm.evaluation import EvaluationResult


class TestResolvePlaceholders:
    """Tests for {{KEY}} substitution."""

    def test_replaces_every_occurrence(self) -> None:
        result = resolve_placeholders("{{IDEA}} / {{IDEA}}", {"IDEA": "Recipes"})
        assert result == "Recipes / Recipes"

    def test_unknown_placeholders_left_intact(self) -> None:
        result = resolve_placeholders("{{IDEA}} {{PRD}}", {"IDEA": "Recipes"})
        assert result == "Recipes {{PRD}}"

    def test_matching_is_case_sensitive(self) -> None:
        assert resolve_placeholders("{{idea}}", {"IDEA": "x"}) == "{{idea}}"

    def test_values_inserted_verbatim(self) -> None:
        result = resolve_placeholders("{{IDEA}}", {"IDEA": "$1 \\n {braces}"})
        assert result == "$1 \\n {braces}"

    def test_template_without_placeholders(self) -> None:
        assert resolve_placeholders("plain", {"IDEA": "x"}) == "plain"


class TestReplacements:
    """Tests for the placeholder map built from a project."""

    def test_placeholder_key(self) -> None:
        assert placeholder_key(DocumentType.technical_spec) == "TECHNICAL_SPEC"
        assert placeholder_key(DocumentType.prd) == "PRD"
        assert placeholder_key(DocumentType.implementation_plan) == "IMPLEMENTATION_PLAN"

    def test_build_replacements(self) -> None:
        documents = [
            Document(type=DocumentType.project_request, content="Request text"),
            Document(type=DocumentType.ui_guide, content="UI text"),
        ]

        replacements = build_replacements("The idea", documents)

        assert replacements == {
            "IDEA": "The idea",
            "PROJECT_REQUEST": "Request text",
            "UI_GUIDE": "UI text",
        }

    def test_build_replacements_without_documents(self) -> None:
        assert build_replacements("The idea", []) == {"IDEA": "The idea"}


class TestImprovementPrompt:
    """Tests for the revision prompt."""

    def test_contains_feedback_suggestions_and_content(self) -> None:
        evaluation = EvaluationResult(
            score=4,
            feedback="Architecture is vague.",
            meets_criteria=False,
            improvement_suggestions=["Describe the data model", "List endpoints"],
        )

        prompt = build_improvement_prompt(
            DocumentType.technical_spec, "# Current spec", evaluation
        )

        assert prompt.startswith("Please improve the following 2. technical spec")
        assert "Architecture is vague." in prompt
        assert "Describe the data model\nList endpoints" in prompt
        assert "Current content:\n# Current spec" in prompt
        assert prompt.endswith("addressing the feedback.")

    def test_first_type_ordinal(self) -> None:
        evaluation = EvaluationResult(score=3, meets_criteria=False)

        prompt = build_improvement_prompt(DocumentType.project_request, "x", evaluation)

        assert "1. project request" in prompt


class TestEvaluationPrompt:
    """Tests for the evaluation prompt."""

    def test_includes_criteria_content_and_json_shape(self) -> None:
        prompt = build_evaluation_prompt("Document body", "  Be thorough.\n")

        assert prompt.startswith("Evaluate the following content based on these criteria:")
        assert "Be thorough." in prompt
        assert "Content to evaluate:\nDocument body" in prompt
        assert '"meets_criteria": true/false' in prompt
        assert '"improvement_suggestions"' in prompt
