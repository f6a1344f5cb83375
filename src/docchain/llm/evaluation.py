"""Rubric-based evaluation of document content.

The evaluation model is asked to score content against a rubric and reply
with a JSON object. Replies are parsed leniently: fenced JSON blocks and
surrounding prose are tolerated. A reply that still cannot be read as an
evaluation degrades to a neutral, non-passing result carrying the raw text
as feedback, so a chatty evaluator never breaks the refinement loop.
"""

from __future__ import annotations

import json
import re
from typing import Any

import structlog
from pydantic import BaseModel, Field, field_validator

from docchain.config import LLMConfig
from docchain.generation.prompts import build_evaluation_prompt
from docchain.llm.client import GeminiClient
from docchain.llm.errors import EvaluationError, LLMClientError, LLMResponseFormatError

logger = structlog.get_logger(__name__)

UNPARSEABLE_SUGGESTION = (
    "Could not parse structured evaluation. Please check the raw feedback."
)
FALLBACK_SCORE = 5


class EvaluationResult(BaseModel):
    """Structured verdict from the evaluation model.

    Attributes:
        score: Quality score from 0 to 10 (clamped and rounded)
        feedback: Free-text assessment
        meets_criteria: Whether the content satisfies the rubric
        improvement_suggestions: Concrete revision suggestions
    """

    score: int = Field(ge=0, le=10)
    feedback: str = ""
    meets_criteria: bool
    improvement_suggestions: list[str] = Field(default_factory=list)

    @field_validator("score", mode="before")
    @classmethod
    def clamp_score(cls, v: Any) -> int:
        """Round numeric scores and clamp them to the 0-10 range."""
        if isinstance(v, bool) or v is None:
            raise ValueError("score must be a number")
        try:
            return max(0, min(10, round(float(v))))
        except (TypeError, OverflowError) as e:
            raise ValueError(f"score must be a number, got {v!r}") from e

    @field_validator("feedback", mode="before")
    @classmethod
    def coerce_feedback(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("improvement_suggestions", mode="before")
    @classmethod
    def coerce_suggestions(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return [str(item) for item in v]


def unparseable_result(raw_text: str) -> EvaluationResult:
    """Build the degraded result used when a reply cannot be parsed."""
    return EvaluationResult(
        score=FALLBACK_SCORE,
        feedback=raw_text,
        meets_criteria=False,
        improvement_suggestions=[UNPARSEABLE_SUGGESTION],
    )


def _extract_json(text: str) -> str | None:
    """Extract a JSON object from text that may contain markdown or prose.

    Strategies, in order:
    1. A fenced ```json block
    2. Any fenced block whose body looks like an object
    3. The first balanced {...} span outside string literals
    """
    fenced = re.search(r"```json\s*\n(.*?)\n\s*```", text, re.DOTALL | re.IGNORECASE)
    if fenced:
        return fenced.group(1).strip()

    block = re.search(r"```\s*\n(.*?)\n\s*```", text, re.DOTALL)
    if block:
        candidate = block.group(1).strip()
        if candidate.startswith("{") and candidate.endswith("}"):
            return candidate

    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        char = text[i]
        if escaped:
            escaped = False
            continue
        if char == "\\":
            escaped = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]

    return None


def parse_evaluation(raw_text: str) -> EvaluationResult:
    """Parse an evaluation reply, degrading on anything unreadable.

    Args:
        raw_text: Reply text from the evaluation model.

    Returns:
        The parsed EvaluationResult, or the degraded result.
    """
    json_str = _extract_json(raw_text)
    if json_str is None:
        logger.warning("evaluation_reply_without_json", response_length=len(raw_text))
        return unparseable_result(raw_text)

    try:
        data = json.loads(json_str)
        if not isinstance(data, dict):
            raise ValueError("evaluation reply is not a JSON object")
        return EvaluationResult.model_validate(data)
    except ValueError as e:
        # pydantic.ValidationError and json.JSONDecodeError are both ValueErrors
        logger.warning("evaluation_reply_invalid", error=str(e))
        return unparseable_result(raw_text)


class EvaluationClient:
    """Scores document content against a rubric with the evaluation model.

    Attributes:
        gemini: Open GeminiClient used for transport
        config: LLM configuration (evaluation model)
    """

    def __init__(self, gemini: GeminiClient, config: LLMConfig) -> None:
        self.gemini = gemini
        self.config = config

    async def evaluate(self, content: str, criteria: str) -> EvaluationResult:
        """Evaluate content against a rubric.

        Args:
            content: Document content to evaluate.
            criteria: Rubric text.

        Returns:
            EvaluationResult, degraded when the reply is empty, blocked or
            could not be parsed.

        Raises:
            EvaluationError: If the request times out, cannot connect or is
                answered with an error status.
        """
        prompt = build_evaluation_prompt(content, criteria)
        try:
            raw_text = await self.gemini.generate_content(
                prompt, model=self.config.evaluation_model
            )
        except LLMResponseFormatError as e:
            logger.warning(
                "evaluation_reply_unusable",
                model=self.config.evaluation_model,
                error=str(e),
            )
            return unparseable_result("")
        except LLMClientError as e:
            logger.error(
                "evaluation_failed",
                model=self.config.evaluation_model,
                error=str(e),
            )
            raise EvaluationError(f"Failed to evaluate content: {e}") from e

        result = parse_evaluation(raw_text)
        logger.info(
            "content_evaluated",
            model=self.config.evaluation_model,
            score=result.score,
            meets_criteria=result.meets_criteria,
            suggestions=len(result.improvement_suggestions),
        )
        return result
