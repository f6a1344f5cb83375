"""Language model clients for Docchain.

Public API:
    GeminiClient: Async httpx transport for the Gemini REST API.
    GenerationClient: Generates document text, optionally structured.
    EvaluationClient: Scores content against a rubric.
    EvaluationResult: Parsed evaluation verdict.
"""

from docchain.llm.client import GeminiClient
from docchain.llm.errors import (
    EvaluationError,
    GenerationError,
    LLMAPIError,
    LLMClientError,
    LLMConnectionError,
    LLMResponseFormatError,
    LLMTimeoutError,
)
from docchain.llm.evaluation import EvaluationClient, EvaluationResult
from docchain.llm.generation import GenerationClient

__all__ = [
    "GeminiClient",
    "GenerationClient",
    "EvaluationClient",
    "EvaluationResult",
    "LLMClientError",
    "LLMTimeoutError",
    "LLMConnectionError",
    "LLMAPIError",
    "LLMResponseFormatError",
    "GenerationError",
    "EvaluationError",
]
