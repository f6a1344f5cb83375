"""Document content generation on top of the Gemini client.

When a document type is supplied the model is asked for structured JSON
output following the type's schema, and the formatted document is taken
from the reply's ``mainContent`` field. Without a type the reply text is
returned unchanged.
"""

from __future__ import annotations

import json
from typing import Any

import structlog

from docchain.config import LLMConfig
from docchain.database.models.document import DocumentType
from docchain.generation.schemas import get_document_schema
from docchain.llm.client import GeminiClient
from docchain.llm.errors import GenerationError, LLMClientError

logger = structlog.get_logger(__name__)


def decode_structured_reply(text: str) -> str:
    """Extract the document text from a structured generation reply.

    Decoding order: an object's ``mainContent``, then its ``content``, then
    the JSON serialisation of whatever was decoded. Text that is not JSON
    is returned as is.
    """
    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError:
        logger.warning("structured_reply_not_json", response_length=len(text))
        return text

    if isinstance(data, dict):
        for key in ("mainContent", "content"):
            value = data.get(key)
            if value:
                return value if isinstance(value, str) else json.dumps(value)

    logger.warning(
        "structured_reply_unexpected_shape",
        keys=sorted(data) if isinstance(data, dict) else None,
    )
    return json.dumps(data)


class GenerationClient:
    """Generates document text with the configured primary model.

    Attributes:
        gemini: Open GeminiClient used for transport
        config: LLM configuration (primary model and allow-list)
    """

    def __init__(self, gemini: GeminiClient, config: LLMConfig) -> None:
        self.gemini = gemini
        self.config = config

    @property
    def primary_model(self) -> str:
        return self.config.primary_model

    async def generate(
        self,
        prompt: str,
        model: str | None = None,
        document_type: DocumentType | str | None = None,
    ) -> str:
        """Generate text for a prompt.

        Args:
            prompt: Fully resolved prompt text.
            model: Model identifier; defaults to the primary model.
            document_type: When given, request structured output for that type.

        Returns:
            The generated document text.

        Raises:
            GenerationError: If the model is not allowed, the provider call
                fails or the reply is empty.
        """
        selected_model = model or self.config.primary_model
        if selected_model not in self.config.allowed_models:
            raise GenerationError(f"Invalid model specified: {selected_model}")

        schema = get_document_schema(document_type) if document_type is not None else None

        try:
            text = await self.gemini.generate_content(
                prompt,
                model=selected_model,
                response_schema=schema,
            )
        except LLMClientError as e:
            logger.error(
                "generation_failed",
                model=selected_model,
                document_type=str(document_type) if document_type else None,
                error=str(e),
            )
            raise GenerationError(f"Failed to generate content: {e}") from e

        content = decode_structured_reply(text) if schema is not None else text
        if not content.strip():
            raise GenerationError("Model returned empty content")

        logger.info(
            "content_generated",
            model=selected_model,
            structured=schema is not None,
            content_length=len(content),
        )
        return content
