"""Gemini REST API client for text generation.

This module provides an async HTTP client for the Gemini ``generateContent``
endpoint. It handles timeouts and error responses and logs every request.
It does not retry: provider failures surface immediately so the caller can
decide what to do with them.

Example usage:
    >>> from docchain.config import LLMConfig
    >>> config = LLMConfig(api_key="...")
    >>> async with GeminiClient(config) as client:
    ...     text = await client.generate_content("Hello", model="gemini-2.0-flash")
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from docchain.config import LLMConfig
from docchain.llm.errors import (
    LLMAPIError,
    LLMClientError,
    LLMConnectionError,
    LLMResponseFormatError,
    LLMTimeoutError,
)

logger = structlog.get_logger(__name__)


def to_gemini_schema(schema: dict[str, Any]) -> dict[str, Any]:
    """Convert a JSON-schema style dict to the Gemini response schema dialect.

    Gemini expects upper-case type names (``OBJECT``, ``STRING``...). Nested
    ``properties`` and ``items`` are converted recursively.
    """
    converted: dict[str, Any] = {}
    for key, value in schema.items():
        if key == "type" and isinstance(value, str):
            converted[key] = value.upper()
        elif key == "properties" and isinstance(value, dict):
            converted[key] = {name: to_gemini_schema(sub) for name, sub in value.items()}
        elif key == "items" and isinstance(value, dict):
            converted[key] = to_gemini_schema(value)
        else:
            converted[key] = value
    return converted


class GeminiClient:
    """Async client for the Gemini generative language REST API.

    Attributes:
        config: LLM configuration containing API key, base URL, and timeout
    """

    def __init__(self, config: LLMConfig) -> None:
        """Initialize Gemini client.

        Args:
            config: LLMConfig instance with connection settings
        """
        self.config = config
        self._client: httpx.AsyncClient | None = None
        logger.info(
            "gemini_client_initialized",
            base_url=config.base_url,
            timeout=config.timeout_seconds,
        )

    async def __aenter__(self) -> GeminiClient:
        """Async context manager entry."""
        self._client = httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=httpx.Timeout(self.config.timeout_seconds),
        )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get the active HTTP client.

        Raises:
            RuntimeError: If called outside async context manager
        """
        if self._client is None:
            raise RuntimeError("GeminiClient must be used as async context manager")
        return self._client

    async def generate_content(
        self,
        prompt: str,
        model: str,
        response_schema: dict[str, Any] | None = None,
    ) -> str:
        """Generate text for a prompt.

        Args:
            prompt: Prompt text
            model: Gemini model identifier
            response_schema: Optional JSON-schema style dict. When given the
                model is asked for ``application/json`` output matching it.

        Returns:
            The reply text (JSON text when a schema was supplied)

        Raises:
            LLMClientError: If the API key is not configured
            LLMTimeoutError: If the request times out
            LLMConnectionError: If unable to connect
            LLMAPIError: If the API returns a non-200 status
            LLMResponseFormatError: If a 200 reply carries no usable text
        """
        if not self.config.api_key:
            raise LLMClientError("Gemini API key is not configured")

        client = self._get_client()
        endpoint = f"/v1beta/models/{model}:generateContent"
        payload: dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
        if response_schema is not None:
            payload["generationConfig"] = {
                "responseMimeType": "application/json",
                "responseSchema": to_gemini_schema(response_schema),
            }

        logger.debug(
            "gemini_generate_request",
            model=model,
            prompt_length=len(prompt),
            structured=response_schema is not None,
        )

        try:
            response = await client.post(
                endpoint,
                params={"key": self.config.api_key},
                json=payload,
            )
        except httpx.TimeoutException as e:
            logger.error(
                "gemini_timeout",
                model=model,
                timeout_seconds=self.config.timeout_seconds,
            )
            raise LLMTimeoutError(
                f"Request to {model} timed out after {self.config.timeout_seconds}s"
            ) from e
        except (httpx.ConnectError, httpx.NetworkError) as e:
            logger.error("gemini_connection_error", base_url=self.config.base_url, error=str(e))
            raise LLMConnectionError(
                f"Failed to connect to Gemini at {self.config.base_url}"
            ) from e

        if response.status_code != 200:
            error_msg = f"API error: HTTP {response.status_code}"
            try:
                error_msg = f"{error_msg}: {response.json()}"
            except ValueError:
                error_msg = f"{error_msg}: {response.text}"
            logger.error(
                "gemini_api_error",
                model=model,
                status_code=response.status_code,
            )
            raise LLMAPIError(error_msg, status_code=response.status_code)

        try:
            text = self._extract_text(response.json())
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.error("gemini_invalid_response", model=model, error=str(e))
            raise LLMResponseFormatError(f"Invalid response format: {e}") from e

        if not text:
            logger.warning("gemini_empty_response", model=model)
            raise LLMResponseFormatError("Empty response from model")

        logger.info(
            "gemini_content_generated",
            model=model,
            prompt_length=len(prompt),
            response_length=len(text),
        )
        return text

    @staticmethod
    def _extract_text(data: dict[str, Any]) -> str:
        """Join the text parts of the first candidate."""
        parts = data["candidates"][0]["content"]["parts"]
        return "".join(part.get("text", "") for part in parts)

    async def health_check(self) -> bool:
        """Check that the API is reachable and the key is accepted.

        Returns:
            True if the model list endpoint answers 200, False otherwise
        """
        if not self.config.api_key:
            return False

        client = self._get_client()
        try:
            response = await client.get(
                "/v1beta/models", params={"key": self.config.api_key}
            )
        except (httpx.TimeoutException, httpx.ConnectError, httpx.NetworkError) as e:
            logger.warning("gemini_health_check_error", error=str(e))
            return False

        if response.status_code == 200:
            logger.info("gemini_health_check_passed")
            return True

        logger.warning("gemini_health_check_failed", status_code=response.status_code)
        return False
