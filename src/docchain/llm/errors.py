"""Exceptions raised by the Docchain language model clients."""

from __future__ import annotations


class LLMClientError(Exception):
    """Base exception for language model client errors."""

    pass


class LLMTimeoutError(LLMClientError):
    """Raised when a provider request times out."""

    pass


class LLMConnectionError(LLMClientError):
    """Raised when unable to connect to the provider."""

    pass


class LLMAPIError(LLMClientError):
    """Raised when the provider returns an error or unusable response."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GenerationError(LLMClientError):
    """Raised when document content could not be generated."""

    pass


class EvaluationError(LLMClientError):
    """Raised when the evaluation model could not be called."""

    pass


class LLMResponseFormatError(LLMAPIError):
    """Raised when a successful reply carries no usable text.

    Covers empty text parts and candidates without content, such as replies
    blocked by safety filters.
    """

    pass
