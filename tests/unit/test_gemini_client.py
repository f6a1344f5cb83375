"""Unit tests for the Gemini REST client.

HTTP traffic is intercepted with respx; no network access is needed.
"""

from __future__ import annotations

import json

import httpx
import pytest
import respx

from docchain.config import LLMConfig
from docchain.llm.client import GeminiClient, to_gemini_schema
from docchain.llm.errors import (
    LLMAPIError,
    LLMClientError,
    LLMConnectionError,
    LLMResponseFormatError,
    LLMTimeoutError,
)

GENERATE_PATH = "/v1beta/models/gemini-2.0-flash:generateContent"


def _reply(*texts: str) -> dict:
    return {
        "candidates": [
            {"content": {"parts": [{"text": text} for text in texts], "role": "model"}}
        ]
    }


@pytest.fixture
def config() -> LLMConfig:
    return LLMConfig(api_key="test-key", timeout_seconds=5)


class TestToGeminiSchema:
    """Tests for schema dialect conversion."""

    def test_uppercases_nested_types(self) -> None:
        schema = {
            "type": "object",
            "properties": {
                "mainContent": {"type": "string", "description": "Body"},
                "risks": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {"description": {"type": "string"}},
                    },
                },
            },
            "required": ["mainContent"],
        }

        converted = to_gemini_schema(schema)

        assert converted["type"] == "OBJECT"
        assert converted["properties"]["mainContent"] == {
            "type": "STRING",
            "description": "Body",
        }
        risks = converted["properties"]["risks"]
        assert risks["type"] == "ARRAY"
        assert risks["items"]["type"] == "OBJECT"
        assert risks["items"]["properties"]["description"]["type"] == "STRING"
        assert converted["required"] == ["mainContent"]


class TestGenerateContent:
    """Tests for GeminiClient.generate_content."""

    @respx.mock
    @pytest.mark.asyncio
    async def test_returns_joined_text(self, config: LLMConfig) -> None:
        route = respx.post(path=GENERATE_PATH).mock(
            return_value=httpx.Response(200, json=_reply("Hello ", "world"))
        )

        async with GeminiClient(config) as client:
            text = await client.generate_content("Say hello", model="gemini-2.0-flash")

        assert text == "Hello world"
        request = route.calls.last.request
        assert request.url.params["key"] == "test-key"
        payload = json.loads(request.content)
        assert payload == {"contents": [{"parts": [{"text": "Say hello"}]}]}

    @respx.mock
    @pytest.mark.asyncio
    async def test_sends_response_schema(self, config: LLMConfig) -> None:
        route = respx.post(path=GENERATE_PATH).mock(
            return_value=httpx.Response(200, json=_reply('{"mainContent": "x"}'))
        )
        schema = {"type": "object", "properties": {"mainContent": {"type": "string"}}}

        async with GeminiClient(config) as client:
            await client.generate_content(
                "Write", model="gemini-2.0-flash", response_schema=schema
            )

        payload = json.loads(route.calls.last.request.content)
        generation_config = payload["generationConfig"]
        assert generation_config["responseMimeType"] == "application/json"
        assert generation_config["responseSchema"]["type"] == "OBJECT"

    @respx.mock
    @pytest.mark.asyncio
    async def test_error_status(self, config: LLMConfig) -> None:
        respx.post(path=GENERATE_PATH).mock(
            return_value=httpx.Response(500, json={"error": {"message": "internal"}})
        )

        async with GeminiClient(config) as client:
            with pytest.raises(LLMAPIError) as exc_info:
                await client.generate_content("Hi", model="gemini-2.0-flash")

        assert exc_info.value.status_code == 500
        assert "HTTP 500" in str(exc_info.value)

    @respx.mock
    @pytest.mark.asyncio
    async def test_error_status_with_text_body(self, config: LLMConfig) -> None:
        respx.post(path=GENERATE_PATH).mock(
            return_value=httpx.Response(403, text="Forbidden")
        )

        async with GeminiClient(config) as client:
            with pytest.raises(LLMAPIError, match="Forbidden"):
                await client.generate_content("Hi", model="gemini-2.0-flash")

    @respx.mock
    @pytest.mark.asyncio
    async def test_malformed_payload(self, config: LLMConfig) -> None:
        respx.post(path=GENERATE_PATH).mock(
            return_value=httpx.Response(200, json={"candidates": []})
        )

        async with GeminiClient(config) as client:
            with pytest.raises(LLMResponseFormatError, match="Invalid response format"):
                await client.generate_content("Hi", model="gemini-2.0-flash")

    @respx.mock
    @pytest.mark.asyncio
    async def test_safety_blocked_candidate(self, config: LLMConfig) -> None:
        respx.post(path=GENERATE_PATH).mock(
            return_value=httpx.Response(
                200, json={"candidates": [{"finishReason": "SAFETY"}]}
            )
        )

        async with GeminiClient(config) as client:
            with pytest.raises(LLMResponseFormatError, match="Invalid response format"):
                await client.generate_content("Hi", model="gemini-2.0-flash")

    @respx.mock
    @pytest.mark.asyncio
    async def test_error_status_is_not_a_format_error(self, config: LLMConfig) -> None:
        respx.post(path=GENERATE_PATH).mock(return_value=httpx.Response(503))

        async with GeminiClient(config) as client:
            with pytest.raises(LLMAPIError) as exc_info:
                await client.generate_content("Hi", model="gemini-2.0-flash")

        assert not isinstance(exc_info.value, LLMResponseFormatError)

    @respx.mock
    @pytest.mark.asyncio
    async def test_empty_text(self, config: LLMConfig) -> None:
        respx.post(path=GENERATE_PATH).mock(
            return_value=httpx.Response(200, json=_reply(""))
        )

        async with GeminiClient(config) as client:
            with pytest.raises(LLMResponseFormatError, match="Empty response"):
                await client.generate_content("Hi", model="gemini-2.0-flash")

    @respx.mock
    @pytest.mark.asyncio
    async def test_timeout(self, config: LLMConfig) -> None:
        respx.post(path=GENERATE_PATH).mock(side_effect=httpx.ReadTimeout("slow"))

        async with GeminiClient(config) as client:
            with pytest.raises(LLMTimeoutError, match="timed out after 5s"):
                await client.generate_content("Hi", model="gemini-2.0-flash")

    @respx.mock
    @pytest.mark.asyncio
    async def test_connection_error(self, config: LLMConfig) -> None:
        respx.post(path=GENERATE_PATH).mock(side_effect=httpx.ConnectError("refused"))

        async with GeminiClient(config) as client:
            with pytest.raises(LLMConnectionError):
                await client.generate_content("Hi", model="gemini-2.0-flash")

    @pytest.mark.asyncio
    async def test_missing_api_key(self) -> None:
        async with GeminiClient(LLMConfig(api_key="")) as client:
            with pytest.raises(LLMClientError, match="not configured"):
                await client.generate_content("Hi", model="gemini-2.0-flash")

    @pytest.mark.asyncio
    async def test_requires_context_manager(self, config: LLMConfig) -> None:
        client = GeminiClient(config)
        with pytest.raises(RuntimeError, match="async context manager"):
            await client.generate_content("Hi", model="gemini-2.0-flash")


class TestHealthCheck:
    """Tests for GeminiClient.health_check."""

    @respx.mock
    @pytest.mark.asyncio
    async def test_healthy(self, config: LLMConfig) -> None:
        respx.get(path="/v1beta/models").mock(
            return_value=httpx.Response(200, json={"models": []})
        )

        async with GeminiClient(config) as client:
            assert await client.health_check() is True

    @respx.mock
    @pytest.mark.asyncio
    async def test_rejected_key(self, config: LLMConfig) -> None:
        respx.get(path="/v1beta/models").mock(return_value=httpx.Response(400))

        async with GeminiClient(config) as client:
            assert await client.health_check() is False

    @pytest.mark.asyncio
    async def test_without_key(self) -> None:
        async with GeminiClient(LLMConfig(api_key="")) as client:
            assert await client.health_check() is False
