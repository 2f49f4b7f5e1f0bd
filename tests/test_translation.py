"""Unit tests for the translation gateway and the Gemini provider."""

import asyncio

import httpx
import pytest

from errors import TranslationError
from translation import GeminiTranslator, TranslationGateway, preview


class FlakyTranslator:
    def __init__(self, failures: int, result: str = "  नमस्ते  "):
        self.failures = failures
        self.result = result
        self.calls = []

    async def __call__(self, text, source_language, target_language):
        self.calls.append((text, source_language, target_language))
        if len(self.calls) <= self.failures:
            raise RuntimeError(f"quota exceeded #{len(self.calls)}")
        return self.result


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


@pytest.mark.asyncio
async def test_gateway_returns_trimmed_translation() -> None:
    translator = FlakyTranslator(failures=0)
    sleep = RecordingSleep()
    gateway = TranslationGateway(translator, sleep=sleep)

    assert await gateway.translate("Hello", "English", "Hindi") == "नमस्ते"
    assert translator.calls == [("Hello", "English", "Hindi")]
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_gateway_retries_with_linear_backoff() -> None:
    translator = FlakyTranslator(failures=2)
    sleep = RecordingSleep()
    gateway = TranslationGateway(translator, max_attempts=3, base_delay=1.0, sleep=sleep)

    assert await gateway.translate("Hello", "English", "Hindi") == "नमस्ते"
    assert len(translator.calls) == 3
    assert sleep.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_gateway_degrades_to_placeholder_after_exact_attempts() -> None:
    translator = FlakyTranslator(failures=100)
    sleep = RecordingSleep()
    gateway = TranslationGateway(translator, max_attempts=3, base_delay=1.0, sleep=sleep)

    result = await gateway.translate("Hello", "English", "Hindi")

    assert result == "[Translation unavailable: quota exceeded #3]"
    assert len(translator.calls) == 3
    assert sleep.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_gateway_does_not_swallow_cancellation() -> None:
    async def hang(text, source_language, target_language):
        await asyncio.sleep(10)

    gateway = TranslationGateway(hang)
    task = asyncio.create_task(gateway.translate("Hello", "English", "Hindi"))
    await asyncio.sleep(0)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task


def test_preview_truncates_long_text() -> None:
    assert preview("short") == "short"
    assert preview("x" * 40) == "x" * 30 + "..."


@pytest.mark.asyncio
async def test_gemini_translator_posts_prompt_and_parses_reply() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url
        seen["body"] = request.read().decode()
        return httpx.Response(200, json={
            "candidates": [{"content": {"parts": [{"text": " नमस्ते \n"}]}}],
        })

    translator = GeminiTranslator(
        api_key="secret",
        model="gemini-test",
        base_url="https://example.test/v1beta/",
        transport=httpx.MockTransport(handler),
    )

    assert await translator("Hello", "English", "Hindi") == "नमस्ते"
    assert seen["url"].path == "/v1beta/models/gemini-test:generateContent"
    assert seen["url"].params["key"] == "secret"
    assert "from English to Hindi" in seen["body"]
    assert "Hello" in seen["body"]


@pytest.mark.asyncio
async def test_gemini_translator_raises_on_http_error() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(429, text="slow down"))
    translator = GeminiTranslator(api_key="secret", transport=transport)

    with pytest.raises(TranslationError, match="429"):
        await translator("Hello", "English", "Hindi")


@pytest.mark.asyncio
async def test_gemini_translator_raises_on_unexpected_body() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"candidates": []}))
    translator = GeminiTranslator(api_key="secret", transport=transport)

    with pytest.raises(TranslationError, match="Unexpected Gemini response"):
        await translator("Hello", "English", "Hindi")


@pytest.mark.asyncio
async def test_gemini_translator_requires_api_key() -> None:
    translator = GeminiTranslator(api_key=None)

    with pytest.raises(TranslationError, match="GEMINI_API_KEY"):
        await translator("Hello", "English", "Hindi")
