import asyncio
from typing import Awaitable, Callable, Optional

import httpx

from constants import (
    GEMINI_API_KEY,
    GEMINI_API_URL,
    GEMINI_MODEL,
    TRANSLATION_MAX_ATTEMPTS,
    TRANSLATION_RETRY_BASE_DELAY,
    TRANSLATION_TIMEOUT_SECONDS,
)
from errors import TranslationError
from logging_config import get_logger

logger = get_logger(__name__)

# (text, source_language, target_language) -> translated text
Translator = Callable[[str, str, str], Awaitable[str]]

UNAVAILABLE_TEMPLATE = "[Translation unavailable: {error}]"

PROMPT_TEMPLATE = (
    "Translate the following text from {source} to {target}. \n"
    "Return only the translated text without any explanations:\n"
    "\"{text}\""
)


def preview(text: str, limit: int = 30) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


class GeminiTranslator:
    """Calls the Gemini generateContent REST endpoint."""

    def __init__(
        self,
        api_key: Optional[str] = GEMINI_API_KEY,
        model: str = GEMINI_MODEL,
        base_url: str = GEMINI_API_URL,
        timeout: float = TRANSLATION_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.endpoint = f"{base_url.rstrip('/')}/models/{model}:generateContent"
        self.timeout = timeout
        self.transport = transport

    async def __call__(self, text: str, source_language: str, target_language: str) -> str:
        if not self.api_key:
            raise TranslationError("GEMINI_API_KEY is not configured")

        prompt = PROMPT_TEMPLATE.format(source=source_language, target=target_language, text=text)
        payload = {"contents": [{"parts": [{"text": prompt}]}]}

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(self.endpoint, params={"key": self.api_key}, json=payload)
            if response.status_code != 200:
                raise TranslationError(f"Gemini API failed: {response.status_code} {response.text}")
            data = response.json()

        try:
            translation = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            raise TranslationError(f"Unexpected Gemini response: {data}")
        return translation.strip()


class TranslationGateway:
    """Retry wrapper around a translator.

    A failed attempt ``n`` waits ``n * base_delay`` seconds before the next
    one. When every attempt fails the caller gets a placeholder string
    instead of an exception, so a broken provider never stalls the relay.
    """

    def __init__(
        self,
        translator: Translator,
        max_attempts: int = TRANSLATION_MAX_ATTEMPTS,
        base_delay: float = TRANSLATION_RETRY_BASE_DELAY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.translator = translator
        self.max_attempts = max(1, max_attempts)
        self.base_delay = base_delay
        self._sleep = sleep

    async def translate(self, text: str, source_language: str, target_language: str) -> str:
        last_error: Optional[Exception] = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                translation = await self.translator(text, source_language, target_language)
                return translation.strip()
            except Exception as e:
                last_error = e
                logger.warning(f"Translation error (attempt {attempt}/{self.max_attempts}): {e}")
                if attempt < self.max_attempts:
                    await self._sleep(attempt * self.base_delay)

        logger.error(f"Translation of \"{preview(text)}\" from {source_language} to {target_language} gave up after {self.max_attempts} attempts")
        return UNAVAILABLE_TEMPLATE.format(error=last_error)
