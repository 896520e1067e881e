"""
LLM Client
Unified interface for generating content via the Gemini, OpenAI and Anthropic REST APIs
FILE: quizblitz/services/llm_client.py
"""
import asyncio
import logging
from enum import Enum
from typing import Optional

import httpx

from quizblitz.core.config import settings

logger = logging.getLogger(__name__)


class LLMProvider(str, Enum):
    GEMINI = "gemini"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class LLMClientError(Exception):
    """Base exception for LLM client errors"""
    pass


class LLMTimeoutError(LLMClientError):
    """Raised when LLM request times out"""
    pass


class LLMAPIError(LLMClientError):
    """Raised when LLM API returns an error"""
    pass


# API Endpoints
GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
OPENAI_API_URL = "https://api.openai.com/v1/chat/completions"
ANTHROPIC_API_URL = "https://api.anthropic.com/v1/messages"

INITIAL_BACKOFF = 1.0  # seconds
SYSTEM_PROMPT = "Return ONLY valid JSON."


async def _retry_with_backoff(
    coro_func,
    max_retries: int = None,
    initial_backoff: float = INITIAL_BACKOFF
):
    """
    Execute coroutine with exponential backoff retry

    Timeouts, 5xx and 429 are retried; other 4xx responses are raised
    immediately.

    Args:
        coro_func: Async function to call (no arguments)
        max_retries: Maximum number of retry attempts
        initial_backoff: Initial backoff delay in seconds

    Returns:
        Result from successful coroutine execution

    Raises:
        Last exception if all retries exhausted
    """
    if max_retries is None:
        max_retries = settings.llm_max_retries
    last_exception = None
    backoff = initial_backoff

    for attempt in range(max_retries + 1):
        try:
            return await coro_func()
        except (httpx.TimeoutException, httpx.HTTPStatusError) as e:
            last_exception = e

            if attempt == max_retries:
                break

            if isinstance(e, httpx.HTTPStatusError):
                if 400 <= e.response.status_code < 500 and e.response.status_code != 429:
                    raise

            logger.warning(
                f"⚠️ Attempt {attempt + 1}/{max_retries + 1} failed: {e}. "
                f"Retrying in {backoff:.1f}s..."
            )

            await asyncio.sleep(backoff)
            backoff *= 2

    raise last_exception


async def _post_json(
    url: str,
    headers: dict,
    payload: dict,
    provider_name: str,
    timeout: float,
    params: Optional[dict] = None
) -> dict:
    """POST with retry; translate httpx failures into LLM client errors"""
    async def make_request():
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.post(url, headers=headers, json=payload, params=params)
            response.raise_for_status()
            return response.json()

    try:
        return await _retry_with_backoff(make_request)

    except httpx.TimeoutException as e:
        logger.error(f"❌ {provider_name} request timed out after {timeout}s")
        raise LLMTimeoutError(f"{provider_name} request timed out: {e}") from e

    except httpx.HTTPStatusError as e:
        logger.error(f"❌ {provider_name} API error: {e.response.status_code}")
        raise LLMAPIError(f"{provider_name} API error: {e.response.status_code}") from e

    except httpx.HTTPError as e:
        logger.error(f"❌ {provider_name} transport error: {e}")
        raise LLMAPIError(f"{provider_name} transport error: {e}") from e


def _extract(data: dict, provider_name: str, *path):
    try:
        for key in path:
            data = data[key]
        return data
    except (KeyError, IndexError, TypeError) as e:
        raise LLMAPIError(f"{provider_name} returned an unexpected response shape") from e


async def _call_gemini(prompt: str, timeout: float) -> str:
    """Call Gemini generateContent REST API"""
    if not settings.gemini_api_key:
        raise LLMClientError("GEMINI_API_KEY is not configured")

    payload = {
        "systemInstruction": {"parts": [{"text": SYSTEM_PROMPT}]},
        "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        "generationConfig": {
            "temperature": 0.7,
            "responseMimeType": "application/json"
        }
    }
    data = await _post_json(
        GEMINI_API_URL.format(model=settings.gemini_model),
        headers={"x-goog-api-key": settings.gemini_api_key, "Content-Type": "application/json"},
        payload=payload,
        provider_name="Gemini",
        timeout=timeout
    )
    content = _extract(data, "Gemini", "candidates", 0, "content", "parts", 0, "text")
    logger.info(f"✅ Gemini response received ({len(content)} chars)")
    return content


async def _call_openai(prompt: str, timeout: float) -> str:
    """Call OpenAI Chat Completions API"""
    if not settings.openai_api_key:
        raise LLMClientError("OPENAI_API_KEY is not configured")

    payload = {
        "model": settings.openai_model,
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt}
        ],
        "temperature": 0.7,
        "max_tokens": 4096
    }
    data = await _post_json(
        OPENAI_API_URL,
        headers={"Authorization": f"Bearer {settings.openai_api_key}", "Content-Type": "application/json"},
        payload=payload,
        provider_name="OpenAI",
        timeout=timeout
    )
    content = _extract(data, "OpenAI", "choices", 0, "message", "content")
    logger.info(f"✅ OpenAI response received ({len(content)} chars)")
    return content


async def _call_anthropic(prompt: str, timeout: float) -> str:
    """Call Anthropic Messages API"""
    if not settings.anthropic_api_key:
        raise LLMClientError("ANTHROPIC_API_KEY is not configured")

    payload = {
        "model": settings.anthropic_model,
        "max_tokens": 4096,
        "system": SYSTEM_PROMPT,
        "messages": [{"role": "user", "content": prompt}]
    }
    data = await _post_json(
        ANTHROPIC_API_URL,
        headers={
            "x-api-key": settings.anthropic_api_key,
            "Content-Type": "application/json",
            "anthropic-version": "2023-06-01"
        },
        payload=payload,
        provider_name="Anthropic",
        timeout=timeout
    )
    content = _extract(data, "Anthropic", "content", 0, "text")
    logger.info(f"✅ Anthropic response received ({len(content)} chars)")
    return content


async def generate_quiz(
    prompt: str,
    provider: Optional[str] = None,
    timeout: Optional[float] = None
) -> str:
    """
    Generate quiz content using the specified LLM provider

    Args:
        prompt: The quiz generation prompt
        provider: "gemini", "openai" or "anthropic" (defaults to settings.llm_provider)
        timeout: Optional custom timeout (defaults to settings.llm_timeout)

    Returns:
        Raw string output from the LLM (no parsing)

    Raises:
        LLMClientError: If the provider is unknown or not configured
        LLMTimeoutError: If request times out after retries
        LLMAPIError: If API returns an error
    """
    timeout = timeout or settings.llm_timeout
    provider = (provider or settings.llm_provider).lower()

    logger.info(f"🤖 Generating quiz via {provider} (timeout: {timeout}s)")

    if provider == LLMProvider.GEMINI:
        return await _call_gemini(prompt, timeout)

    elif provider == LLMProvider.OPENAI:
        return await _call_openai(prompt, timeout)

    elif provider == LLMProvider.ANTHROPIC:
        return await _call_anthropic(prompt, timeout)

    raise LLMClientError(
        f"Invalid provider: {provider}. "
        f"Supported providers: {[p.value for p in LLMProvider]}"
    )


def health_check(provider: Optional[str] = None) -> dict:
    """Report whether an LLM provider has an API key configured"""
    provider = (provider or settings.llm_provider).lower()

    configured = {
        LLMProvider.GEMINI.value: (settings.gemini_api_key, settings.gemini_model),
        LLMProvider.OPENAI.value: (settings.openai_api_key, settings.openai_model),
        LLMProvider.ANTHROPIC.value: (settings.anthropic_api_key, settings.anthropic_model),
    }
    if provider not in configured:
        return {"provider": provider, "status": "error", "message": "Invalid provider"}

    api_key, model = configured[provider]
    return {
        "provider": provider,
        "configured": bool(api_key),
        "model": model,
        "status": "ready" if api_key else "not_configured"
    }
