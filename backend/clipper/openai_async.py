"""Chat completions client for the query interpreter."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from .settings import settings

logger = logging.getLogger(__name__)

CHAT_COMPLETIONS_PATH = "/chat/completions"

_client: httpx.AsyncClient | None = None
_client_lock = asyncio.Lock()


class OpenAIUnavailable(RuntimeError):
    """The completions endpoint could not be reached or gave an unusable reply."""


def _headers() -> dict[str, str]:
    if not settings.interpreter_enabled:
        raise OpenAIUnavailable("OPENAI_API_KEY not configured")
    return {
        "Authorization": f"Bearer {settings.OPENAI_API_KEY}",
        "Content-Type": "application/json",
    }


async def _get_client() -> httpx.AsyncClient:
    global _client
    if _client is None:
        async with _client_lock:
            if _client is None:
                _client = httpx.AsyncClient(
                    base_url=settings.OPENAI_API_BASE.rstrip("/"),
                    timeout=httpx.Timeout(
                        settings.OPENAI_TIMEOUT_SECONDS,
                        connect=settings.OPENAI_CONNECT_TIMEOUT_SECONDS,
                    ),
                )
    return _client


def completion_payload(messages: list[dict[str, str]]) -> dict[str, Any]:
    """Request body for a deterministic, JSON-mode completion with the search model."""
    return {
        "model": settings.SHOP_SEARCH_GPT_MODEL,
        "temperature": 0,
        "response_format": {"type": "json_object"},
        "max_tokens": settings.SHOP_SEARCH_MAX_TOKENS,
        "messages": messages,
    }


def message_content(body: Any) -> str | None:
    """Text of the first choice, or None when the reply carries no message."""
    choices = body.get("choices") if isinstance(body, dict) else None
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    message = choices[0].get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    return content if isinstance(content, str) and content.strip() else None


async def chat_completion(messages: list[dict[str, str]]) -> str | None:
    headers = _headers()
    client = await _get_client()
    try:
        response = await client.post(
            CHAT_COMPLETIONS_PATH, json=completion_payload(messages), headers=headers
        )
    except httpx.TimeoutException as exc:
        raise OpenAIUnavailable(
            f"Completion timed out after {settings.OPENAI_TIMEOUT_SECONDS}s"
        ) from exc
    except httpx.HTTPError as exc:
        raise OpenAIUnavailable(f"Request failed: {exc}") from exc
    if response.status_code == 429:
        raise OpenAIUnavailable("Completion rate limited")
    if response.status_code >= 400:
        raise OpenAIUnavailable(f"OpenAI error {response.status_code}: {response.text[:200]}")
    try:
        body = response.json()
    except ValueError as exc:
        raise OpenAIUnavailable("Invalid JSON from OpenAI") from exc

    usage = body.get("usage") if isinstance(body, dict) else None
    if isinstance(usage, dict):
        logger.debug(
            "Completion used %s prompt / %s completion tokens",
            usage.get("prompt_tokens"),
            usage.get("completion_tokens"),
        )
    return message_content(body)


async def close_async_client() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
