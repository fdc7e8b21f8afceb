from __future__ import annotations

import asyncio
import json
import logging
import re
import time
from datetime import date
from hashlib import sha256
from typing import Any

from pydantic import ValidationError

from .openai_async import OpenAIUnavailable, chat_completion, close_async_client
from .schemas import InterpretedQuery
from .settings import settings

logger = logging.getLogger(__name__)

_failure_count = 0
_disabled_until = 0.0

_CODE_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)
_REPLY_TEXT_KEYS = frozenset({"searchSummary", "clarificationNeeded"})


class InterpreterError(RuntimeError):
    """Raised when a free-text query cannot be turned into structured filters."""


def _now() -> float:
    return time.monotonic()


def query_fingerprint(query: str) -> str:
    return sha256(query.encode("utf-8")).hexdigest()[:10]


def _circuit_open() -> bool:
    return _failure_count >= settings.SHOP_SEARCH_MAX_FAILURES and _disabled_until > _now()


def _register_failure(exc: Exception | None = None) -> None:
    global _failure_count, _disabled_until
    _failure_count += 1
    if _failure_count >= settings.SHOP_SEARCH_MAX_FAILURES:
        _disabled_until = _now() + settings.SHOP_SEARCH_COOLDOWN_SECONDS
    if exc:
        logger.warning(
            "Query interpreter failure (%s/%s)",
            _failure_count,
            settings.SHOP_SEARCH_MAX_FAILURES,
            exc_info=exc,
        )


def _register_success() -> None:
    global _failure_count, _disabled_until
    _failure_count = 0
    _disabled_until = 0.0


SYSTEM_PROMPT = (
    "You are the search assistant for ClipperConnect, a barbershop booking platform. "
    "Convert the user's query into structured filters. Return JSON only, no prose."
)

SCHEMA_GUIDE = (
    "Respond with an object: {\"parsedFilters\": {...}, \"searchSummary\"?: string, "
    "\"clarificationNeeded\"?: string}. parsedFilters keys, all optional: "
    "serviceKeywords (list of barber service terms, e.g. haircut, beard trim, fade, shave, color); "
    "locationKeywords (list of places: neighbourhoods, streets, city names, zip codes, 'near me'); "
    "price {max?: number, min?: number, descriptor?: under|over|around|exact|cheap|expensive|any}; "
    "dateTime {date?, time?, dayOfWeek?}; rating {min?: number of stars}; openNow (boolean, only "
    "when the user asks for shops open now); otherFeatures (list, e.g. kid-friendly, accepts cards). "
    "'under $X' means price.max = X and descriptor 'under'; 'over $X' means price.min = X and "
    "descriptor 'over'; 'cheap'/'affordable' means descriptor 'cheap'; 'premium'/'expensive' means "
    "descriptor 'expensive'. Be liberal with service and location keywords. "
    "If the query is clear, give a one-sentence searchSummary. If it is too vague to search "
    "(e.g. 'find a barber'), set clarificationNeeded to a short question and leave parsedFilters "
    "partial or empty."
)

FEW_SHOT_EXAMPLES: list[tuple[str, dict[str, Any]]] = [
    (
        "I need a cheap men's haircut in South City tomorrow around 2pm, must be good.",
        {
            "parsedFilters": {
                "serviceKeywords": ["men's haircut", "haircut"],
                "locationKeywords": ["South City"],
                "price": {"descriptor": "cheap"},
                "dateTime": {"date": "tomorrow", "time": "around 2pm"},
                "rating": {"min": 4},
            },
            "searchSummary": (
                "Searching for highly-rated, affordable barbershops in South City "
                "for a men's haircut tomorrow around 2 PM."
            ),
        },
    ),
    (
        "skin fade under $40 on Saturday",
        {
            "parsedFilters": {
                "serviceKeywords": ["skin fade", "fade"],
                "price": {"max": 40, "descriptor": "under"},
                "dateTime": {"dayOfWeek": "Saturday"},
            },
            "searchSummary": "Searching for barbershops offering skin fades under $40 on Saturday.",
        },
    ),
    (
        "find a barber",
        {
            "parsedFilters": {},
            "clarificationNeeded": (
                "Sure, I can help with that! What service are you looking for, "
                "and do you have a location in mind?"
            ),
        },
    ),
]


def _few_shot_messages() -> list[dict[str, str]]:
    messages: list[dict[str, str]] = []
    for user_query, response in FEW_SHOT_EXAMPLES:
        messages.append({"role": "user", "content": user_query})
        messages.append({"role": "assistant", "content": json.dumps(response)})
    return messages


def build_messages(query: str, *, today: date | None = None) -> list[dict[str, str]]:
    today = today or date.today()
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": SCHEMA_GUIDE},
        *_few_shot_messages(),
        {
            "role": "user",
            "content": json.dumps(
                {
                    "current_date": today.isoformat(),
                    "query": query,
                    "instructions": "Respond with valid JSON only, matching the schema.",
                }
            ),
        },
    ]


def parse_reply(content: str) -> dict[str, Any]:
    """
    Pull the interpreter object out of a model reply.

    Accepts prose or a ```json fence around the object. A reply that is the
    filters object itself (no ``parsedFilters`` key) is wrapped.
    """
    fence = _CODE_FENCE_RE.search(content)
    text = fence.group(1) if fence else content

    decoder = json.JSONDecoder()
    payload: dict[str, Any] | None = None
    for index, char in enumerate(text):
        if char != "{":
            continue
        try:
            candidate, _ = decoder.raw_decode(text[index:])
        except json.JSONDecodeError:
            continue
        if isinstance(candidate, dict):
            payload = candidate
            break
    if payload is None:
        raise InterpreterError("Invalid interpreter JSON")

    if "parsedFilters" in payload or "parsed_filters" in payload:
        return payload
    return {
        "parsedFilters": {k: v for k, v in payload.items() if k not in _REPLY_TEXT_KEYS},
        **{k: v for k, v in payload.items() if k in _REPLY_TEXT_KEYS},
    }


async def interpret_async(query: str) -> InterpretedQuery:
    normalized = (query or "").strip()
    if not normalized:
        raise InterpreterError("Empty query")
    if _circuit_open():
        raise InterpreterError("Query interpreter cooling down")

    digest = query_fingerprint(normalized)
    try:
        content = await chat_completion(build_messages(normalized))
    except OpenAIUnavailable as exc:
        _register_failure(exc)
        raise InterpreterError("LLM call failed") from exc
    if content is None:
        _register_failure()
        raise InterpreterError("Empty LLM response")

    try:
        payload = parse_reply(content)
    except InterpreterError as exc:
        logger.warning("Interpreter JSON decode failed (%s): %s", digest, content[:200])
        _register_failure(exc)
        raise

    try:
        interpreted = InterpretedQuery.model_validate(payload)
    except ValidationError as exc:
        logger.warning("Interpreter payload validation failed (%s): %s", digest, payload)
        _register_failure(exc)
        raise InterpreterError("Invalid interpreter payload") from exc

    _register_success()
    logger.debug(
        "Query interpreted %s -> %s", digest, interpreted.model_dump(exclude_none=True)
    )
    return interpreted


def interpret(query: str) -> InterpretedQuery:
    async def _run() -> InterpretedQuery:
        try:
            return await interpret_async(query)
        finally:
            # the shared client is bound to this short-lived event loop
            await close_async_client()

    return asyncio.run(_run())


__all__ = ["InterpreterError", "build_messages", "interpret", "interpret_async", "parse_reply"]
