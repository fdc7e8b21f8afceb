"""Shared input sanitizers for filter and catalog models."""

from __future__ import annotations

import math
import re
from collections.abc import Iterable
from typing import Any

PRICE_TIERS = ("$", "$$", "$$$")

# Placeholder values the filter form submits when a control is left on "any".
ANY_SENTINELS = frozenset({"", "any"})
RATING_ANY_SENTINELS = ANY_SENTINELS | {"any rating", "0"}
PRICE_ANY_SENTINELS = ANY_SENTINELS | {"any price"}

_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")


def _squash_whitespace(text: str) -> str:
    return " ".join(text.split())


def is_any_sentinel(value: Any, sentinels: frozenset[str] = ANY_SENTINELS) -> bool:
    """True when a form control was left on its "any" choice."""
    if isinstance(value, str):
        return _squash_whitespace(value).lower() in sentinels
    return False


def normalize_keywords(items: Iterable[Any] | str | None) -> tuple[str, ...]:
    """Coerce a model-supplied keyword field into a tuple of distinct, non-blank strings."""
    if items is None:
        return ()
    if isinstance(items, str):
        items = [items]
    cleaned: list[str] = []
    seen: set[str] = set()
    for raw in items:
        if not isinstance(raw, str):
            continue
        entry = _squash_whitespace(raw)
        if not entry or entry.lower() in seen:
            continue
        seen.add(entry.lower())
        cleaned.append(entry)
    return tuple(cleaned)


def coerce_number(value: Any) -> float | None:
    """Best-effort numeric coercion; "$40", "40 dollars" and 40 all give 40.0."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        match = _NUMBER_RE.search(value.replace(",", ""))
        if not match:
            return None
        number = float(match.group(0))
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def normalize_text(value: Any, *, max_length: int | None = None) -> str | None:
    if not isinstance(value, str):
        return None
    cleaned = _squash_whitespace(value)
    if not cleaned:
        return None
    return cleaned[:max_length] if max_length else cleaned


def normalize_price_tier(value: Any) -> str | None:
    if value is None or is_any_sentinel(value, PRICE_ANY_SENTINELS):
        return None
    if not isinstance(value, str):
        raise ValueError("price tier must be a string")
    cleaned = value.strip()
    if cleaned not in PRICE_TIERS:
        raise ValueError(f"price tier must be one of {', '.join(PRICE_TIERS)}")
    return cleaned


__all__ = [
    "ANY_SENTINELS",
    "PRICE_ANY_SENTINELS",
    "PRICE_TIERS",
    "RATING_ANY_SENTINELS",
    "coerce_number",
    "is_any_sentinel",
    "normalize_keywords",
    "normalize_price_tier",
    "normalize_text",
]
