from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence

from ..contracts import ShopCatalogEntry
from ..logging_config import get_logger
from ..metrics import shop_search_interpreter_seconds, track_search
from ..openai_async import close_async_client
from ..query_interpreter import InterpreterError, interpret_async, query_fingerprint
from ..schemas import InterpretedQuery, ManualFilters, ParsedFilters
from ..settings import settings
from .engine import active_dimensions, evaluate
from .merge import merge_criteria
from .summary import compose_summary, describe_criteria
from .types import Interpreter, SearchOutcome

logger = get_logger(__name__)


async def _interpret(query: str, interpreter: Interpreter) -> InterpretedQuery:
    started = time.perf_counter()
    status = "error"
    try:
        result = await asyncio.wait_for(
            interpreter(query), timeout=settings.SHOP_SEARCH_INTERPRETER_TIMEOUT_SECONDS
        )
        status = "ok"
        return result
    finally:
        shop_search_interpreter_seconds.labels(status=status).observe(
            time.perf_counter() - started
        )


async def search_async(
    catalog: Sequence[ShopCatalogEntry],
    query: str | None = None,
    manual: ManualFilters | None = None,
    *,
    interpreter: Interpreter | None = None,
) -> SearchOutcome:
    """
    Run one shop search: interpret ``query`` (if any), merge with ``manual`` and filter.

    Interpreter problems never escape. They downgrade the search to manual filters
    and set ``ai_failed``. A clarification answer contributes no AI filters; its
    question is returned in ``clarification_needed``.
    """
    manual = manual or ManualFilters()
    text = (query or "").strip()
    digest = query_fingerprint(text) if text else None

    interpreted: InterpretedQuery | None = None
    ai_filters: ParsedFilters | None = None
    clarification: str | None = None
    ai_failed = False

    if text:
        try:
            interpreted = await _interpret(text, interpreter or interpret_async)
        except (InterpreterError, TimeoutError) as exc:
            ai_failed = True
            logger.warning("shop_search_interpreter_failed", query_hash=digest, error=str(exc))
        except Exception:
            ai_failed = True
            logger.exception("shop_search_interpreter_crashed", query_hash=digest)
        else:
            if interpreted.clarification_needed:
                clarification = interpreted.clarification_needed
            else:
                ai_filters = interpreted.parsed_filters

    criteria = merge_criteria(ai_filters, manual)
    results = evaluate(catalog, criteria)
    summary = compose_summary(
        interpreted=None if ai_failed else interpreted,
        manual_active=manual.is_active,
        ai_failed=ai_failed,
    )
    outcome = SearchOutcome(
        results=results,
        summary=summary,
        criteria=criteria,
        clarification_needed=clarification,
        ai_failed=ai_failed,
        parsed_filters=ai_filters,
        dimensions=active_dimensions(criteria),
    )

    track_search(outcome.outcome, len(results))
    logger.info(
        "shop_search_completed",
        outcome=outcome.outcome,
        query_hash=digest,
        catalog_size=len(catalog),
        result_count=len(results),
        dimensions=outcome.dimensions,
        criteria=describe_criteria(criteria),
    )
    return outcome


def search(
    catalog: Sequence[ShopCatalogEntry],
    query: str | None = None,
    manual: ManualFilters | None = None,
    *,
    interpreter: Interpreter | None = None,
) -> SearchOutcome:
    async def _run() -> SearchOutcome:
        try:
            return await search_async(catalog, query, manual, interpreter=interpreter)
        finally:
            if interpreter is None:
                await close_async_client()

    return asyncio.run(_run())


__all__ = ["search", "search_async"]
