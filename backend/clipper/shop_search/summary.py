"""Caller-facing text for a finished search: summary line and user notice."""

from __future__ import annotations

from ..schemas import InterpretedQuery, ParsedFilters, SearchCriteria

AI_FAILED_PREFIX = "AI search failed."
MANUAL_ONLY_SUMMARY = "Manual filters applied."
ALL_SHOPS_SUMMARY = "Showing all shops."
MANUAL_REFINEMENT_SUFFIX = " (refined with your manual filters)"

AI_FAILED_NOTICE = "AI search failed. Showing results for your manual filters instead."
NO_RESULTS_NOTICE = "No shops found. Try adjusting your filters."


def _money(value: float) -> str:
    return f"${value:g}"


def _either(items: tuple[str, ...]) -> str:
    if len(items) == 1:
        return items[0]
    return ", ".join(items[:-1]) + f" or {items[-1]}"


def describe_filters(parsed: ParsedFilters) -> str:
    """Restate parsed filters as a sentence, used when the interpreter gave no summary."""
    subject = "barbershops"
    descriptor = parsed.price.descriptor if parsed.price else None
    if descriptor == "cheap":
        subject = "affordable barbershops"
    elif descriptor == "expensive":
        subject = "premium barbershops"

    parts = [f"Searching for {subject}"]
    if parsed.rating and parsed.rating.min is not None:
        parts.append(f"rated {parsed.rating.min:g}+ stars")
    if parsed.service_keywords:
        parts.append(f"offering {_either(parsed.service_keywords)}")
    if parsed.location_keywords:
        parts.append(f"in {_either(parsed.location_keywords)}")
    if parsed.price:
        if parsed.price.min is not None and parsed.price.max is not None:
            parts.append(
                f"with services between {_money(parsed.price.min)} and {_money(parsed.price.max)}"
            )
        elif parsed.price.max is not None:
            parts.append(f"with services up to {_money(parsed.price.max)}")
        elif parsed.price.min is not None:
            parts.append(f"with services from {_money(parsed.price.min)}")
    when = parsed.date_time
    if when is not None and not when.is_empty:
        moment = " ".join(v for v in (when.day_of_week, when.date, when.time) if v)
        parts.append(f"for {moment}")
    if parsed.open_now:
        parts.append("open now")
    if parsed.other_features:
        parts.append(f"with {', '.join(parsed.other_features)}")
    return " ".join(parts) + "."


def describe_criteria(criteria: SearchCriteria) -> dict[str, object]:
    """Compact, log-friendly view of the non-empty criteria fields."""
    return criteria.model_dump(exclude_none=True, exclude_defaults=True)


def compose_summary(
    *,
    interpreted: InterpretedQuery | None,
    manual_active: bool,
    ai_failed: bool = False,
) -> str:
    """
    Pick the summary line for a search.

    ``interpreted`` is the interpreter result when a free-text query was sent and
    answered. A clarification answer contributes no AI summary.
    """
    if ai_failed:
        tail = MANUAL_ONLY_SUMMARY if manual_active else ALL_SHOPS_SUMMARY
        return f"{AI_FAILED_PREFIX} {tail}"

    if interpreted is not None and not interpreted.clarification_needed:
        base = interpreted.search_summary or describe_filters(interpreted.parsed_filters)
        if manual_active:
            return base.rstrip(".") + MANUAL_REFINEMENT_SUFFIX + "."
        return base

    if manual_active:
        return MANUAL_ONLY_SUMMARY
    return ALL_SHOPS_SUMMARY


def user_notice(
    *, ai_failed: bool, clarification_needed: str | None, result_count: int
) -> str | None:
    if ai_failed:
        return AI_FAILED_NOTICE
    if clarification_needed:
        return clarification_needed
    if result_count == 0:
        return NO_RESULTS_NOTICE
    return None
