from __future__ import annotations

from ..schemas import ManualFilters, ParsedFilters, SearchCriteria


def merge_criteria(
    ai: ParsedFilters | None = None, manual: ManualFilters | None = None
) -> SearchCriteria:
    """
    Combine interpreter filters with form selections into one criteria set.

    Precedence, per dimension:

    ============================  =====================================
    dimension                     rule
    ============================  =====================================
    minimum rating                manual ``rating_min`` replaces AI ``rating``
    price band                    manual ``price_tier`` replaces AI ``price.descriptor``
    price bounds (min/max)        AI only, kept even when a tier is chosen
    service/location keywords     AI only
    manual service name           independent, ANDed with everything else
    date/time, open now, extras   AI only, carried through unevaluated
    ============================  =====================================

    A replaced AI value is dropped, never intersected with the manual one.
    """
    ai = ai or ParsedFilters()
    manual = manual or ManualFilters()

    rating = ai.rating
    if manual.rating_min is not None:
        rating = None

    price = ai.price
    if manual.price_tier is not None and price is not None and price.descriptor is not None:
        price = price.model_copy(update={"descriptor": None})
        if price.is_empty:
            price = None

    return SearchCriteria(
        service_keywords=ai.service_keywords,
        location_keywords=ai.location_keywords,
        price=price,
        date_time=ai.date_time,
        rating=rating,
        open_now=ai.open_now,
        other_features=ai.other_features,
        service_name=manual.service_name,
        rating_min=manual.rating_min,
        price_tier=manual.price_tier,
        search_term=manual.search_term,
        location=manual.location,
    )
