from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence

from ..contracts import ShopCatalogEntry
from ..schemas import SearchCriteria

# Service prices that qualify a shop for "cheap" / "expensive" without a matching tier.
CHEAP_SERVICE_PRICE = 30.0
PREMIUM_SERVICE_PRICE = 70.0

CHEAP_DESCRIPTORS = frozenset({"cheap", "under"})
PREMIUM_DESCRIPTORS = frozenset({"expensive", "over"})

Predicate = Callable[[ShopCatalogEntry], bool]


def _contains_any(text: str | None, needles: Sequence[str]) -> bool:
    if not text:
        return False
    lowered = text.lower()
    return any(needle in lowered for needle in needles)


def _lowered(keywords: Iterable[str]) -> tuple[str, ...]:
    return tuple(kw.lower() for kw in keywords if kw)


def _prices(shop: ShopCatalogEntry) -> list[float]:
    return [service.price for service in shop.services]


def _rated_at_least(shop: ShopCatalogEntry, floor: float) -> bool:
    return shop.rating is not None and shop.rating >= floor


def build_predicates(criteria: SearchCriteria) -> list[tuple[str, Predicate]]:
    """
    Turn criteria into named retain/reject tests.

    Only dimensions with a value produce a predicate. Equality and numeric checks
    come first so substring scans only run on shops that survived them.
    """
    predicates: list[tuple[str, Predicate]] = []

    tier = criteria.price_tier
    if tier is not None:
        predicates.append(("price_tier", lambda shop: shop.price_tier == tier))

    if criteria.rating_min is not None:
        manual_floor = criteria.rating_min
        predicates.append(("rating_min", lambda shop: _rated_at_least(shop, manual_floor)))
    elif criteria.rating is not None and criteria.rating.min is not None:
        ai_floor = criteria.rating.min
        predicates.append(("rating", lambda shop: _rated_at_least(shop, ai_floor)))

    service_name = criteria.service_name
    if service_name is not None:
        predicates.append(
            (
                "service_name",
                lambda shop: any(service.name == service_name for service in shop.services),
            )
        )

    price = criteria.price
    if price is not None:
        if price.max is not None:
            ceiling = price.max
            predicates.append(
                ("price_max", lambda shop: any(p <= ceiling for p in _prices(shop)))
            )
        if price.min is not None:
            floor = price.min
            predicates.append(("price_min", lambda shop: any(p >= floor for p in _prices(shop))))
        # a chosen tier overrides the interpreter's price band
        if tier is None and price.descriptor in CHEAP_DESCRIPTORS:
            predicates.append(
                (
                    "price_descriptor",
                    lambda shop: shop.price_tier == "$"
                    or any(p < CHEAP_SERVICE_PRICE for p in _prices(shop)),
                )
            )
        elif tier is None and price.descriptor in PREMIUM_DESCRIPTORS:
            predicates.append(
                (
                    "price_descriptor",
                    lambda shop: shop.price_tier == "$$$"
                    or any(p > PREMIUM_SERVICE_PRICE for p in _prices(shop)),
                )
            )

    location_keywords = _lowered(criteria.location_keywords)
    if location_keywords:
        predicates.append(
            ("location_keywords", lambda shop: _contains_any(shop.address, location_keywords))
        )

    if criteria.location is not None:
        location = (criteria.location.lower(),)
        predicates.append(("location", lambda shop: _contains_any(shop.address, location)))

    if criteria.search_term is not None:
        term = (criteria.search_term.lower(),)
        predicates.append(
            (
                "search_term",
                lambda shop: _contains_any(shop.name, term) or _contains_any(shop.description, term),
            )
        )

    service_keywords = _lowered(criteria.service_keywords)
    if service_keywords:

        def _offers_service(shop: ShopCatalogEntry) -> bool:
            # the shop's own description counts even when it lists no services
            if _contains_any(shop.description, service_keywords):
                return True
            return any(
                _contains_any(service.name, service_keywords)
                or _contains_any(service.description, service_keywords)
                for service in shop.services
            )

        predicates.append(("service_keywords", _offers_service))

    return predicates


def active_dimensions(criteria: SearchCriteria) -> list[str]:
    return [name for name, _ in build_predicates(criteria)]


def evaluate(
    catalog: Sequence[ShopCatalogEntry], criteria: SearchCriteria
) -> list[ShopCatalogEntry]:
    """
    Filter ``catalog`` down to the shops that pass every active predicate.

    The result keeps catalog order; nothing is re-ranked. Neither argument is mutated.
    """
    predicates = [predicate for _, predicate in build_predicates(criteria)]
    if not predicates:
        return list(catalog)
    return [shop for shop in catalog if all(predicate(shop) for predicate in predicates)]


__all__ = [
    "CHEAP_SERVICE_PRICE",
    "PREMIUM_SERVICE_PRICE",
    "active_dimensions",
    "build_predicates",
    "evaluate",
]
