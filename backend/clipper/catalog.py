from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .contracts import AvailabilitySlot, ShopCatalogEntry
from .settings import settings

logger = logging.getLogger(__name__)

DEFAULT_AVAILABILITY: tuple[AvailabilitySlot, ...] = (
    AvailabilitySlot(day="Monday", open="09:00", close="18:00"),
    AvailabilitySlot(day="Tuesday", open="09:00", close="18:00"),
    AvailabilitySlot(day="Wednesday", open="09:00", close="18:00"),
    AvailabilitySlot(day="Thursday", open="09:00", close="18:00"),
    AvailabilitySlot(day="Friday", open="09:00", close="19:00"),
    AvailabilitySlot(day="Saturday", open="10:00", close="17:00"),
    AvailabilitySlot(day="Sunday", is_available=False),
)


class CatalogError(RuntimeError):
    """Raised when the shop catalog snapshot cannot be read."""


def _first(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def _service_from_record(item: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": str(item.get("id") or item.get("name") or ""),
        "name": item.get("name") or "",
        "price": item.get("price"),
        "duration_minutes": _first(item.get("duration_minutes"), item.get("durationMinutes")),
        "description": item.get("description"),
    }


def _availability_from_record(raw: Any) -> tuple[AvailabilitySlot, ...]:
    if raw in (None, "default"):
        return DEFAULT_AVAILABILITY
    slots = []
    for slot in raw:
        slots.append(
            AvailabilitySlot(
                day=slot.get("day"),
                open=slot.get("open") or "",
                close=slot.get("close") or "",
                is_available=bool(_first(slot.get("is_available"), slot.get("isAvailable"), True)),
            )
        )
    return tuple(slots)


def entry_from_record(item: dict[str, Any]) -> ShopCatalogEntry:
    """
    Build a catalog entry from a stored shop document.

    Accepts both the flat layout and the document-store layout with a nested
    ``location`` object and camelCase keys (``priceRange``, ``durationMinutes``).
    """
    location = item.get("location") or {}
    price_tier = _first(item.get("price_tier"), item.get("priceRange"))
    return ShopCatalogEntry(
        id=str(item.get("id")),
        name=item.get("name") or "Unknown",
        address=_first(location.get("address"), item.get("address")) or "",
        rating=item.get("rating"),
        price_tier=price_tier or None,
        services=tuple(_service_from_record(s) for s in item.get("services") or []),
        description=item.get("description") or "",
        owner_id=_first(item.get("owner_id"), item.get("ownerId")),
        google_maps_link=_first(
            location.get("googleMapsLink"), item.get("google_maps_link")
        ),
        photos=tuple(item.get("photos") or ()),
        availability=_availability_from_record(item.get("availability")),
    )


def build_catalog(records: Iterable[dict[str, Any]]) -> tuple[ShopCatalogEntry, ...]:
    entries: list[ShopCatalogEntry] = []
    seen: set[str] = set()
    for index, item in enumerate(records):
        if not isinstance(item, dict) or item.get("id") is None:
            raise CatalogError(f"Shop record #{index} has no id")
        try:
            entry = entry_from_record(item)
        except (ValidationError, TypeError, AttributeError) as exc:
            raise CatalogError(f"Shop record {item.get('id')!r} is invalid: {exc}") from exc
        if entry.id in seen:
            raise CatalogError(f"Duplicate shop id {entry.id!r}")
        seen.add(entry.id)
        entries.append(entry)
    return tuple(entries)


def load_catalog(path: Path) -> tuple[ShopCatalogEntry, ...]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise CatalogError(f"Catalog file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise CatalogError(f"Catalog file is not valid JSON: {path}") from exc
    if not isinstance(payload, list):
        raise CatalogError("Catalog root must be a list of shops")
    catalog = build_catalog(payload)
    logger.info("Loaded %s shops from %s", len(catalog), path)
    return catalog


@lru_cache(maxsize=1)
def default_catalog() -> tuple[ShopCatalogEntry, ...]:
    return load_catalog(settings.catalog_path)


def find_shop(catalog: Iterable[ShopCatalogEntry], shop_id: str) -> ShopCatalogEntry | None:
    for shop in catalog:
        if shop.id == shop_id:
            return shop
    return None


__all__ = [
    "CatalogError",
    "build_catalog",
    "default_catalog",
    "entry_from_record",
    "find_shop",
    "load_catalog",
]
