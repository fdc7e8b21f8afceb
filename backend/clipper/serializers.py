from __future__ import annotations

from typing import Any

from .contracts import ShopCatalogEntry


def _services(shop: ShopCatalogEntry) -> list[dict[str, Any]]:
    return [service.model_dump() for service in shop.services]


def shop_to_list_item(shop: ShopCatalogEntry) -> dict[str, Any]:
    prices = [service.price for service in shop.services]
    return {
        "id": shop.id,
        "name": shop.name,
        "address": shop.address,
        "rating": shop.rating,
        "price_tier": shop.price_tier,
        "description": shop.description,
        "cover_photo": shop.photos[0] if shop.photos else None,
        "google_maps_link": shop.google_maps_link,
        "services": _services(shop),
        "starting_price": min(prices) if prices else None,
    }


def shop_to_detail(shop: ShopCatalogEntry) -> dict[str, Any]:
    payload = shop_to_list_item(shop)
    payload["photos"] = list(shop.photos)
    payload["availability"] = [slot.model_dump() for slot in shop.availability]
    return payload
