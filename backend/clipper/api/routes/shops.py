from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from ...catalog import default_catalog, find_shop
from ...contracts import ShopCatalogEntry, ShopDetail, ShopListItem
from ...schemas import ShopSearchRequest, ShopSearchResponse
from ...serializers import shop_to_detail, shop_to_list_item
from ...shop_search import search_async

router = APIRouter(tags=["shops"])


def _catalog(request: Request) -> tuple[ShopCatalogEntry, ...]:
    # loaded once at startup; tests may swap it on app.state
    catalog = getattr(request.app.state, "catalog", None)
    if catalog is None:
        catalog = default_catalog()
        request.app.state.catalog = catalog
    return catalog


@router.get("/shops", response_model=list[ShopListItem])
def list_shops(request: Request):
    return [shop_to_list_item(shop) for shop in _catalog(request)]


@router.get("/shops/{shop_id}", response_model=ShopDetail)
def get_shop(shop_id: str, request: Request):
    shop = find_shop(_catalog(request), shop_id)
    if shop is None:
        raise HTTPException(404, "Shop not found")
    return shop_to_detail(shop)


@router.post("/shops/search", response_model=ShopSearchResponse)
async def search_shops(payload: ShopSearchRequest, request: Request) -> ShopSearchResponse:
    interpreter = getattr(request.app.state, "interpreter", None)
    outcome = await search_async(
        _catalog(request), payload.query, payload.filters, interpreter=interpreter
    )
    return ShopSearchResponse(
        results=[ShopListItem(**shop_to_list_item(shop)) for shop in outcome.results],
        summary=outcome.summary,
        result_count=len(outcome.results),
        clarification_needed=outcome.clarification_needed,
        ai_failed=outcome.ai_failed,
        notice=outcome.notice,
        parsed_filters=(
            outcome.parsed_filters.model_dump(exclude_none=True)
            if outcome.parsed_filters is not None
            else None
        ),
    )
