#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from pydantic import ValidationError

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.clipper.catalog import CatalogError, default_catalog, load_catalog  # noqa: E402
from backend.clipper.schemas import ManualFilters  # noqa: E402
from backend.clipper.serializers import shop_to_list_item  # noqa: E402
from backend.clipper.shop_search import search  # noqa: E402


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Search the barbershop catalog.")
    parser.add_argument("query", nargs="?", default="", help="Free-text search, e.g. 'cheap fade'")
    parser.add_argument("--service-name", help="Exact service name a shop must offer")
    parser.add_argument("--rating-min", help="Minimum star rating")
    parser.add_argument("--price-tier", help="One of $, $$, $$$")
    parser.add_argument("--search-term", help="Text to find in shop name or description")
    parser.add_argument("--location", help="Text to find in the shop address")
    parser.add_argument("--catalog", type=Path, help="Shop catalog JSON (defaults to bundled data)")
    parser.add_argument("--json", action="store_true", help="Emit JSON instead of text")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        manual = ManualFilters(
            service_name=args.service_name,
            rating_min=args.rating_min,
            price_tier=args.price_tier,
            search_term=args.search_term,
            location=args.location,
        )
    except ValidationError as exc:
        parser.error(f"invalid filter: {exc.errors()[0]['msg']}")
    try:
        catalog = load_catalog(args.catalog) if args.catalog else default_catalog()
    except CatalogError as exc:
        parser.error(str(exc))

    outcome = search(catalog, args.query, manual)

    if args.json:
        payload = {
            "summary": outcome.summary,
            "notice": outcome.notice,
            "ai_failed": outcome.ai_failed,
            "clarification_needed": outcome.clarification_needed,
            "dimensions": outcome.dimensions,
            "results": [shop_to_list_item(shop) for shop in outcome.results],
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return 0

    print(outcome.summary)
    if outcome.notice:
        print(outcome.notice)
    for shop in outcome.results:
        rating = f"{shop.rating:.1f}" if shop.rating is not None else "-"
        print(f"  [{shop.id}] {shop.name} ({shop.price_tier or '?'}, {rating}) {shop.address}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
