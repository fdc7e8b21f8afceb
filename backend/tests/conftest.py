import os
import sys
from pathlib import Path

import pytest
import sentry_sdk
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Disable outbound Sentry calls during tests
sentry_sdk.init = lambda *args, **kwargs: None  # type: ignore[assignment]
os.environ["SENTRY_DSN"] = ""
os.environ.pop("OPENAI_API_KEY", None)
os.environ.pop("CATALOG_PATH", None)

from backend.clipper import query_interpreter  # noqa: E402
from backend.clipper.catalog import default_catalog  # noqa: E402
from backend.clipper.contracts import ServiceOffering, ShopCatalogEntry  # noqa: E402
from backend.clipper.main import app  # noqa: E402
from backend.clipper.settings import settings  # noqa: E402


@pytest.fixture(scope="session")
def client() -> TestClient:
    return TestClient(app, base_url="http://api.testserver")


@pytest.fixture(autouse=True)
def reset_search_state(monkeypatch):
    settings.OPENAI_API_KEY = None
    settings.SENTRY_DSN = None
    monkeypatch.setattr(query_interpreter, "_failure_count", 0)
    monkeypatch.setattr(query_interpreter, "_disabled_until", 0.0)
    app.state.catalog = default_catalog()
    app.state.interpreter = None
    yield
    app.state.interpreter = None


@pytest.fixture
def catalog() -> tuple[ShopCatalogEntry, ...]:
    return default_catalog()


@pytest.fixture
def make_shop():
    counter = {"n": 0}

    def _make(
        *,
        name: str | None = None,
        address: str = "1 Main St, Anytown",
        rating: float | None = 4.0,
        price_tier: str | None = "$$",
        services: list[tuple[str, float] | tuple[str, float, str]] | None = None,
        description: str = "",
    ) -> ShopCatalogEntry:
        counter["n"] += 1
        offerings = []
        for index, offering in enumerate(services or []):
            service_name, price, *rest = offering
            offerings.append(
                ServiceOffering(
                    id=f"svc-{counter['n']}-{index}",
                    name=service_name,
                    price=price,
                    duration_minutes=30,
                    description=rest[0] if rest else None,
                )
            )
        return ShopCatalogEntry(
            id=f"shop-{counter['n']}",
            name=name or f"Shop {counter['n']}",
            address=address,
            rating=rating,
            price_tier=price_tier,
            services=tuple(offerings),
            description=description,
        )

    return _make
