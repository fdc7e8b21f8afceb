"""HTTP tests for the shop listing, detail and search endpoints."""

from __future__ import annotations

from backend.clipper import query_interpreter
from backend.clipper.main import app
from backend.clipper.metrics import normalize_endpoint
from backend.clipper.query_interpreter import InterpreterError
from backend.clipper.schemas import InterpretedQuery
from backend.clipper.settings import settings


def _use_interpreter(payload=None, error=None):
    async def fake_interpret(query):
        if error is not None:
            raise error
        return InterpretedQuery.model_validate(payload or {})

    app.state.interpreter = fake_interpret


def _ids(body):
    return [item["id"] for item in body["results"]]


# ==============================================================================
# CATALOG ENDPOINTS
# ==============================================================================


class TestCatalogEndpoints:
    def test_list_shops(self, client):
        response = client.get("/v1/shops")
        assert response.status_code == 200
        body = response.json()
        assert [item["id"] for item in body] == ["1", "2", "3", "4", "5"]
        assert body[2]["starting_price"] == 18
        assert body[0]["cover_photo"]

    def test_get_shop(self, client):
        response = client.get("/v1/shops/5")
        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Urban Edge Barbers"
        assert len(body["availability"]) == 7

    def test_unknown_shop_is_404(self, client):
        response = client.get("/v1/shops/does-not-exist")
        assert response.status_code == 404
        assert response.json()["detail"] == "Shop not found"


# ==============================================================================
# SEARCH ENDPOINT
# ==============================================================================


class TestSearchEndpoint:
    def test_empty_search_lists_everything(self, client):
        response = client.post("/v1/shops/search", json={})
        assert response.status_code == 200
        body = response.json()
        assert body["result_count"] == 5
        assert body["summary"] == "Showing all shops."
        assert body["ai_failed"] is False
        assert body["parsed_filters"] is None

    def test_manual_filters_from_form_values(self, client):
        response = client.post(
            "/v1/shops/search",
            json={"filters": {"priceTier": "$$", "ratingMin": "Any Rating", "serviceName": "any"}},
        )
        body = response.json()
        assert _ids(body) == ["1", "5"]
        assert body["summary"] == "Manual filters applied."

    def test_ai_search(self, client):
        _use_interpreter(
            {
                "parsedFilters": {"serviceKeywords": ["keratin"]},
                "searchSummary": "Searching for keratin treatments.",
            }
        )
        body = client.post("/v1/shops/search", json={"query": "keratin treatment"}).json()
        assert _ids(body) == ["2"]
        assert body["summary"] == "Searching for keratin treatments."
        assert body["parsed_filters"]["service_keywords"] == ["keratin"]
        assert body["notice"] is None

    def test_ai_search_refined_by_manual_rating(self, client):
        _use_interpreter(
            {
                "parsedFilters": {"serviceKeywords": ["cut"], "rating": {"min": 3}},
                "searchSummary": "Searching for haircuts.",
            }
        )
        body = client.post(
            "/v1/shops/search", json={"query": "haircut", "filters": {"ratingMin": 4.85}}
        ).json()
        assert _ids(body) == ["4"]
        assert body["summary"] == "Searching for haircuts (refined with your manual filters)."

    def test_interpreter_failure_degrades_to_manual(self, client):
        _use_interpreter(error=InterpreterError("Invalid interpreter JSON"))
        response = client.post(
            "/v1/shops/search", json={"query": "asdf1234", "filters": {"priceTier": "$"}}
        )
        assert response.status_code == 200
        body = response.json()
        assert body["ai_failed"] is True
        assert _ids(body) == ["3"]
        assert body["summary"].startswith("AI search failed.")
        assert body["notice"]

    def test_clarification(self, client):
        _use_interpreter({"parsedFilters": {}, "clarificationNeeded": "Which service?"})
        body = client.post("/v1/shops/search", json={"query": "find a barber"}).json()
        assert body["result_count"] == 5
        assert body["clarification_needed"] == "Which service?"
        assert body["notice"] == "Which service?"

    def test_no_results(self, client):
        _use_interpreter({"parsedFilters": {"locationKeywords": ["atlantis"]}})
        body = client.post("/v1/shops/search", json={"query": "shops in atlantis"}).json()
        assert body["result_count"] == 0
        assert body["results"] == []
        assert body["notice"] == "No shops found. Try adjusting your filters."

    def test_invalid_price_tier_is_rejected(self, client):
        response = client.post("/v1/shops/search", json={"filters": {"priceTier": "$$$$"}})
        assert response.status_code == 422

    def test_overlong_query_is_rejected(self, client):
        response = client.post("/v1/shops/search", json={"query": "x" * 501})
        assert response.status_code == 422


# ==============================================================================
# OBSERVABILITY
# ==============================================================================


class TestObservability:
    def test_health_reports_interpreter_state(self, client, monkeypatch):
        body = client.get("/health").json()
        assert body["status"] == "healthy"
        assert body["checks"] == {"catalog": "ok", "interpreter": "disabled"}

        settings.OPENAI_API_KEY = "test-key"
        assert client.get("/health").json()["checks"]["interpreter"] == "ready"

        monkeypatch.setattr(query_interpreter, "_failure_count", settings.SHOP_SEARCH_MAX_FAILURES)
        monkeypatch.setattr(query_interpreter, "_disabled_until", float("inf"))
        assert client.get("/health").json()["checks"]["interpreter"] == "cooling_down"

    def test_health_degraded_without_catalog(self, client):
        app.state.catalog = ()
        response = client.get("/health")
        assert response.status_code == 503
        assert response.json()["status"] == "degraded"

    def test_metrics_endpoint(self, client):
        client.post("/v1/shops/search", json={"filters": {"location": "nowhere"}})
        response = client.get("/metrics")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        content = response.text
        assert "clipper_http_requests_total" in content
        assert 'shop_search_total{outcome="manual"}' in content
        assert "shop_search_results_empty_total" in content

    def test_request_id_and_security_headers(self, client):
        response = client.get("/v1/shops", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"

    def test_endpoint_normalization(self):
        assert normalize_endpoint("/v1/shops/3") == "/v1/shops/{id}"
        assert normalize_endpoint("/v1/shops/search") == "/v1/shops/search"
