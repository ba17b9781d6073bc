"""
Unit tests for the HTTP API (TestClient over a temporary JSON catalog)
"""

import json
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from fakes import SERVICE_RECORDS
from kcc_search import main
from kcc_search.exceptions import CatalogUnavailableError
from kcc_search.rate_limit import RateLimiter

pytestmark = pytest.mark.unit


@pytest.fixture
def client(tmp_path, monkeypatch):
    services_path = tmp_path / "services.json"
    services_path.write_text(json.dumps(SERVICE_RECORDS), encoding="utf-8")

    monkeypatch.setenv("SERVICES_JSON", str(services_path))
    monkeypatch.setenv("EMBEDDINGS_JSON", "")
    monkeypatch.setenv("EMBEDDING_ENABLED", "false")
    monkeypatch.setenv("QUERY_EXPANSION_ENABLED", "false")
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setattr(main, "rate_limiter", RateLimiter(limit=60))

    with TestClient(main.app) as test_client:
        yield test_client


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["catalog_loaded"] is True
        assert data["embedding_state"] == "disabled"

    def test_root(self, client):
        assert client.get("/").json()["status"] == "running"


class TestSearchEndpoint:
    def test_keyword_search(self, client):
        response = client.post("/v1/search/services", json={"query": "I am hungry"})
        assert response.status_code == 200

        body = response.json()
        assert body["data"][0]["id"] == "food-bank"
        assert body["data"][0]["match_reasons"]
        assert body["meta"]["status"] == "ok"
        assert response.headers["Cache-Control"] == "no-store"

    def test_filter_only_is_cacheable(self, client):
        response = client.post("/v1/search/services", json={"query": "", "filters": {"category": "Food"}})

        ids = [item["id"] for item in response.json()["data"]]
        assert ids == ["food-bank", "soup-kitchen", "unverified-pantry"]
        assert response.headers["Cache-Control"] == "public, s-maxage=60"

    def test_pagination(self, client):
        response = client.post("/v1/search/services", json={
            "filters": {"category": "Food"},
            "options": {"limit": 1, "offset": 1},
        })

        body = response.json()
        assert [item["id"] for item in body["data"]] == ["soup-kitchen"]
        assert body["meta"]["total"] == 3

    def test_no_results(self, client):
        body = client.post("/v1/search/services", json={"query": "xyz123foobar"}).json()
        assert body["data"] == []
        assert body["meta"]["status"] == "no_results"

    def test_crisis_first(self, client):
        body = client.post("/v1/search/services", json={"query": "emergency food"}).json()
        assert body["data"][0]["id"] == "crisis-line"
        assert body["data"][0]["crisis"] is True

    def test_distance_reported(self, client):
        body = client.post("/v1/search/services", json={
            "query": "",
            "filters": {"category": "Food"},
            "location": {"lat": 44.26, "lng": -76.55},
        }).json()
        assert body["data"][0]["id"] == "soup-kitchen"
        assert body["data"][0]["distance_km"] == 0.0

    @pytest.mark.parametrize("payload", [
        {"query": "food", "filters": {"category": "Groceries"}},
        {"query": "x" * 501},
        {"query": "food", "options": {"limit": 0}},
        {"query": "food", "locale": "de"},
    ])
    def test_invalid_request(self, client, payload):
        assert client.post("/v1/search/services", json=payload).status_code == 422

    def test_rate_limited(self, client, monkeypatch):
        monkeypatch.setattr(main, "rate_limiter", RateLimiter(limit=1))

        assert client.post("/v1/search/services", json={"query": "food"}).status_code == 200
        response = client.post("/v1/search/services", json={"query": "food"})

        assert response.status_code == 429
        assert response.headers["X-RateLimit-Limit"] == "1"
        assert response.headers["X-RateLimit-Remaining"] == "0"

    def test_catalog_unavailable(self, client, monkeypatch):
        monkeypatch.setattr(
            main.search_engine,
            "search_services",
            AsyncMock(side_effect=CatalogUnavailableError("all sources failed")),
        )

        response = client.post("/v1/search/services", json={"query": "food"})

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "30"
        body = response.json()
        assert body["data"] == []
        assert body["meta"]["status"] == "catalog_unavailable"


class TestOtherEndpoints:
    def test_embed_requires_query(self, client):
        assert client.post("/v1/embed", json={"query": "  "}).status_code == 400

    def test_embed_without_model(self, client):
        assert client.post("/v1/embed", json={"query": "food"}).status_code == 503

    def test_suggest(self, client):
        response = client.get("/v1/suggest", params={"q": "shleter"})
        assert response.json() == {"suggestion": "shelter"}

    def test_analytics_accepted(self, client):
        response = client.post("/v1/analytics/search", json={"category": "Food", "result_count": 3})
        assert response.status_code == 202
        assert response.json() == {"accepted": True}

    def test_analytics_validation(self, client):
        response = client.post("/v1/analytics/search", json={"result_count": -1})
        assert response.status_code == 422
