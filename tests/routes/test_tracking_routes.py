"""Tests for the tracking HTTP endpoints."""

import pytest
from fastapi.testclient import TestClient

from main import app
from models.provider import ProviderError, ProviderErrorKind


@pytest.fixture
def client_with(make_pipeline):
    """TestClient bound to a pipeline built around the given fake providers."""
    clients = []

    def _make(providers):
        app.state.pipeline = make_pipeline(providers)
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)
    del app.state.pipeline


class TestTrackEndpoint:
    def test_track_container(self, client_with, make_provider):
        client = client_with([make_provider("maersk", reliability=0.95)])

        response = client.get("/api/track/maeu-1234567")

        assert response.status_code == 200
        body = response.json()
        assert body["shipment"]["tracking_number"] == "MAEU1234567"
        assert body["shipment"]["tracking_type"] == "container"
        assert body["shipment"]["data_source"] == "maersk"
        assert body["providers"] == ["maersk"]
        assert body["from_cache"] is False

    def test_type_detected_as_booking(self, client_with, make_provider):
        client = client_with([make_provider("a")])

        body = client.get("/api/track/BK20240001").json()

        assert body["shipment"]["tracking_type"] == "booking"

    def test_routing_preferences(self, client_with, make_provider):
        client = client_with([make_provider("a")])

        body = client.get("/api/track/BK20240001", params={"user_tier": "free"}).json()

        assert body["strategy"] == "free_first"

    def test_invalid_tracking_number(self, client_with, make_provider):
        client = client_with([make_provider("a")])

        response = client.get("/api/track/AB")

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_TRACKING_NUMBER"

    def test_rate_limited_sets_retry_after(self, client_with, make_provider):
        client = client_with([make_provider("a", outcomes=[ProviderError.rate_limit("a", retry_after=45)])])

        response = client.get("/api/track/MAEU1234567")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "45"
        assert response.json()["detail"]["retryable"] is True

    def test_not_found(self, client_with, make_provider):
        client = client_with(
            [make_provider("a", outcomes=[ProviderError(kind=ProviderErrorKind.NOT_FOUND, provider_id="a")])]
        )

        response = client.get("/api/track/MAEU1234567")

        assert response.status_code == 404
        assert "Retry-After" not in response.headers

    def test_refresh_bypasses_cache(self, client_with, make_provider):
        provider = make_provider("a")
        client = client_with([provider])

        client.get("/api/track/MAEU1234567")
        body = client.get("/api/track/MAEU1234567/refresh").json()

        assert provider.calls == 2
        assert body["from_cache"] is False

    def test_search(self, client_with, make_provider):
        client = client_with([make_provider("a")])

        response = client.post("/api/track/search", json={"tracking_number": "MAEU1234567", "type": "container"})

        assert response.status_code == 200
        assert response.json()["shipment"]["tracking_number"] == "MAEU1234567"


class TestBatchEndpoint:
    def test_batch_reports_items_individually(self, client_with, make_provider):
        client = client_with([make_provider("a")])

        response = client.post(
            "/api/track/batch",
            json={"items": [{"tracking_number": "MAEU1234567"}, {"tracking_number": "!!"}], "user_tier": "premium"},
        )

        assert response.status_code == 200
        first, second = response.json()
        assert first["result"]["shipment"]["data_source"] == "a"
        assert second["error"]["code"] == "INVALID_TRACKING_NUMBER"

    def test_batch_requires_items(self, client_with, make_provider):
        client = client_with([make_provider("a")])

        assert client.post("/api/track/batch", json={"items": []}).status_code == 422


class TestAdminEndpoints:
    def test_providers(self, client_with, make_provider):
        client = client_with([make_provider("a"), make_provider("b")])

        body = client.get("/api/providers").json()

        assert set(body) == {"a", "b"}
        assert body["a"]["recent_failure_count"] == 0

    def test_cache_invalidate_and_stats(self, client_with, make_provider):
        client = client_with([make_provider("a")])
        client.get("/api/track/MAEU1234567")

        assert client.get("/api/cache/stats").json()["entries"] == 1

        body = client.delete("/api/cache/MAEU1234567").json()

        assert body == {"tracking_number": "MAEU1234567", "invalidated": ["container"]}
        assert client.get("/api/cache/stats").json()["entries"] == 0

    def test_health(self, client_with, make_provider):
        client = client_with([make_provider("a")])

        assert client.get("/health").json()["status"] == "healthy"
        assert client.get("/health/debug").json()["providers"]["adapters"] == ["a"]
