"""Tests for the HTTP trigger endpoints."""

from dataclasses import replace
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from moltnet.main import create_app


@pytest.fixture
def client(config):
    with TestClient(create_app(config)) as test_client:
        yield test_client


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestCollectRoute:

    def test_success_returns_summary(self, client):
        summary = {"success": True, "duration": 1.5, "comments_collected": 12}
        with patch("moltnet.web.routes.run_collection_cycle", AsyncMock(return_value=summary)) as run:
            response = client.post("/api/collect")

        assert response.status_code == 200
        assert response.json() == summary
        run.assert_awaited_once()

    def test_get_is_accepted_for_cron(self, client):
        with patch("moltnet.web.routes.run_collection_cycle", AsyncMock(return_value={"success": True})):
            response = client.get("/api/collect")

        assert response.status_code == 200

    def test_failure_returns_500(self, client):
        failure = {"success": False, "error": "Moltbook API error: 503 on /submolts"}
        with patch("moltnet.web.routes.run_collection_cycle", AsyncMock(return_value=failure)):
            response = client.post("/api/collect")

        assert response.status_code == 500
        assert response.json()["error"].startswith("Moltbook API error")


class TestSnapshotRoutes:

    def test_cron_full(self, client):
        result = {"success": True, "submolts_collected": 20, "top_posts_collected": 20}
        with patch("moltnet.web.routes.run_snapshot_cycle", AsyncMock(return_value=result)):
            response = client.post("/api/cron-full")

        assert response.status_code == 200
        assert response.json()["submolts_collected"] == 20

    def test_cleanup_runs_against_database(self, client):
        response = client.post("/api/cleanup")

        assert response.status_code == 200
        assert response.json() == {"success": True, "deleted": 0}


class TestCronSecret:

    @pytest.fixture
    def secured_client(self, config):
        with TestClient(create_app(replace(config, CRON_SECRET="s3cret"))) as test_client:
            yield test_client

    def test_missing_secret_is_rejected(self, secured_client):
        with patch("moltnet.web.routes.run_collection_cycle", AsyncMock()) as run:
            response = secured_client.post("/api/collect")

        assert response.status_code == 401
        run.assert_not_awaited()

    def test_valid_secret_is_accepted(self, secured_client):
        with patch("moltnet.web.routes.run_collection_cycle", AsyncMock(return_value={"success": True})):
            response = secured_client.post(
                "/api/collect", headers={"Authorization": "Bearer s3cret"}
            )

        assert response.status_code == 200

    def test_health_needs_no_secret(self, secured_client):
        assert secured_client.get("/health").status_code == 200


def test_startup_requires_api_key(config):
    app = create_app(replace(config, MOLTBOOK_API_KEY=""))

    with pytest.raises(ValueError):
        with TestClient(app):
            pass


def test_app_factory_configures_logging(config):
    with patch("moltnet.main.configure_logging") as configure:
        create_app(config)

    configure.assert_called_once_with(config)
