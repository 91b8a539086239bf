"""
Rate Limits Router Tests

Resets are guarded by the X-Admin-Key header.
"""

from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from api import auth
from api.app import app
from api.dependency import get_alert_service

ADMIN_KEY = "test-admin-key"


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture(autouse=True)
def admin_key(monkeypatch):
    monkeypatch.setenv("HERALD_ADMIN_KEY", ADMIN_KEY)
    monkeypatch.setattr(auth, "_admin_auth", None)


@pytest.fixture
def alert_service():
    service = Mock()
    service.get_rate_limit_stats.return_value = {"system_wide": {"count": 3, "limit": 100}}
    app.dependency_overrides[get_alert_service] = lambda: service
    try:
        yield service
    finally:
        app.dependency_overrides.clear()


class TestRateLimitsRouter:
    def test_stats_are_public(self, client, alert_service):
        response = client.get("/api/rate-limits", params={"recipient": "ops@example.com"})

        assert response.status_code == 200
        assert response.json()["stats"]["system_wide"]["count"] == 3
        alert_service.get_rate_limit_stats.assert_called_once_with("ops@example.com")

    def test_reset_without_key_is_rejected(self, client, alert_service):
        response = client.post("/api/rate-limits/reset", json={"recipient": "ops@example.com"})

        assert response.status_code == 422
        alert_service.reset_rate_limit.assert_not_called()

    def test_reset_with_wrong_key_is_forbidden(self, client, alert_service):
        response = client.post(
            "/api/rate-limits/reset", json={"recipient": "ops@example.com"}, headers={"X-Admin-Key": "guess"}
        )

        assert response.status_code == 403
        alert_service.reset_rate_limit.assert_not_called()

    def test_reset_recipient(self, client, alert_service):
        response = client.post(
            "/api/rate-limits/reset", json={"recipient": "ops@example.com"}, headers={"X-Admin-Key": ADMIN_KEY}
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Rate limits reset for ops@example.com"
        alert_service.reset_rate_limit.assert_called_once_with("ops@example.com")

    def test_reset_system(self, client, alert_service):
        response = client.post("/api/rate-limits/reset-system", headers={"X-Admin-Key": ADMIN_KEY})

        assert response.status_code == 200
        alert_service.reset_system_rate_limit.assert_called_once()

    def test_entries_require_admin_key(self, client, alert_service):
        response = client.get("/api/rate-limits/entries", headers={"X-Admin-Key": "guess"})

        assert response.status_code == 403
        alert_service.get_rate_limit_entries.assert_not_called()

    def test_entries_dump(self, client, alert_service):
        alert_service.get_rate_limit_entries.return_value = {
            "system_wide": {"a1b2": {"count": 3, "reset_time": 1737800000.5}},
            "per_recipient": {},
        }

        response = client.get("/api/rate-limits/entries", headers={"X-Admin-Key": ADMIN_KEY})

        assert response.status_code == 200
        entries = response.json()["entries"]
        assert entries["system_wide"]["a1b2"] == {"count": 3, "reset_time": 1737800000.5}
        assert entries["per_recipient"] == {}

    def test_clear_all(self, client, alert_service):
        response = client.post("/api/rate-limits/clear", headers={"X-Admin-Key": ADMIN_KEY})

        assert response.status_code == 200
        assert response.json()["message"] == "All rate limit entries cleared"
        alert_service.clear_rate_limits.assert_called_once()
