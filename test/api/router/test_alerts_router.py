"""
Alerts Router Tests

Tests for alert endpoints:
- GET/POST /api/alerts
- GET/PUT/DELETE /api/alerts/{alert_id}
- POST /api/alerts/{alert_id}/acknowledge, /resolve
- GET /api/alerts/email-logs, POST /api/alerts/test-email, POST /api/alerts/trigger
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from api.app import app
from api.dependency import get_alert_rule_service, get_alert_service
from core.model.enum.alert_enum import AlertSeverity, AlertStatus, EmailStatus
from core.schema.alert_schema import AlertModel, EmailLogModel
from core.service.alert_rule_service import TriggerResult
from exception import AlertNotFoundError, CollaboratorTimeoutError, InputValidationError


def make_alert(**overrides) -> AlertModel:
    fields = {"id": "alert_1737800000000_deadbeef", "title": "Disk full", "message": "node-1 at 97%"}
    fields.update(overrides)
    return AlertModel(**fields)


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def mock_alert_service():
    service = AsyncMock()
    service.get_alerts.return_value = ([make_alert()], 1)
    service.get_alert.return_value = make_alert()
    service.create_alert.return_value = make_alert(severity=AlertSeverity.CRITICAL)
    service.get_email_logs.return_value = ([], 0)
    return service


@pytest.fixture
def override_alert_service(mock_alert_service):
    app.dependency_overrides[get_alert_service] = lambda: mock_alert_service
    try:
        yield mock_alert_service
    finally:
        app.dependency_overrides.clear()


class TestListAlerts:
    def test_default_paging(self, client, override_alert_service):
        response = client.get("/api/alerts")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "success"
        assert data["alerts"][0]["id"] == "alert_1737800000000_deadbeef"
        assert data["pagination"] == {"total": 1, "limit": 50, "offset": 0}
        override_alert_service.get_alerts.assert_awaited_once_with(
            search=None, severity=None, status=None, limit=50, offset=0
        )

    def test_filters_are_forwarded(self, client, override_alert_service):
        client.get("/api/alerts", params={"search": "disk", "severity": "critical", "status": "active", "limit": 5})

        override_alert_service.get_alerts.assert_awaited_once_with(
            search="disk", severity="critical", status="active", limit=5, offset=0
        )

    def test_limit_above_maximum_is_rejected(self, client, override_alert_service):
        response = client.get("/api/alerts", params={"limit": 1000})

        assert response.status_code == 422
        assert response.json()["status"] == "error"
        override_alert_service.get_alerts.assert_not_awaited()

    def test_invalid_filter_maps_to_400(self, client, override_alert_service):
        override_alert_service.get_alerts.side_effect = InputValidationError("Unknown status: 'snoozed'", field="status")

        response = client.get("/api/alerts", params={"status": "snoozed"})

        assert response.status_code == 400
        assert response.json()["field"] == "status"

    def test_store_timeout_maps_to_503(self, client, override_alert_service):
        override_alert_service.get_alerts.side_effect = CollaboratorTimeoutError("query alerts timed out", "query")

        response = client.get("/api/alerts")

        assert response.status_code == 503


class TestCreateAlert:
    def test_create_with_email(self, client, override_alert_service):
        response = client.post(
            "/api/alerts",
            json={
                "title": "Disk full",
                "message": "node-1 at 97%",
                "severity": "critical",
                "sendEmail": True,
                "recipients": ["dba@example.com"],
            },
        )

        assert response.status_code == 201
        assert response.json()["alert"]["severity"] == "critical"
        kwargs = override_alert_service.create_alert.await_args.kwargs
        assert kwargs["send_email"] is True
        assert kwargs["recipients"] == ["dba@example.com"]
        assert kwargs["severity"] == AlertSeverity.CRITICAL

    def test_missing_title_is_rejected(self, client, override_alert_service):
        response = client.post("/api/alerts", json={"message": "no title"})

        assert response.status_code == 422
        assert any(error["field"] == "body.title" for error in response.json()["errors"])

    def test_unknown_severity_is_rejected(self, client, override_alert_service):
        response = client.post("/api/alerts", json={"title": "x", "message": "y", "severity": "catastrophic"})

        assert response.status_code == 422


class TestSingleAlert:
    def test_get_not_found(self, client, override_alert_service):
        override_alert_service.get_alert.side_effect = AlertNotFoundError("Alert not found: nope", record_id="nope")

        response = client.get("/api/alerts/nope")

        assert response.status_code == 404
        assert response.json() == {"status": "error", "message": "Alert not found: nope"}

    def test_put_acknowledge(self, client, override_alert_service):
        override_alert_service.acknowledge_alert.return_value = make_alert(
            status=AlertStatus.ACKNOWLEDGED, acknowledged=True, acknowledged_by="alice"
        )

        response = client.put(
            "/api/alerts/alert_1737800000000_deadbeef", json={"action": "acknowledge", "acknowledgedBy": "alice"}
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Alert acknowledged"
        assert response.json()["alert"]["acknowledged_by"] == "alice"
        override_alert_service.acknowledge_alert.assert_awaited_once_with("alert_1737800000000_deadbeef", "alice")

    def test_put_acknowledge_requires_actor(self, client, override_alert_service):
        response = client.put("/api/alerts/alert_1", json={"action": "acknowledge"})

        assert response.status_code == 400
        assert response.json()["field"] == "acknowledged_by"
        override_alert_service.acknowledge_alert.assert_not_awaited()

    def test_put_resolve(self, client, override_alert_service):
        override_alert_service.resolve_alert.return_value = make_alert(status=AlertStatus.RESOLVED)

        response = client.put("/api/alerts/alert_1", json={"action": "resolve"})

        assert response.json()["message"] == "Alert resolved"
        assert response.json()["alert"]["status"] == "resolved"

    def test_put_unknown_action(self, client, override_alert_service):
        response = client.put("/api/alerts/alert_1", json={"action": "snooze"})

        assert response.status_code == 422

    def test_acknowledge_without_body_defaults_to_admin(self, client, override_alert_service):
        override_alert_service.acknowledge_alert.return_value = make_alert(status=AlertStatus.ACKNOWLEDGED)

        response = client.post("/api/alerts/alert_1/acknowledge")

        assert response.status_code == 200
        override_alert_service.acknowledge_alert.assert_awaited_once_with("alert_1", "admin")

    def test_illegal_transition_maps_to_400(self, client, override_alert_service):
        override_alert_service.resolve_alert.side_effect = InputValidationError(
            "Alert alert_1 is already resolved", field="status"
        )

        response = client.post("/api/alerts/alert_1/resolve")

        assert response.status_code == 400
        assert response.json()["message"] == "Alert alert_1 is already resolved"

    def test_delete(self, client, override_alert_service):
        response = client.delete("/api/alerts/alert_1")

        assert response.status_code == 200
        assert response.json()["message"] == "Alert alert_1 deleted"
        override_alert_service.delete_alert.assert_awaited_once_with("alert_1")


class TestEmail:
    def test_email_logs_route_is_not_an_alert_id(self, client, override_alert_service):
        response = client.get("/api/alerts/email-logs", params={"alert_id": "alert_1"})

        assert response.status_code == 200
        override_alert_service.get_email_logs.assert_awaited_once_with(alert_id="alert_1", limit=50, offset=0)
        override_alert_service.get_alert.assert_not_awaited()

    def test_failed_test_email_reports_reason(self, client, override_alert_service):
        override_alert_service.send_test_email.return_value = EmailLogModel(
            alert_id="test_1",
            recipient="qa@example.com",
            subject="INFO: Test Alert",
            status=EmailStatus.FAILED,
            error_message="Rate limit exceeded: Test email rate limit exceeded",
        )

        response = client.post("/api/alerts/test-email", json={"recipient": "qa@example.com"})

        assert response.status_code == 200
        assert response.json()["status"] == "failed"
        assert response.json()["message"] == "Rate limit exceeded: Test email rate limit exceeded"


class TestTrigger:
    def test_trigger_summary(self, client):
        rule_service = AsyncMock()
        rule_service.trigger.return_value = TriggerResult(
            metric="error_rate",
            value=12.0,
            source="System",
            rules_evaluated=2,
            alerts_triggered=1,
            emails_sent=1,
            triggered_alerts=[{"rule_id": "rule_1", "alert_id": "alert_1", "severity": "warning"}],
        )
        app.dependency_overrides[get_alert_rule_service] = lambda: rule_service

        try:
            response = client.post("/api/alerts/trigger", json={"metric": "error_rate", "value": 12})

            assert response.status_code == 200
            data = response.json()
            assert data["message"] == "Processed 2 rules, triggered 1 alerts"
            assert data["alerts_triggered"] == 1
            rule_service.trigger.assert_awaited_once_with("error_rate", 12.0, source="System")
        finally:
            app.dependency_overrides.clear()

    def test_trigger_requires_numeric_value(self, client):
        rule_service = AsyncMock()
        app.dependency_overrides[get_alert_rule_service] = lambda: rule_service

        try:
            response = client.post("/api/alerts/trigger", json={"metric": "error_rate", "value": "high"})

            assert response.status_code == 422
            rule_service.trigger.assert_not_awaited()
        finally:
            app.dependency_overrides.clear()


class TestNotReady:
    def test_without_components_returns_503(self, client):
        response = client.get("/api/alerts")

        assert response.status_code == 503
        assert response.json()["message"] == "Herald components not initialized"
