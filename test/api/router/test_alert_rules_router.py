"""
Alert Rules Router Tests

- GET/POST /api/alert-rules
- GET/PUT/DELETE /api/alert-rules/{rule_id}
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from api.app import app
from api.dependency import get_alert_rule_service
from core.schema.alert_rule_schema import AlertRuleModel
from exception import InputValidationError, RuleNotFoundError


def make_rule(**overrides) -> AlertRuleModel:
    fields = {
        "id": "rule_1737800000000_cafe",
        "name": "High error rate",
        "metric": "error_rate",
        "condition": "greater_than",
        "threshold": "5%",
        "notify": "oncall@example.com",
    }
    fields.update(overrides)
    return AlertRuleModel(**fields)


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def rule_service():
    service = AsyncMock()
    service.list_rules.return_value = ([make_rule()], 1)
    service.get_rule.return_value = make_rule()
    service.create_rule.return_value = make_rule()
    service.update_rule.return_value = make_rule(threshold="10%")
    app.dependency_overrides[get_alert_rule_service] = lambda: service
    try:
        yield service
    finally:
        app.dependency_overrides.clear()


class TestAlertRulesRouter:
    def test_list_with_enabled_filter(self, client, rule_service):
        response = client.get("/api/alert-rules", params={"enabled": "true"})

        assert response.status_code == 200
        assert response.json()["total"] == 1
        assert response.json()["rules"][0]["name"] == "High error rate"
        rule_service.list_rules.assert_awaited_once_with(enabled=True, limit=None, offset=0)

    def test_create_passes_only_supplied_fields(self, client, rule_service):
        response = client.post(
            "/api/alert-rules",
            json={"name": "High error rate", "metric": "error_rate", "condition": ">", "threshold": 5},
        )

        assert response.status_code == 201
        rule_service.create_rule.assert_awaited_once_with(
            {"name": "High error rate", "metric": "error_rate", "condition": ">", "threshold": 5}
        )

    def test_create_validation_failure_maps_to_400(self, client, rule_service):
        rule_service.create_rule.side_effect = InputValidationError("Invalid alert rule: condition: Unknown condition")

        response = client.post("/api/alert-rules", json={"name": "x", "metric": "error_rate", "condition": "~"})

        assert response.status_code == 400
        assert response.json()["message"].startswith("Invalid alert rule")

    def test_get_unknown_rule(self, client, rule_service):
        rule_service.get_rule.side_effect = RuleNotFoundError("Alert rule not found: rule_x", record_id="rule_x")

        response = client.get("/api/alert-rules/rule_x")

        assert response.status_code == 404

    def test_update(self, client, rule_service):
        response = client.put("/api/alert-rules/rule_1737800000000_cafe", json={"threshold": "10%"})

        assert response.status_code == 200
        assert response.json()["rule"]["threshold"] == "10%"
        rule_service.update_rule.assert_awaited_once_with("rule_1737800000000_cafe", {"threshold": "10%"})

    def test_delete(self, client, rule_service):
        response = client.delete("/api/alert-rules/rule_1")

        assert response.status_code == 200
        assert response.json()["message"] == "Alert rule rule_1 deleted"
        rule_service.delete_rule.assert_awaited_once_with("rule_1")
