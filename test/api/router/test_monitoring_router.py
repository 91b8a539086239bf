"""
Monitoring Router Tests

- GET /api/monitoring/stats, /rule-states
- POST /api/monitoring/start, /stop, /run-cycle
- POST /api/monitoring/rule-states/{rule_id}/reset
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from api.app import app
from api.dependency import get_monitor
from core.schema.alert_rule_schema import RuleEvaluationState
from core.task.rule_monitor_task import AlertRuleMonitor, CycleResult


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def monitor():
    mock = AsyncMock(spec=AlertRuleMonitor)
    mock.is_running = False
    mock.is_stopping = False
    mock.evaluator = None
    mock.get_stats.return_value = {
        "is_running": False,
        "rules_monitored": 2,
        "active_alerts": 1,
        "total_triggers": 5,
        "last_processed_log_id": 120,
        "interval_seconds": 30.0,
        "window_seconds": 300.0,
    }
    mock.get_rule_states.return_value = [RuleEvaluationState(rule_id="rule_1", is_active=True, trigger_count=5)]
    mock.reset_rule_state.return_value = RuleEvaluationState(rule_id="rule_1")
    app.dependency_overrides[get_monitor] = lambda: mock
    try:
        yield mock
    finally:
        app.dependency_overrides.clear()


class TestMonitoringRouter:
    def test_stats(self, client, monitor):
        response = client.get("/api/monitoring/stats")

        assert response.status_code == 200
        data = response.json()
        assert data["rules_monitored"] == 2
        assert data["last_processed_log_id"] == 120

    def test_rule_states(self, client, monitor):
        response = client.get("/api/monitoring/rule-states")

        assert response.json()["states"][0]["rule_id"] == "rule_1"
        assert response.json()["states"][0]["is_active"] is True

    def test_start_when_stopped(self, client, monitor):
        response = client.post("/api/monitoring/start")

        assert response.json()["message"] == "Monitoring started"
        monitor.start.assert_called_once()

    def test_start_when_running_is_idempotent(self, client, monitor):
        monitor.is_running = True

        response = client.post("/api/monitoring/start")

        assert response.json()["message"] == "Monitoring already running"
        monitor.start.assert_not_called()

    def test_stop_when_running(self, client, monitor):
        monitor.is_running = True

        response = client.post("/api/monitoring/stop")

        assert response.json()["message"] == "Monitoring stopped"
        monitor.stop.assert_awaited_once()

    def test_start_while_stopping_conflicts(self, client, monitor):
        monitor.is_stopping = True

        response = client.post("/api/monitoring/start")

        assert response.status_code == 409
        monitor.start.assert_not_called()

    def test_stop_while_stopping_waits_for_pending_stop(self, client, monitor):
        monitor.is_stopping = True

        response = client.post("/api/monitoring/stop")

        assert response.json()["message"] == "Monitoring stopped"
        monitor.stop.assert_awaited_once()

    def test_stop_when_stopped(self, client, monitor):
        response = client.post("/api/monitoring/stop")

        assert response.json()["message"] == "Monitoring already stopped"
        monitor.stop.assert_not_awaited()

    def test_run_cycle_requires_running_loop(self, client, monitor):
        response = client.post("/api/monitoring/run-cycle")

        assert response.status_code == 409
        monitor.run_cycle.assert_not_awaited()

    def test_run_cycle(self, client, monitor):
        monitor.evaluator = object()
        monitor.run_cycle.return_value = CycleResult(skipped="no new log events")

        response = client.post("/api/monitoring/run-cycle")

        assert response.status_code == 200
        assert response.json()["message"] == "Cycle skipped: no new log events"

    def test_reset_rule_state(self, client, monitor):
        response = client.post("/api/monitoring/rule-states/rule_1/reset")

        assert response.status_code == 200
        assert response.json()["state"]["trigger_count"] == 0
        monitor.reset_rule_state.assert_awaited_once_with("rule_1")
