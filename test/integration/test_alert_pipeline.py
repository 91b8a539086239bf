"""
End-to-end pipeline: log events → monitoring cycle → alert → email logs → resolution.

Runs on the in-memory store with a recording mail transport in place of SMTP.
"""

import pytest
import pytest_asyncio

from core.model.enum.alert_enum import AlertSeverity, AlertStatus, EmailStatus
from core.schema.notifier_schema import NotificationConfigSchema, SmtpConfig
from core.schema.system_config_schema import StoreConfig, SystemConfig
from core.util.factory.monitoring_factory import build_components, build_document_store, build_herald


@pytest.fixture
def system_config():
    return SystemConfig(MONITOR_INTERVAL_SECONDS=3600, STORE=StoreConfig(BACKEND="memory"))


@pytest.fixture
def notifier_config():
    return NotificationConfigSchema(
        email=SmtpConfig(enabled=False),
        default_recipients=["ops@example.com"],
    )


@pytest_asyncio.fixture
async def components(system_config, notifier_config, transport):
    store, db_manager = await build_document_store(system_config)
    wired = build_components(system_config, notifier_config, store, db_manager)
    wired.alert_service.dispatcher.transport = transport
    yield wired
    await wired.close()


async def insert_batch(components, make_error_batch, start_id: int, total: int, errors: int):
    for event in make_error_batch(start_id, total=total, errors=errors):
        await components.log_repository.insert(event)


@pytest.mark.asyncio
async def test_error_spike_fires_once_and_notifies_each_recipient(components, transport, make_error_batch):
    # GIVEN a rule on error_rate > 5% notifying two addresses
    rule = await components.alert_rule_service.create_rule(
        {
            "name": "Checkout error rate",
            "metric": "error_rate",
            "condition": "greater_than",
            "threshold": "5%",
            "notify": "oncall@example.com, sre@example.com",
        }
    )
    await components.monitor.on_start()

    # WHEN 12 of 100 new events are errors
    await insert_batch(components, make_error_batch, 1, total=100, errors=12)
    result = await components.monitor.run_cycle()

    # THEN one warning alert is created and each recipient gets one email
    assert result.alerts_fired == 1
    alerts, total = await components.alert_service.get_alerts()
    assert total == 1
    alert = alerts[0]
    assert alert.severity == AlertSeverity.WARNING
    assert alert.metadata["rule_id"] == rule.id

    logs, _ = await components.alert_service.get_email_logs(alert_id=alert.id)
    assert sorted(log.recipient for log in logs) == ["oncall@example.com", "sre@example.com"]
    assert all(log.status == EmailStatus.SENT for log in logs)
    assert all(log.subject == "WARNING: Alert: Checkout error rate" for log in logs)

    # WHEN the next batch is still above threshold
    await insert_batch(components, make_error_batch, 101, total=100, errors=7)
    second = await components.monitor.run_cycle()

    # THEN no new alert while the rule stays active
    assert second.alerts_fired == 0
    _, total = await components.alert_service.get_alerts()
    assert total == 1

    stats = await components.monitor.get_stats()
    assert stats["active_alerts"] == 1
    assert stats["total_triggers"] == 1
    assert stats["last_processed_log_id"] == 200


@pytest.mark.asyncio
async def test_resolution_notifies_default_recipients(components, transport):
    alert = await components.alert_service.create_alert(
        title="Disk full", message="node-1 at 97%", severity="critical", send_email=True
    )

    resolved = await components.alert_service.resolve_alert(alert.id)

    assert resolved.status == AlertStatus.RESOLVED
    assert [m["subject"] for m in transport.sent] == ["CRITICAL ALERT: Disk full", "RESOLVED: Disk full"]
    assert await components.alert_service.count_active() == 0


@pytest.mark.asyncio
async def test_deleting_rule_retires_state(components, make_error_batch):
    rule = await components.alert_rule_service.create_rule(
        {"name": "Errors", "metric": "error_count", "condition": ">=", "threshold": "1"}
    )
    await components.monitor.on_start()
    await insert_batch(components, make_error_batch, 1, total=5, errors=1)
    await components.monitor.run_cycle()
    assert await components.state_repository.get(rule.id) is not None

    await components.alert_rule_service.delete_rule(rule.id)

    assert await components.state_repository.get(rule.id) is None
    assert await components.monitor.get_rule_states() == []


@pytest.mark.asyncio
async def test_build_herald_on_sqlite(tmp_path, notifier_config):
    config = SystemConfig(STORE=StoreConfig(BACKEND="sqlite", DB_PATH=str(tmp_path / "herald.db")))

    herald = await build_herald(config, notifier_config)
    try:
        alert = await herald.alert_service.create_alert(title="Persisted", message="stored in sqlite")
        fetched = await herald.alert_service.get_alert(alert.id)

        assert fetched.title == "Persisted"
        assert herald.db_manager is not None
        assert herald.alert_service.dispatcher.transport is None
    finally:
        await herald.close()
