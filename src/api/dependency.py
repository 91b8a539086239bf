"""FastAPI Dependency Injection

Services are resolved from the shared HeraldAppState so routers stay testable
through `app.dependency_overrides`.
"""

from fastapi import Request

from core.service.alert_rule_service import AlertRuleService
from core.service.alert_service import AlertService
from core.task.rule_monitor_task import AlertRuleMonitor


def get_alert_service(request: Request) -> AlertService:
    """Provide AlertService from app state."""
    return request.app.state.herald.get_alert_service()


def get_alert_rule_service(request: Request) -> AlertRuleService:
    """Provide AlertRuleService from app state."""
    return request.app.state.herald.get_alert_rule_service()


def get_monitor(request: Request) -> AlertRuleMonitor:
    """Provide the monitoring loop from app state."""
    return request.app.state.herald.get_monitor()
