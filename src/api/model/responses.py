"""
API Response Data Models

Defines output data structures for all API endpoints,
providing a unified response format.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from api.model.enums import ResponseStatus
from core.schema.alert_rule_schema import AlertRuleModel, RuleEvaluationState
from core.schema.alert_schema import AlertModel, EmailLogModel


class BaseResponse(BaseModel):
    """
    Base response model.

    The base class for all API responses,
    providing a unified response structure.
    """

    status: ResponseStatus = Field(..., description="Response status")
    timestamp: datetime = Field(default_factory=datetime.now, description="Response timestamp")
    message: str | None = Field(None, description="Additional message")


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int


class AlertResponse(BaseResponse):
    alert: AlertModel


class AlertListResponse(BaseResponse):
    alerts: list[AlertModel]
    pagination: Pagination


class EmailLogListResponse(BaseResponse):
    logs: list[EmailLogModel]
    pagination: Pagination


class EmailLogResponse(BaseResponse):
    log: EmailLogModel


class TriggerResponse(BaseResponse):
    """
    Attributes:
        rules_evaluated: enabled rules on the metric.
        alerts_triggered: rules whose condition held.
        emails_sent: successful deliveries across all triggered alerts.
    """

    metric: str
    value: float
    rules_evaluated: int
    alerts_triggered: int
    emails_sent: int
    triggered_alerts: list[dict[str, Any]]


class AlertRuleResponse(BaseResponse):
    rule: AlertRuleModel


class AlertRuleListResponse(BaseResponse):
    rules: list[AlertRuleModel]
    total: int


class RateLimitStatsResponse(BaseResponse):
    stats: dict[str, Any]


class RateLimitEntriesResponse(BaseResponse):
    entries: dict[str, dict[str, dict[str, Any]]]


class MonitorStatsResponse(BaseResponse):
    is_running: bool
    rules_monitored: int
    active_alerts: int
    total_triggers: int
    last_processed_log_id: int
    interval_seconds: float
    window_seconds: float


class RuleStatesResponse(BaseResponse):
    states: list[RuleEvaluationState]


class RuleStateResponse(BaseResponse):
    state: RuleEvaluationState
