"""
API Request Data Models

Defines input data structures for all API endpoints.
Rule bodies are passed through to AlertRuleService, which owns their validation.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from api.model.enums import AlertAction
from core.model.enum.alert_enum import AlertSeverity


class CreateAlertRequest(BaseModel):
    """Manual alert creation."""

    title: str = Field(..., min_length=1, examples=["Disk almost full"])
    message: str = Field(..., min_length=1)
    severity: AlertSeverity = Field(default=AlertSeverity.INFO)
    source: str = Field(default="System")
    metadata: dict[str, Any] = Field(default_factory=dict)
    send_email: bool = Field(default=False, alias="sendEmail")
    recipients: list[str] | None = Field(default=None)

    model_config = ConfigDict(populate_by_name=True)


class AcknowledgeAlertRequest(BaseModel):
    acknowledged_by: str = Field(default="admin", min_length=1, alias="acknowledgedBy")

    model_config = ConfigDict(populate_by_name=True)


class AlertActionRequest(BaseModel):
    """
    Attributes:
        action: transition to apply.
        acknowledged_by: required when action is acknowledge.
    """

    action: AlertAction
    acknowledged_by: str | None = Field(default=None, alias="acknowledgedBy")

    model_config = ConfigDict(populate_by_name=True)


class TestEmailRequest(BaseModel):
    recipient: str = Field(..., min_length=3, examples=["ops@example.com"])


class TriggerRequest(BaseModel):
    """Push-style evaluation of a metric value against every enabled rule on that metric."""

    metric: str = Field(..., min_length=1, examples=["error_rate"])
    value: float = Field(..., examples=[12.5])
    source: str = Field(default="System")


class AlertRuleRequest(BaseModel):
    """Create or replace body. Field-level validation happens in the rule service."""

    name: str | None = None
    description: str | None = None
    metric: str | None = None
    condition: str | None = None
    threshold: str | float | int | None = None
    notify: str | None = None
    channel: str | None = None
    enabled: bool | None = None

    model_config = ConfigDict(extra="ignore")

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ResetRateLimitRequest(BaseModel):
    recipient: str = Field(..., min_length=1)
