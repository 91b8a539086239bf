import secrets
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from core.model.enum.alert_enum import AlertSeverity, AlertStatus, EmailStatus
from core.util.time_util import epoch_ms, utc_now_iso


def new_record_id(prefix: str) -> str:
    """
    Time-ordered identifier, e.g. alert_1737800000123_9f3a1c2e.
    Lexical order of ids follows creation order.
    """
    return f"{prefix}_{epoch_ms()}_{secrets.token_hex(4)}"


class AlertModel(BaseModel):
    model_config = ConfigDict(use_enum_values=False, extra="ignore")

    id: str = Field(default_factory=lambda: new_record_id("alert"))
    title: str
    message: str
    severity: AlertSeverity = AlertSeverity.INFO
    status: AlertStatus = AlertStatus.ACTIVE
    source: str = "System"
    metadata: dict[str, Any] = Field(default_factory=dict)

    timestamp: int = Field(default_factory=epoch_ms, description="Creation time (epoch ms)")
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)

    acknowledged: bool = False
    acknowledged_by: str | None = None
    acknowledged_at: str | None = None
    resolved_at: str | None = None


class EmailLogModel(BaseModel):
    """One delivery attempt for one recipient. Never mutated after creation."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=lambda: new_record_id("email"))
    alert_id: str
    recipient: str
    subject: str
    status: EmailStatus
    error_message: str | None = None
    message_id: str | None = None
    sent_at: str | None = None
    created_at: str = Field(default_factory=utc_now_iso)
