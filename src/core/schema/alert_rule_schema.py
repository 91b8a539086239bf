import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.model.enum.alert_enum import NotificationChannel
from core.model.enum.condition_enum import ConditionOperator
from core.util.time_util import utc_now_iso

EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")


def extract_emails(text: str | None) -> list[str]:
    """Pull every email address out of a free-text notify target, keeping order and dropping repeats."""
    if not text:
        return []
    return list(dict.fromkeys(EMAIL_PATTERN.findall(text)))


class AlertRuleModel(BaseModel):
    """
    Stored alert rule.

    Field values are kept as written by the operator; interpretation
    (threshold parsing, condition resolution) happens at evaluation time so a
    legacy or hand-edited document degrades to "never fires" instead of
    failing to load.
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    description: str | None = None
    metric: str
    condition: str
    threshold: str
    notify: str = ""
    channel: str = NotificationChannel.EMAIL.value
    enabled: bool = True
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)

    @field_validator("threshold", mode="before")
    @classmethod
    def coerce_threshold(cls, v):
        if isinstance(v, (int, float)):
            return str(v)
        return v

    @property
    def recipients(self) -> list[str]:
        return extract_emails(self.notify)

    @property
    def sends_email(self) -> bool:
        return self.channel == NotificationChannel.EMAIL


class AlertRuleInput(BaseModel):
    """Operator-supplied rule definition, validated before any state change."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    name: str = Field(..., min_length=1)
    description: str | None = None
    metric: str = Field(..., min_length=1)
    condition: str
    threshold: str = Field(..., min_length=1)
    notify: str = ""
    channel: NotificationChannel = NotificationChannel.EMAIL
    enabled: bool = True

    @field_validator("metric")
    @classmethod
    def normalize_metric(cls, v: str) -> str:
        return v.lower()

    @field_validator("condition")
    @classmethod
    def validate_condition(cls, v: str) -> str:
        if ConditionOperator.parse(v) is None:
            raise ValueError(f"Unknown condition: {v!r}")
        return v

    @field_validator("threshold", mode="before")
    @classmethod
    def coerce_threshold(cls, v):
        if isinstance(v, (int, float)):
            return str(v)
        return v

    @field_validator("channel", mode="before")
    @classmethod
    def normalize_channel(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v


class RuleEvaluationState(BaseModel):
    """Hysteresis latch and last observation for one rule."""

    model_config = ConfigDict(extra="ignore")

    rule_id: str
    current_value: float = 0.0
    is_active: bool = False
    last_triggered_at: str | None = None
    trigger_count: int = Field(default=0, ge=0)
    window_start: str | None = None
    updated_at: str = Field(default_factory=utc_now_iso)
