from enum import StrEnum


class AlertSeverity(StrEnum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class AlertStatus(StrEnum):
    """
    Alert lifecycle:
    ACTIVE → ACKNOWLEDGED → RESOLVED (acknowledging is optional)
    """

    ACTIVE = "active"
    ACKNOWLEDGED = "acknowledged"
    RESOLVED = "resolved"


class EmailStatus(StrEnum):
    SENT = "sent"
    FAILED = "failed"
    PENDING = "pending"


class NotificationChannel(StrEnum):
    EMAIL = "email"
    SMS = "sms"


class TemplateKind(StrEnum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"
    RESOLVED = "resolved"
