"""
Alert Lifecycle Service

Creates, acknowledges, resolves and deletes alerts, and triggers
notification dispatch on creation and resolution.
"""

import logging
import re
from typing import Any

from core.model.enum.alert_enum import AlertSeverity, AlertStatus, TemplateKind
from core.schema.alert_schema import AlertModel, EmailLogModel, new_record_id
from core.util.notifier.dispatcher import NotificationDispatcher
from core.util.rate_limiter import EmailRateLimiter
from core.util.time_util import utc_now_iso
from exception import AlertNotFoundError, InputValidationError
from repository.alert_repository import AlertRepository, EmailLogRepository

_ADDRESS_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MAX_PAGE_SIZE = 500


class AlertService:
    def __init__(
        self,
        alert_repository: AlertRepository,
        email_log_repository: EmailLogRepository,
        dispatcher: NotificationDispatcher,
        rate_limiter: EmailRateLimiter,
        default_recipients: list[str] | None = None,
    ):
        self.alert_repository = alert_repository
        self.email_log_repository = email_log_repository
        self.dispatcher = dispatcher
        self.rate_limiter = rate_limiter
        self.default_recipients: list[str] = list(default_recipients or [])
        self.logger = logging.getLogger("AlertService")

    # ----------------------------------------------------------------------
    # Lifecycle
    # ----------------------------------------------------------------------
    async def create_alert(
        self,
        title: str,
        message: str,
        severity: AlertSeverity | str = AlertSeverity.INFO,
        source: str = "System",
        metadata: dict[str, Any] | None = None,
        send_email: bool = False,
        recipients: list[str] | None = None,
    ) -> AlertModel:
        """
        Write the alert, then (when requested) deliver it to every resolved recipient.

        Delivery outcomes land in the email log; a delivery failure never
        propagates to the caller nor undoes the alert.
        """
        if not title or not title.strip():
            raise InputValidationError("Alert title is required", field="title")
        if not message or not message.strip():
            raise InputValidationError("Alert message is required", field="message")

        alert = AlertModel(
            title=title.strip(),
            message=message,
            severity=self._parse_severity(severity),
            source=source or "System",
            metadata=metadata or {},
        )
        await self.alert_repository.save(alert)
        self.logger.info(f"[ALERT] Created {alert.id} [{alert.severity}] {alert.title}")

        if send_email:
            targets = self.resolve_recipients(recipients)
            if targets:
                try:
                    await self.dispatcher.dispatch(alert, targets)
                except Exception as e:
                    self.logger.error(f"[ALERT] Dispatch for {alert.id} failed: {e}")
            else:
                self.logger.info(f"[ALERT] {alert.id}: email requested but no recipients resolved")

        return alert

    async def acknowledge_alert(self, alert_id: str, acknowledged_by: str) -> AlertModel:
        alert = await self.get_alert(alert_id)

        if alert.status == AlertStatus.RESOLVED:
            raise InputValidationError(f"Alert {alert_id} is resolved and cannot be acknowledged", field="status")
        if alert.status == AlertStatus.ACKNOWLEDGED:
            raise InputValidationError(f"Alert {alert_id} is already acknowledged", field="status")

        now = utc_now_iso()
        alert.status = AlertStatus.ACKNOWLEDGED
        alert.acknowledged = True
        alert.acknowledged_by = acknowledged_by or "unknown"
        alert.acknowledged_at = now
        alert.updated_at = now
        await self.alert_repository.save(alert)

        self.logger.info(f"[ALERT] {alert_id} acknowledged by {alert.acknowledged_by}")
        return alert

    async def resolve_alert(self, alert_id: str) -> AlertModel:
        alert = await self.get_alert(alert_id)

        if alert.status == AlertStatus.RESOLVED:
            raise InputValidationError(f"Alert {alert_id} is already resolved", field="status")

        now = utc_now_iso()
        alert.status = AlertStatus.RESOLVED
        alert.resolved_at = now
        alert.updated_at = now
        await self.alert_repository.save(alert)
        self.logger.info(f"[ALERT] {alert_id} resolved")

        if self.default_recipients:
            try:
                # Own per-alert key so the original notification does not block the resolution notice
                await self.dispatcher.dispatch(
                    alert, self.default_recipients, kind=TemplateKind.RESOLVED, rate_key=f"{alert.id}:resolved"
                )
            except Exception as e:
                self.logger.error(f"[ALERT] Resolution notice for {alert_id} failed: {e}")

        return alert

    async def delete_alert(self, alert_id: str) -> None:
        await self.get_alert(alert_id)
        await self.alert_repository.delete(alert_id)
        self.logger.info(f"[ALERT] {alert_id} deleted")

    # ----------------------------------------------------------------------
    # Queries
    # ----------------------------------------------------------------------
    async def get_alert(self, alert_id: str) -> AlertModel:
        alert = await self.alert_repository.get(alert_id)
        if alert is None:
            raise AlertNotFoundError(f"Alert not found: {alert_id}", record_id=alert_id)
        return alert

    async def get_alerts(
        self,
        search: str | None = None,
        severity: str | None = None,
        status: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[AlertModel], int]:
        """Newest first."""
        parsed_severity = self._parse_severity(severity) if severity else None
        parsed_status = self._parse_status(status) if status else None
        limit, offset = self._page(limit, offset)

        return await self.alert_repository.find(
            search=search, severity=parsed_severity, status=parsed_status, limit=limit, offset=offset
        )

    async def count_active(self) -> int:
        return await self.alert_repository.count_by_status(AlertStatus.ACTIVE)

    async def get_email_logs(
        self, alert_id: str | None = None, limit: int = 50, offset: int = 0
    ) -> tuple[list[EmailLogModel], int]:
        limit, offset = self._page(limit, offset)
        return await self.email_log_repository.find(alert_id=alert_id, limit=limit, offset=offset)

    # ----------------------------------------------------------------------
    # Notifications & rate limits
    # ----------------------------------------------------------------------
    def resolve_recipients(self, recipients: list[str] | None) -> list[str]:
        """Explicit list when it has any address, otherwise the configured defaults."""
        explicit = [r.strip() for r in (recipients or []) if r and r.strip()]
        return list(dict.fromkeys(explicit or self.default_recipients))

    async def send_test_email(self, recipient: str) -> EmailLogModel:
        """Send the info template to one address, counted against the test-email tier. Not stored as an alert."""
        recipient = (recipient or "").strip()
        if not _ADDRESS_PATTERN.match(recipient):
            raise InputValidationError(f"Invalid email address: {recipient!r}", field="recipient")

        alert = AlertModel(
            id=new_record_id("test"),
            title="Test Alert",
            message="This is a test email to verify your alert notification settings.",
            severity=AlertSeverity.INFO,
            source="Herald Test",
        )
        logs = await self.dispatcher.dispatch(alert, [recipient], kind=TemplateKind.INFO, is_test=True)
        return logs[0]

    def get_rate_limit_stats(self, recipient: str | None = None) -> dict:
        return self.rate_limiter.get_usage_stats(recipient)

    def get_rate_limit_entries(self) -> dict[str, dict[str, dict]]:
        """Every live limiter entry per tier, keyed by hashed identifier."""
        return self.rate_limiter.get_all_usage()

    def reset_rate_limit(self, recipient: str) -> None:
        if not recipient or not recipient.strip():
            raise InputValidationError("recipient is required", field="recipient")
        self.rate_limiter.reset_recipient(recipient.strip())

    def reset_system_rate_limit(self) -> None:
        self.rate_limiter.reset_system_wide()

    def clear_rate_limits(self) -> None:
        self.rate_limiter.clear_all()

    # ----------------------------------------------------------------------
    # Helpers
    # ----------------------------------------------------------------------
    @staticmethod
    def _parse_severity(value: AlertSeverity | str) -> AlertSeverity:
        try:
            return AlertSeverity(str(value).lower())
        except ValueError:
            raise InputValidationError(f"Unknown severity: {value!r}", field="severity")

    @staticmethod
    def _parse_status(value: AlertStatus | str) -> AlertStatus:
        try:
            return AlertStatus(str(value).lower())
        except ValueError:
            raise InputValidationError(f"Unknown status: {value!r}", field="status")

    @staticmethod
    def _page(limit: int, offset: int) -> tuple[int, int]:
        if limit < 1 or limit > MAX_PAGE_SIZE:
            raise InputValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}", field="limit")
        if offset < 0:
            raise InputValidationError("offset must be >= 0", field="offset")
        return limit, offset
