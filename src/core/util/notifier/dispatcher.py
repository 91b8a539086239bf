import asyncio
import logging

from core.model.enum.alert_enum import EmailStatus, TemplateKind
from core.schema.alert_schema import AlertModel, EmailLogModel
from core.util.decorator.timeout import call_with_timeout
from core.util.notifier.base import BaseMailTransport, MailSendResult
from core.util.notifier.email_template import RenderedEmail, render_email
from core.util.rate_limiter import EmailRateLimiter
from core.util.time_util import utc_now_iso
from exception import CollaboratorError
from repository.alert_repository import EmailLogRepository


class NotificationDispatcher:
    """
    Renders an alert into its template and delivers it to each recipient.

    Recipients are handled as independent tasks joined before returning:
    rate-limit gate → send (bounded by send_timeout_sec) → one EmailLog.
    A failure for one recipient never changes another's outcome.
    """

    def __init__(
        self,
        transport: BaseMailTransport | None,
        rate_limiter: EmailRateLimiter,
        email_log_repository: EmailLogRepository,
        send_timeout_sec: float = 15.0,
    ):
        self.transport = transport
        self.rate_limiter = rate_limiter
        self.email_log_repository = email_log_repository
        self.send_timeout_sec = send_timeout_sec
        self.logger = logging.getLogger("NotificationDispatcher")

    async def dispatch(
        self,
        alert: AlertModel,
        recipients: list[str],
        kind: TemplateKind | str | None = None,
        rate_key: str | None = None,
        is_test: bool = False,
    ) -> list[EmailLogModel]:
        """
        Args:
            kind: template to use, defaults to the alert's severity
            rate_key: identity for the per-alert-recipient tier, defaults to alert.id
            is_test: count against the test-email tier
        """
        if not recipients:
            return []

        rendered = render_email(alert, kind or alert.severity)
        key = rate_key if rate_key is not None else alert.id
        if is_test:
            key = None

        results = await asyncio.gather(
            *(self._deliver(alert, recipient, rendered, key, is_test) for recipient in recipients),
            return_exceptions=True,
        )

        logs: list[EmailLogModel] = []
        for recipient, result in zip(recipients, results):
            if isinstance(result, BaseException):
                self.logger.error(f"[EMAIL] Delivery task for {recipient} crashed: {result}")
                continue
            logs.append(result)

        sent = sum(1 for log in logs if log.status == EmailStatus.SENT)
        self.logger.info(f"[EMAIL] Alert {alert.id}: {sent}/{len(recipients)} delivered")
        return logs

    async def _deliver(
        self,
        alert: AlertModel,
        recipient: str,
        rendered: RenderedEmail,
        rate_key: str | None,
        is_test: bool,
    ) -> EmailLogModel:
        try:
            decision = self.rate_limiter.can_send_email(recipient, alert_id=rate_key, is_test_email=is_test)
            if not decision.allowed:
                return await self._record(
                    alert, recipient, rendered.subject, EmailStatus.FAILED, error=f"Rate limit exceeded: {decision.reason}"
                )

            if self.transport is None:
                return await self._record(
                    alert, recipient, rendered.subject, EmailStatus.FAILED, error="No mail transport configured"
                )

            try:
                result: MailSendResult = await call_with_timeout(
                    self.transport.send(recipient, rendered.subject, rendered.html, rendered.text),
                    self.send_timeout_sec,
                    f"send email to {recipient}",
                    self.logger,
                )
            except CollaboratorError as e:
                result = MailSendResult(success=False, error=str(e))

            if result.success:
                return await self._record(
                    alert, recipient, rendered.subject, EmailStatus.SENT, message_id=result.message_id
                )
            return await self._record(
                alert, recipient, rendered.subject, EmailStatus.FAILED, error=result.error or "Unknown send error"
            )

        except Exception as e:
            self.logger.error(f"[EMAIL] Unexpected failure for {recipient}: {e}")
            return await self._record(alert, recipient, rendered.subject, EmailStatus.FAILED, error=str(e))

    async def _record(
        self,
        alert: AlertModel,
        recipient: str,
        subject: str,
        status: EmailStatus,
        error: str | None = None,
        message_id: str | None = None,
    ) -> EmailLogModel:
        log = EmailLogModel(
            alert_id=alert.id,
            recipient=recipient,
            subject=subject,
            status=status,
            error_message=error,
            message_id=message_id,
            sent_at=utc_now_iso() if status == EmailStatus.SENT else None,
        )
        if error:
            self.logger.warning(f"[EMAIL] {recipient} not delivered for alert {alert.id}: {error}")

        try:
            await self.email_log_repository.append(log)
        except CollaboratorError as e:
            self.logger.error(f"[EMAIL] Could not record email log for {recipient}: {e}")
        return log
