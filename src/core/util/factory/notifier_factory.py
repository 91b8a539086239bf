import logging

from core.schema.notifier_schema import NotificationConfigSchema
from core.util.config_manager import ConfigManager
from core.util.notifier.base import BaseMailTransport
from core.util.notifier.dispatcher import NotificationDispatcher
from core.util.notifier.email_notifier import SmtpMailTransport
from core.util.rate_limiter import EmailRateLimiter
from repository.alert_repository import EmailLogRepository

logger = logging.getLogger("NotifierFactory")


def load_notifier_config(path: str | None) -> NotificationConfigSchema:
    config = ConfigManager.load_notification_config(path)
    logger.info(
        f"Notifier config loaded: smtp={config.email.host}:{config.email.port}, "
        f"enabled={config.email.enabled}, default_recipients={len(config.default_recipients)}"
    )
    return config


def build_mail_transport(config: NotificationConfigSchema) -> BaseMailTransport | None:
    """SMTP transport, or None when email is disabled or no sender address is configured."""
    if not config.email.is_configured:
        logger.warning("[EMAIL] SMTP not configured (disabled or no sender), emails will be logged as failed")
        return None
    return SmtpMailTransport(config.email)


def build_notification_stack(
    config: NotificationConfigSchema, email_log_repository: EmailLogRepository
) -> tuple[NotificationDispatcher, EmailRateLimiter]:
    """
    Build the rate limiter and the dispatcher that consults it.

    Returns:
        Tuple of (dispatcher, rate_limiter); the limiter is shared with the API and the sweep task.
    """
    rate_limiter = EmailRateLimiter(config.rate_limits)
    dispatcher = NotificationDispatcher(
        transport=build_mail_transport(config),
        rate_limiter=rate_limiter,
        email_log_repository=email_log_repository,
        send_timeout_sec=config.send_timeout_sec,
    )
    return dispatcher, rate_limiter
