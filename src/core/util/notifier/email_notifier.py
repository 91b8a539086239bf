import asyncio
import logging
import smtplib
from email.message import EmailMessage
from email.utils import make_msgid

from core.schema.notifier_schema import SmtpConfig
from core.util.notifier.base import BaseMailTransport, MailSendResult
from core.util.notifier.email_template import html_to_text


class SmtpMailTransport(BaseMailTransport):
    def __init__(self, config: SmtpConfig):
        super().__init__(enabled=config.enabled)
        self.logger = logging.getLogger("SmtpMailTransport")
        self.config = config

    async def send(self, to: str, subject: str, html: str, text: str | None = None) -> MailSendResult:
        if not self.enabled:
            self.logger.debug("[EMAIL] SMTP transport is disabled, skipping")
            return MailSendResult(success=False, error="Email transport disabled")

        if not self.config.is_configured:
            self.logger.warning("[EMAIL] SMTP sender not configured, skipping")
            return MailSendResult(success=False, error="Email transport not configured")

        self.logger.info(f"[EMAIL] Send Email: {to} - {subject}")

        try:
            loop: asyncio.AbstractEventLoop = asyncio.get_running_loop()
            message_id: str = await loop.run_in_executor(None, self._send_email_sync, to, subject, html, text)
            self.logger.info(f"[EMAIL] Successfully sent to {to} ({message_id})")
            return MailSendResult(success=True, message_id=message_id)
        except Exception as e:
            self.logger.error(f"[EMAIL] Failed to send to {to}: {e}")
            return MailSendResult(success=False, error=str(e))

    def build_message(self, to: str, subject: str, html: str, text: str | None = None) -> EmailMessage:
        domain = self.config.sender.split("@")[-1] if self.config.sender else None
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.config.sender
        msg["To"] = to
        msg["Message-ID"] = make_msgid(domain=domain)
        msg.set_content(text or html_to_text(html))
        msg.add_alternative(html, subtype="html")
        return msg

    def _send_email_sync(self, to: str, subject: str, html: str, text: str | None) -> str:
        msg = self.build_message(to, subject, html, text)

        with smtplib.SMTP(self.config.host, int(self.config.port), timeout=self.config.timeout_sec) as server:
            if self.config.use_starttls:
                server.starttls()
            if self.config.username and self.config.password:
                server.login(self.config.username, self.config.password)
            server.send_message(msg)

        return msg["Message-ID"]
