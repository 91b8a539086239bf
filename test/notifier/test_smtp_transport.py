import smtplib
from unittest.mock import patch

import pytest

from core.schema.notifier_schema import SmtpConfig
from core.util.notifier.email_notifier import SmtpMailTransport


@pytest.fixture
def smtp_config():
    return SmtpConfig(
        host="smtp.example.com",
        port=587,
        username="alerts@example.com",
        password="app-password",
        timeout_sec=5,
    )


class TestSmtpMailTransport:
    @pytest.mark.asyncio
    async def test_send_uses_starttls_and_login(self, smtp_config):
        transport = SmtpMailTransport(smtp_config)

        with patch("core.util.notifier.email_notifier.smtplib.SMTP") as smtp_cls:
            server = smtp_cls.return_value.__enter__.return_value

            result = await transport.send("ops@example.com", "WARNING: test", "<p>hello</p>")

        assert result.success is True
        assert result.message_id.startswith("<")
        smtp_cls.assert_called_once_with("smtp.example.com", 587, timeout=5)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("alerts@example.com", "app-password")
        server.send_message.assert_called_once()

    @pytest.mark.asyncio
    async def test_login_skipped_without_password(self, smtp_config):
        transport = SmtpMailTransport(smtp_config.model_copy(update={"password": None}))

        with patch("core.util.notifier.email_notifier.smtplib.SMTP") as smtp_cls:
            server = smtp_cls.return_value.__enter__.return_value
            result = await transport.send("ops@example.com", "INFO: test", "<p>hello</p>")

        assert result.success is True
        server.login.assert_not_called()

    @pytest.mark.asyncio
    async def test_smtp_failure_is_reported_not_raised(self, smtp_config):
        transport = SmtpMailTransport(smtp_config)

        with patch("core.util.notifier.email_notifier.smtplib.SMTP") as smtp_cls:
            smtp_cls.return_value.__enter__.return_value.send_message.side_effect = smtplib.SMTPException("boom")
            result = await transport.send("ops@example.com", "INFO: test", "<p>hello</p>")

        assert result.success is False
        assert "boom" in result.error

    @pytest.mark.asyncio
    async def test_disabled_transport_does_not_connect(self, smtp_config):
        transport = SmtpMailTransport(smtp_config.model_copy(update={"enabled": False}))

        with patch("core.util.notifier.email_notifier.smtplib.SMTP") as smtp_cls:
            result = await transport.send("ops@example.com", "INFO: test", "<p>hello</p>")

        assert result.error == "Email transport disabled"
        smtp_cls.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_sender_is_not_configured(self):
        transport = SmtpMailTransport(SmtpConfig(host="smtp.example.com"))

        result = await transport.send("ops@example.com", "INFO: test", "<p>hello</p>")

        assert result.success is False
        assert result.error == "Email transport not configured"

    def test_message_has_text_and_html_parts(self, smtp_config):
        transport = SmtpMailTransport(smtp_config)

        msg = transport.build_message("ops@example.com", "INFO: test", "<p>hello <b>team</b></p>")

        assert msg["From"] == "alerts@example.com"
        assert msg["To"] == "ops@example.com"
        assert msg.get_body(preferencelist=("plain",)).get_content().strip() == "hello team"
        assert "<b>team</b>" in msg.get_body(preferencelist=("html",)).get_content()
