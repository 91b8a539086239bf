"""Shared fixtures: in-memory store, repositories, a recording mail transport and the wired alert service."""

from datetime import timedelta

import pytest
import pytest_asyncio

from core.schema.log_event_schema import LogEvent, LogEventDetails
from core.schema.notifier_schema import RateLimitConfig
from core.service.alert_service import AlertService
from core.util.notifier.base import BaseMailTransport, MailSendResult
from core.util.notifier.dispatcher import NotificationDispatcher
from core.util.rate_limiter import EmailRateLimiter
from core.util.time_util import to_iso, utc_now
from repository.alert_repository import AlertRepository, EmailLogRepository
from repository.alert_rule_repository import AlertRuleRepository, RuleStateRepository
from repository.in_memory_document_store import InMemoryDocumentStore
from repository.log_repository import LogEventRepository


class RecordingMailTransport(BaseMailTransport):
    """Accepts every message except those addressed to `failing`, and remembers what was sent."""

    def __init__(self, failing: set[str] | None = None):
        super().__init__(enabled=True)
        self.failing = failing or set()
        self.sent: list[dict] = []

    async def send(self, to: str, subject: str, html: str, text: str | None = None) -> MailSendResult:
        if to in self.failing:
            return MailSendResult(success=False, error="550 mailbox unavailable")
        self.sent.append({"to": to, "subject": subject, "html": html, "text": text})
        return MailSendResult(success=True, message_id=f"<{len(self.sent)}@test.local>")


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def build_event(
    event_id: int,
    level: str = "info",
    message: str = "request handled",
    duration: float | None = None,
    status_code: int | None = None,
    age_seconds: float = 0,
) -> LogEvent:
    details = None
    if duration is not None or status_code is not None:
        details = LogEventDetails(duration=duration, status_code=status_code)
    return LogEvent(
        id=event_id,
        timestamp=to_iso(utc_now() - timedelta(seconds=age_seconds)),
        project="shop",
        source="checkout-api",
        message=message,
        level=level,
        details=details,
    )


def build_error_batch(start_id: int, total: int, errors: int) -> list[LogEvent]:
    """`total` consecutive events, the first `errors` of them at error level."""
    return [
        build_event(start_id + i, level="error", message=f"payment failed #{i}")
        if i < errors
        else build_event(start_id + i)
        for i in range(total)
    ]


@pytest.fixture
def make_event():
    return build_event


@pytest.fixture
def make_error_batch():
    return build_error_batch


@pytest.fixture
def clock():
    return FakeClock()


@pytest_asyncio.fixture
async def memory_store():
    store = InMemoryDocumentStore()
    await store.init()
    return store


@pytest.fixture
def log_repository(memory_store):
    return LogEventRepository(memory_store, timeout_sec=1.0)


@pytest.fixture
def alert_repository(memory_store):
    return AlertRepository(memory_store, timeout_sec=1.0)


@pytest.fixture
def email_log_repository(memory_store):
    return EmailLogRepository(memory_store, timeout_sec=1.0)


@pytest.fixture
def rule_repository(memory_store):
    return AlertRuleRepository(memory_store, timeout_sec=1.0)


@pytest.fixture
def state_repository(memory_store):
    return RuleStateRepository(memory_store, timeout_sec=1.0)


@pytest.fixture
def transport():
    return RecordingMailTransport()


@pytest.fixture
def rate_limiter(clock):
    return EmailRateLimiter(RateLimitConfig(), clock=clock)


@pytest.fixture
def dispatcher(transport, rate_limiter, email_log_repository):
    return NotificationDispatcher(transport, rate_limiter, email_log_repository, send_timeout_sec=1.0)


@pytest.fixture
def alert_service(alert_repository, email_log_repository, dispatcher, rate_limiter):
    return AlertService(
        alert_repository=alert_repository,
        email_log_repository=email_log_repository,
        dispatcher=dispatcher,
        rate_limiter=rate_limiter,
        default_recipients=["ops@example.com"],
    )
