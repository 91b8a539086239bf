import logging

from core.task.async_job_base import AsyncRecurringJob
from core.util.rate_limiter import EmailRateLimiter

logger = logging.getLogger(__name__)


class RateLimitSweepTask(AsyncRecurringJob):
    """Purges expired rate-limit entries so limiter memory stays bounded."""

    def __init__(self, rate_limiter: EmailRateLimiter, interval_seconds: float = 60.0):
        super().__init__(interval_seconds=interval_seconds)
        self.rate_limiter = rate_limiter
        self.total_purged: int = 0

    async def run_once(self) -> None:
        purged = self.rate_limiter.cleanup_expired()
        self.total_purged += purged
        if purged:
            logger.info(f"[RateLimitSweep] Purged {purged} expired entries")
