"""
Email Rate Limiter

Fixed-size counters over sliding windows, one limiter per tier:
- per recipient
- per (alert, recipient) pair
- system-wide
- test sends

Identifiers are hashed (SHA-256) so addresses are never held as dict keys.
Expired entries are purged by a periodic sweep (see RateLimitSweepTask),
not lazily on read.
"""

import hashlib
import logging
import threading
import time
from dataclasses import asdict, dataclass
from typing import Callable

from core.schema.notifier_schema import RateLimitConfig, RateLimitTierConfig

SYSTEM_KEY = "system"


@dataclass
class RateLimitEntry:
    count: int
    reset_time: float  # epoch seconds


@dataclass
class RateLimitUsage:
    count: int
    limit: int
    remaining: int
    reset_time: float | None
    reset_in: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class RateLimitDecision:
    allowed: bool
    reason: str | None = None
    tier: str | None = None
    usage: RateLimitUsage | None = None

    def to_dict(self) -> dict:
        return {
            "allowed": self.allowed,
            "reason": self.reason,
            "tier": self.tier,
            "usage": self.usage.to_dict() if self.usage else None,
        }


class SlidingWindowRateLimiter:
    """
    A counter per hashed identifier with its own reset deadline.

    - first request in a window: count=1, deadline=now+window
    - within the window: count += 1 while count < limit
    - at or above limit: denied, count unchanged
    - after the deadline: starts over at count=1
    """

    def __init__(self, name: str, limit: int, window_sec: float, clock: Callable[[], float] = time.time):
        self.name = name
        self.limit = limit
        self.window_sec = window_sec
        self._clock = clock
        self._entries: dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()
        self.logger = logging.getLogger(f"RateLimiter.{name}")

    @staticmethod
    def hash_key(identifier: str) -> str:
        return hashlib.sha256(identifier.encode("utf-8")).hexdigest()

    def is_allowed(self, identifier: str) -> bool:
        """Check and, when allowed, count one request."""
        with self._lock:
            if not self._would_allow(identifier):
                return False
            self._increment(identifier)
            return True

    def get_usage(self, identifier: str) -> RateLimitUsage:
        with self._lock:
            return self._usage(identifier)

    def reset(self, identifier: str) -> bool:
        with self._lock:
            return self._entries.pop(self.hash_key(identifier), None) is not None

    def get_all(self) -> dict[str, RateLimitEntry]:
        with self._lock:
            return {key: RateLimitEntry(entry.count, entry.reset_time) for key, entry in self._entries.items()}

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def cleanup_expired(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if now >= entry.reset_time]
            for key in expired:
                del self._entries[key]
        if expired:
            self.logger.debug(f"[RATE] {self.name}: purged {len(expired)} expired entries")
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)

    # ----------------------------------------------------------------------
    # Unlocked helpers (caller holds self._lock)
    # ----------------------------------------------------------------------
    def _live_entry(self, identifier: str) -> RateLimitEntry | None:
        entry = self._entries.get(self.hash_key(identifier))
        if entry is None or self._clock() >= entry.reset_time:
            return None
        return entry

    def _would_allow(self, identifier: str) -> bool:
        entry = self._live_entry(identifier)
        return entry is None or entry.count < self.limit

    def _increment(self, identifier: str) -> None:
        entry = self._live_entry(identifier)
        if entry is None:
            self._entries[self.hash_key(identifier)] = RateLimitEntry(
                count=1, reset_time=self._clock() + self.window_sec
            )
        else:
            entry.count += 1

    def _usage(self, identifier: str) -> RateLimitUsage:
        entry = self._live_entry(identifier)
        if entry is None:
            return RateLimitUsage(count=0, limit=self.limit, remaining=self.limit, reset_time=None, reset_in=0.0)
        return RateLimitUsage(
            count=entry.count,
            limit=self.limit,
            remaining=max(0, self.limit - entry.count),
            reset_time=entry.reset_time,
            reset_in=max(0.0, entry.reset_time - self._clock()),
        )


class EmailRateLimiter:
    """Four-tier gate shared by every dispatch task."""

    SYSTEM_WIDE = "system_wide"
    TEST_EMAIL = "test_email"
    PER_RECIPIENT = "per_recipient"
    PER_ALERT_RECIPIENT = "per_alert_recipient"

    DENIAL_REASONS: dict[str, str] = {
        SYSTEM_WIDE: "System-wide email rate limit exceeded",
        TEST_EMAIL: "Test email rate limit exceeded",
        PER_RECIPIENT: "Per-recipient rate limit exceeded",
        PER_ALERT_RECIPIENT: "Already sent email for this alert to this recipient",
    }

    def __init__(self, config: RateLimitConfig | None = None, clock: Callable[[], float] = time.time):
        config = config or RateLimitConfig()
        self.cleanup_interval_sec = config.cleanup_interval_sec
        self.logger = logging.getLogger("EmailRateLimiter")

        def _build(name: str, tier: RateLimitTierConfig) -> SlidingWindowRateLimiter:
            return SlidingWindowRateLimiter(name, tier.limit, tier.window_sec, clock=clock)

        self.tiers: dict[str, SlidingWindowRateLimiter] = {
            self.SYSTEM_WIDE: _build(self.SYSTEM_WIDE, config.system_wide),
            self.TEST_EMAIL: _build(self.TEST_EMAIL, config.test_email),
            self.PER_RECIPIENT: _build(self.PER_RECIPIENT, config.per_recipient),
            self.PER_ALERT_RECIPIENT: _build(self.PER_ALERT_RECIPIENT, config.per_alert_recipient),
        }
        # Guards the multi-tier check-then-commit so no tier is charged for a denied send
        self._lock = threading.Lock()

    def can_send_email(
        self, recipient: str, alert_id: str | None = None, is_test_email: bool = False
    ) -> RateLimitDecision:
        """
        Check tiers in order: system-wide, test-email (test sends only),
        per-recipient, per-alert-recipient (when alert_id is given).
        The first denying tier wins and nothing is counted. When all tiers
        allow, every checked tier is counted.
        """
        checks: list[tuple[str, str]] = [(self.SYSTEM_WIDE, SYSTEM_KEY)]
        if is_test_email:
            checks.append((self.TEST_EMAIL, recipient))
        checks.append((self.PER_RECIPIENT, recipient))
        if alert_id:
            checks.append((self.PER_ALERT_RECIPIENT, f"{alert_id}:{recipient}"))

        with self._lock:
            for tier_name, identifier in checks:
                limiter = self.tiers[tier_name]
                with limiter._lock:
                    if limiter._would_allow(identifier):
                        continue
                    usage = limiter._usage(identifier)

                reason = self.DENIAL_REASONS[tier_name]
                self.logger.warning(f"[RATE] Denied {recipient}: {reason} ({usage.count}/{usage.limit})")
                return RateLimitDecision(allowed=False, reason=reason, tier=tier_name, usage=usage)

            for tier_name, identifier in checks:
                limiter = self.tiers[tier_name]
                with limiter._lock:
                    limiter._increment(identifier)

        return RateLimitDecision(allowed=True)

    def get_usage_stats(self, recipient: str | None = None, alert_id: str | None = None) -> dict:
        stats: dict = {
            "system_wide": self.tiers[self.SYSTEM_WIDE].get_usage(SYSTEM_KEY).to_dict(),
            "limits": {
                name: {"limit": limiter.limit, "window_sec": limiter.window_sec}
                for name, limiter in self.tiers.items()
            },
            "tracked_entries": {name: len(limiter) for name, limiter in self.tiers.items()},
        }
        if recipient:
            stats["per_recipient"] = self.tiers[self.PER_RECIPIENT].get_usage(recipient).to_dict()
            stats["test_email"] = self.tiers[self.TEST_EMAIL].get_usage(recipient).to_dict()
            stats["per_alert_recipient"] = (
                self.tiers[self.PER_ALERT_RECIPIENT].get_usage(f"{alert_id}:{recipient}").to_dict()
                if alert_id
                else None
            )
        return stats

    def reset_recipient(self, recipient: str) -> None:
        self.tiers[self.PER_RECIPIENT].reset(recipient)
        self.tiers[self.TEST_EMAIL].reset(recipient)
        self.logger.info(f"[RATE] Reset limits for recipient {recipient}")

    def reset_system_wide(self) -> None:
        self.tiers[self.SYSTEM_WIDE].reset(SYSTEM_KEY)
        self.logger.info("[RATE] Reset system-wide limit")

    def get_all_usage(self) -> dict[str, dict[str, dict]]:
        return {
            name: {key: asdict(entry) for key, entry in limiter.get_all().items()}
            for name, limiter in self.tiers.items()
        }

    def clear_all(self) -> None:
        for limiter in self.tiers.values():
            limiter.clear()
        self.logger.info("[RATE] All rate limit entries cleared")

    def cleanup_expired(self) -> int:
        return sum(limiter.cleanup_expired() for limiter in self.tiers.values())
