import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

_ADDRESS_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _validate_addresses(addresses: list[str]) -> list[str]:
    cleaned = [a.strip() for a in addresses if a and a.strip()]
    for address in cleaned:
        if not _ADDRESS_PATTERN.match(address):
            raise ValueError(f"Invalid email address: {address}")
    return cleaned


class SmtpConfig(BaseModel):
    """SMTP transport configuration"""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    enabled: bool = Field(default=True)
    host: str = Field(default="smtp.gmail.com", description="SMTP server host")
    port: int = Field(default=587, ge=1, le=65535, description="SMTP server port")
    username: str | None = Field(default=None, description="SMTP login user")
    password: str | None = Field(default=None, description="SMTP login password")
    from_addr: str | None = Field(default=None, description="Sender address (defaults to username)")
    use_starttls: bool = Field(default=True)
    timeout_sec: float = Field(default=10.0, gt=0)

    @field_validator("port", mode="before")
    @classmethod
    def parse_port(cls, v):
        if isinstance(v, str):
            try:
                return int(v)
            except ValueError:
                raise ValueError(f"SMTP port must be a number, got: {v!r}")
        return v

    @property
    def sender(self) -> str | None:
        return self.from_addr or self.username

    @property
    def is_configured(self) -> bool:
        return bool(self.enabled and self.host and self.sender)


class RateLimitTierConfig(BaseModel):
    limit: int = Field(..., ge=1, description="Max allowed requests per window")
    window_sec: float = Field(..., gt=0, description="Window length in seconds")


class RateLimitConfig(BaseModel):
    """Four independent rate-limit tiers for outbound email"""

    per_recipient: RateLimitTierConfig = Field(
        default_factory=lambda: RateLimitTierConfig(limit=10, window_sec=5 * 60)
    )
    per_alert_recipient: RateLimitTierConfig = Field(
        default_factory=lambda: RateLimitTierConfig(limit=1, window_sec=60 * 60)
    )
    system_wide: RateLimitTierConfig = Field(default_factory=lambda: RateLimitTierConfig(limit=100, window_sec=60 * 60))
    test_email: RateLimitTierConfig = Field(default_factory=lambda: RateLimitTierConfig(limit=5, window_sec=10 * 60))
    cleanup_interval_sec: float = Field(default=60.0, gt=0, description="Expired entry sweep interval")


class NotificationConfigSchema(BaseModel):
    """Notification configuration (email transport, default recipients, rate limits)"""

    model_config = ConfigDict(extra="ignore")

    email: SmtpConfig = Field(default_factory=SmtpConfig)
    default_recipients: list[str] = Field(default_factory=list)
    rate_limits: RateLimitConfig = Field(default_factory=RateLimitConfig)
    send_timeout_sec: float = Field(default=15.0, gt=0, description="Per-recipient send timeout")

    @field_validator("default_recipients", mode="before")
    @classmethod
    def split_recipients(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [part for part in v.split(",")]
        return v

    @field_validator("default_recipients")
    @classmethod
    def validate_recipients(cls, v: list[str]) -> list[str]:
        return _validate_addresses(v)
