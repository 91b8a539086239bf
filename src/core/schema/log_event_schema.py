from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.util.time_util import parse_iso, to_iso


class LogEventDetails(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    ip: str | None = None
    user_agent: str | None = Field(default=None, alias="userAgent")
    user_id: str | None = Field(default=None, alias="userId")
    duration: float | None = None
    status_code: int | None = Field(default=None, alias="statusCode")
    method: str | None = None
    path: str | None = None
    size: int | None = None


class LogEvent(BaseModel):
    """A single log event, identified by a monotonically increasing integer id."""

    model_config = ConfigDict(extra="ignore")

    id: int
    timestamp: str
    project: str = ""
    source: str = ""
    message: str = ""
    level: str = "info"
    details: LogEventDetails | None = None

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, v: str) -> str:
        # Stored timestamps are compared lexically, so keep one canonical form
        return to_iso(parse_iso(v))

    @field_validator("level")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        return v.lower()

    @property
    def duration(self) -> float | None:
        return self.details.duration if self.details else None

    @property
    def status_code(self) -> int | None:
        return self.details.status_code if self.details else None
