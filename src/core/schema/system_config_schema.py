from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class PathsConfig(BaseModel):
    """Path configuration"""

    LOG_DIR: str = Field(default="logs", description="Log directory")


class StoreConfig(BaseModel):
    """Document store backend"""

    BACKEND: Literal["memory", "sqlite"] = Field(default="sqlite", description="Document store backend")
    DB_PATH: str = Field(default="./data/herald.db", description="SQLite file path (sqlite backend only)")
    BUSY_TIMEOUT_MS: int = Field(
        default=5000, ge=0, description="SQLite busy_timeout while another writer holds the lock"
    )
    ECHO_SQL: bool = Field(default=False, description="Log every SQL statement (debugging only)")


class LoggingConfig(BaseModel):
    """Process logging"""

    LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    TO_FILE: bool = Field(default=True, description="Also write a daily-rotated file under PATHS.LOG_DIR")
    FILE_NAME: str = Field(default="herald", description="Log file base name, without extension")
    BACKUP_DAYS: int = Field(default=7, ge=0, description="Rotated files kept")
    QUIET_LOGGERS: list[str] = Field(
        default_factory=lambda: ["sqlalchemy.engine", "aiosqlite", "httpx", "httpcore"],
        description="Third-party loggers capped at WARNING",
    )


class SystemConfig(BaseModel):
    """System configuration (full)"""

    model_config = ConfigDict(extra="allow")

    MONITOR_INTERVAL_SECONDS: float = Field(default=30.0, gt=0, description="Rule evaluation interval (seconds)")
    MONITOR_WINDOW_SECONDS: float = Field(default=300.0, gt=0, description="Trailing metric window (seconds)")
    MONITOR_EVAL_CONCURRENCY: int = Field(
        default=8, ge=1, le=256, description="Max concurrent rule evaluations in one cycle."
    )
    MONITOR_BATCH_LIMIT: int = Field(default=1000, ge=1, description="Max new log events fetched per cycle")
    MONITOR_WINDOW_LIMIT: int = Field(default=5000, ge=1, description="Max log events read for one metric window")
    MONITOR_AUTOSTART: bool = Field(default=True, description="Start the monitoring loop on service start")
    COLLABORATOR_TIMEOUT_SEC: float = Field(
        default=10.0, gt=0, le=300, description="Timeout for each store call (seconds)."
    )
    STORE: StoreConfig = Field(default_factory=StoreConfig)
    PATHS: PathsConfig = Field(default_factory=PathsConfig)
    LOGGING: LoggingConfig = Field(default_factory=LoggingConfig)
