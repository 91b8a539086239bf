"""
Process logging for Herald.

Log lines carry the same UTC millisecond timestamps as alert and email-log
records, so a log line can be matched to the record it produced. Handlers
installed here are tagged; configuring again replaces them instead of
stacking duplicates (the API module and the service runner both configure).
"""

import logging
import sys
from datetime import datetime
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from core.schema.system_config_schema import LoggingConfig, SystemConfig
from core.util.time_util import TIMEZONE_INFO, to_iso

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
_HERALD_HANDLER_ATTR = "_herald_handler"


class AlertTimestampFormatter(logging.Formatter):
    def formatTime(self, record, datefmt=None):
        return to_iso(datetime.fromtimestamp(record.created, tz=TIMEZONE_INFO))


def _tag(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _HERALD_HANDLER_ATTR, True)
    handler.setFormatter(AlertTimestampFormatter(fmt=LOG_FORMAT))
    return handler


def configure_logging(system_config: SystemConfig | None = None, level: str | None = None) -> list[logging.Handler]:
    """
    Install console (and optionally rotating file) handlers on the root logger.

    Args:
        system_config: source of LOGGING and PATHS.LOG_DIR; defaults apply when None.
        level: overrides LOGGING.LEVEL (e.g. from a --log-level flag).

    Returns:
        The handlers installed.
    """
    system_config = system_config or SystemConfig()
    settings: LoggingConfig = system_config.LOGGING
    resolved_level = logging.getLevelName((level or settings.LEVEL).upper())
    if not isinstance(resolved_level, int):
        resolved_level = logging.INFO

    root_logger = logging.getLogger()
    for existing in [h for h in root_logger.handlers if getattr(h, _HERALD_HANDLER_ATTR, False)]:
        root_logger.removeHandler(existing)
        existing.close()

    handlers: list[logging.Handler] = [_tag(logging.StreamHandler(sys.stdout))]
    if settings.TO_FILE:
        log_dir = Path(system_config.PATHS.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(
            _tag(
                TimedRotatingFileHandler(
                    filename=log_dir / f"{settings.FILE_NAME}.log",
                    when="midnight",
                    backupCount=settings.BACKUP_DAYS,
                    encoding="utf-8",
                    utc=True,
                )
            )
        )

    root_logger.setLevel(resolved_level)
    for handler in handlers:
        root_logger.addHandler(handler)

    for name in settings.QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return handlers
