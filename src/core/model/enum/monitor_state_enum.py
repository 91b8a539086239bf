from enum import StrEnum


class MonitorState(StrEnum):
    STOPPED = "stopped"
    RUNNING = "running"


class LogLevel(StrEnum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
