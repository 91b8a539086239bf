import logging
from typing import Callable, Iterable

from core.model.enum.condition_enum import MetricName
from core.model.enum.monitor_state_enum import LogLevel
from core.schema.log_event_schema import LogEvent
from core.util.time_util import window_start_iso
from repository.log_repository import LogEventRepository


class MetricAggregator:
    """
    Computes one scalar metric over the trailing window of log events.

    The window is rebuilt on every call: events with timestamp >= now - window
    are re-read from the log store and merged with the in-window events of the
    current polling batch (events already read from the store are not counted twice).
    """

    def __init__(
        self,
        log_repository: LogEventRepository,
        window_seconds: float = 300.0,
        window_limit: int = 5000,
    ):
        self.log_repository = log_repository
        self.window_seconds = window_seconds
        self.window_limit = window_limit
        self.logger = logging.getLogger(__class__.__name__)

        self._formulas: dict[MetricName, Callable[[list[LogEvent]], float]] = {
            MetricName.ERROR_RATE: self.error_rate,
            MetricName.ERROR_COUNT: self.error_count,
            MetricName.LOG_COUNT: self.log_count,
            MetricName.AVG_RESPONSE_TIME: self.avg_response_time,
            MetricName.MAX_RESPONSE_TIME: self.max_response_time,
            MetricName.RATE_4XX: lambda events: self.status_class_rate(events, 400),
            MetricName.RATE_5XX: lambda events: self.status_class_rate(events, 500),
            MetricName.UNIQUE_ERRORS: self.unique_errors,
        }

    async def compute(self, metric: str, batch: Iterable[LogEvent] = ()) -> float:
        value, _ = await self.measure(metric, batch)
        return value

    async def measure(self, metric: str, batch: Iterable[LogEvent] = ()) -> tuple[float, str]:
        """Metric value together with the window start it was computed from."""
        window_start = window_start_iso(self.window_seconds)
        events = await self.collect_window(window_start, batch)
        return self.compute_from_events(metric, events), window_start

    async def collect_window(self, window_start: str, batch: Iterable[LogEvent] = ()) -> list[LogEvent]:
        stored = await self.log_repository.get_since(window_start, limit=self.window_limit)
        seen: set[int] = {event.id for event in stored}
        recent = [event for event in batch if event.timestamp >= window_start and event.id not in seen]
        return stored + recent

    def compute_from_events(self, metric: str, events: list[LogEvent]) -> float:
        try:
            formula = self._formulas[MetricName(metric.lower())]
        except ValueError:
            self.logger.warning(f"[METRIC] Unknown metric '{metric}', treating value as 0")
            return 0.0
        return float(formula(events))

    # ----------------------------------------------------------------------
    # Formulas
    # ----------------------------------------------------------------------
    @staticmethod
    def error_rate(events: list[LogEvent]) -> float:
        if not events:
            return 0.0
        errors = sum(1 for e in events if e.level == LogLevel.ERROR)
        return errors / len(events) * 100

    @staticmethod
    def error_count(events: list[LogEvent]) -> float:
        return sum(1 for e in events if e.level == LogLevel.ERROR)

    @staticmethod
    def log_count(events: list[LogEvent]) -> float:
        return len(events)

    @staticmethod
    def avg_response_time(events: list[LogEvent]) -> float:
        durations = [e.duration for e in events if e.duration]
        return sum(durations) / len(durations) if durations else 0.0

    @staticmethod
    def max_response_time(events: list[LogEvent]) -> float:
        durations = [e.duration for e in events if e.duration]
        return max(durations) if durations else 0.0

    @staticmethod
    def status_class_rate(events: list[LogEvent], class_floor: int) -> float:
        """Share (percent) of status-carrying events whose code falls in [floor, floor + 100)."""
        codes = [e.status_code for e in events if e.status_code is not None]
        if not codes:
            return 0.0
        matching = sum(1 for code in codes if class_floor <= code < class_floor + 100)
        return matching / len(codes) * 100

    @staticmethod
    def unique_errors(events: list[LogEvent]) -> float:
        return len({e.message for e in events if e.level == LogLevel.ERROR})
