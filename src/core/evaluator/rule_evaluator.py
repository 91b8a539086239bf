import logging
import math
import re
from typing import Iterable

from core.evaluator.metric_aggregator import MetricAggregator
from core.evaluator.rule_state_store import RuleStateStore
from core.model.enum.alert_enum import AlertSeverity
from core.model.enum.condition_enum import ConditionOperator, MetricFamily
from core.schema.alert_rule_schema import AlertRuleModel
from core.schema.alert_schema import AlertModel
from core.schema.log_event_schema import LogEvent
from core.service.alert_service import AlertService
from core.util.time_util import utc_now_iso

_NUMERIC_PREFIX = re.compile(r"^-?(\d+\.?\d*|\.\d+)")

logger = logging.getLogger("RuleEvaluator")


def parse_threshold(raw: str | float | int | None) -> float:
    """
    "80%" -> 80.0, "500ms" -> 500.0, "abc" -> 0.0

    Everything except digits, '.' and '-' is stripped, then the leading
    numeric prefix is read. Nothing readable yields 0.
    """
    if isinstance(raw, (int, float)):
        return float(raw)

    cleaned = re.sub(r"[^\d.\-]", "", raw or "")
    match = _NUMERIC_PREFIX.match(cleaned)
    if not match:
        logger.warning(f"[RULE] Unparsable threshold {raw!r}, using 0")
        return 0.0
    return float(match.group(0))


def check_condition(operator: ConditionOperator, value: float, threshold: float) -> bool:
    match operator:
        case ConditionOperator.GREATER_THAN:
            return value > threshold
        case ConditionOperator.GREATER_THAN_OR_EQUAL:
            return value >= threshold
        case ConditionOperator.LESS_THAN:
            return value < threshold
        case ConditionOperator.LESS_THAN_OR_EQUAL:
            return value <= threshold
        case ConditionOperator.EQUAL:
            return value == threshold
        case ConditionOperator.NOT_EQUAL:
            return value != threshold
    return False


def derive_severity(metric: str, value: float, threshold: float) -> AlertSeverity:
    """
    Severity ladder by metric family, using ratio = value / threshold:
    - error / 5xx:    ratio >= 3 critical, >= 1.5 warning
    - response time:  value >= 2x threshold critical, >= 1.5x warning
    - 4xx:            ratio >= 2 warning
    - anything else:  ratio >= 2 critical, >= 1.5 warning
    Everything below the ladder is info.
    """
    if threshold == 0:
        ratio = math.inf if value > 0 else 0.0
    else:
        ratio = value / threshold

    match MetricFamily.of(metric):
        case MetricFamily.ERROR:
            if ratio >= 3:
                return AlertSeverity.CRITICAL
            if ratio >= 1.5:
                return AlertSeverity.WARNING
        case MetricFamily.RESPONSE_TIME:
            if value >= threshold * 2:
                return AlertSeverity.CRITICAL
            if value >= threshold * 1.5:
                return AlertSeverity.WARNING
        case MetricFamily.CLIENT_ERROR:
            if ratio >= 2:
                return AlertSeverity.WARNING
        case _:
            if ratio >= 2:
                return AlertSeverity.CRITICAL
            if ratio >= 1.5:
                return AlertSeverity.WARNING
    return AlertSeverity.INFO


def _format_number(value: float) -> str:
    return str(int(value)) if value == int(value) else f"{value:.2f}"


class RuleEvaluator:
    """
    Applies a rule's condition to the aggregated metric and keeps the
    per-rule hysteresis latch (is_active):

    - inactive → satisfied:  fire one alert, latch on, trigger_count += 1
    - active → satisfied:    no alert, current_value refreshed
    - active → unsatisfied:  latch off silently
    State is persisted after every evaluation.
    """

    def __init__(
        self,
        aggregator: MetricAggregator,
        state_store: RuleStateStore | None,
        alert_service: AlertService,
    ):
        self.aggregator = aggregator
        self.state_store = state_store
        self.alert_service = alert_service
        self.logger = logging.getLogger(__class__.__name__)

    @property
    def window_minutes(self) -> float:
        return self.aggregator.window_seconds / 60

    async def evaluate(self, rule: AlertRuleModel, batch: Iterable[LogEvent] = ()) -> AlertModel | None:
        """Evaluate one rule against the current batch. Returns the alert created, if any."""
        async with self.state_store.lock_for(rule.id):
            if self.state_store.is_retired(rule.id):
                self.logger.info(f"[STATE] [{rule.id}] deleted while queued, skipping evaluation")
                return None
            state = self.state_store.get_or_create(rule.id)

            current_value, window_start = await self.aggregator.measure(rule.metric, batch)
            threshold = parse_threshold(rule.threshold)
            satisfied = self.is_satisfied(rule, current_value, threshold)

            state.current_value = current_value
            state.window_start = window_start
            alert: AlertModel | None = None

            if satisfied and not state.is_active:
                alert = await self._fire(rule, current_value, threshold, trigger_count=state.trigger_count + 1)
                state.is_active = True
                state.last_triggered_at = utc_now_iso()
                state.trigger_count += 1
                self.logger.info(
                    f"[STATE] [{rule.id}] inactive → active (value={_format_number(current_value)}, "
                    f"threshold={_format_number(threshold)}, triggers={state.trigger_count})"
                )
            elif not satisfied and state.is_active:
                state.is_active = False
                self.logger.info(f"[STATE] [{rule.id}] active → inactive (value={_format_number(current_value)})")

            await self.state_store.persist(state)
            return alert

    async def evaluate_value(self, rule: AlertRuleModel, value: float, source: str = "System") -> AlertModel | None:
        """
        Push-style evaluation of an externally supplied value.
        Same threshold, condition and severity logic; hysteresis state is neither read nor written.
        """
        threshold = parse_threshold(rule.threshold)
        if not self.is_satisfied(rule, value, threshold):
            return None
        return await self._fire(rule, value, threshold, trigger_count=None, source=source)

    def is_satisfied(self, rule: AlertRuleModel, value: float, threshold: float) -> bool:
        operator = ConditionOperator.parse(rule.condition)
        if operator is None:
            self.logger.warning(f"[RULE] [{rule.id}] Unknown condition '{rule.condition}', treating as not satisfied")
            return False
        return check_condition(operator, value, threshold)

    def build_message(self, rule: AlertRuleModel, value: float, threshold: float) -> str:
        is_percent = "rate" in rule.metric or "percent" in rule.metric
        value_str = f"{value:.2f}%" if is_percent else _format_number(value)
        threshold_str = f"{_format_number(threshold)}%" if is_percent else _format_number(threshold)

        operator = ConditionOperator.parse(rule.condition)
        description = operator.description if operator else "crossed"

        return (
            f'Alert rule "{rule.name}" has been triggered.\n'
            f"\n"
            f"Metric: {rule.metric}\n"
            f"Current Value: {value_str}\n"
            f"Condition: {rule.condition}\n"
            f"Threshold: {threshold_str}\n"
            f"\n"
            f"The {rule.metric} has {description} {threshold_str}.\n"
            f"\n"
            f"Time Window: {_format_number(self.window_minutes)} minutes\n"
            f"Notification: {rule.notify}"
        )

    async def _fire(
        self,
        rule: AlertRuleModel,
        value: float,
        threshold: float,
        trigger_count: int | None,
        source: str | None = None,
    ) -> AlertModel:
        severity = derive_severity(rule.metric, value, threshold)
        metadata = {
            "rule_id": rule.id,
            "rule_name": rule.name,
            "metric": rule.metric,
            "condition": rule.condition,
            "threshold": threshold,
            "current_value": value,
            "trigger_count": trigger_count,
            "window_size_minutes": self.window_minutes,
        }
        if source is not None:
            metadata["trigger_source"] = source

        self.logger.warning(
            f"[RULE] [{rule.id}] '{rule.name}' fired: {rule.metric}={_format_number(value)} "
            f"{rule.condition} {_format_number(threshold)} → {severity}"
        )

        return await self.alert_service.create_alert(
            title=f"Alert: {rule.name}",
            message=self.build_message(rule, value, threshold),
            severity=severity,
            source=f"alert-rule:{rule.id}",
            metadata=metadata,
            send_email=rule.sends_email,
            recipients=rule.recipients,
        )
