"""
Alert Rule Service

Rule CRUD with validation, retirement of evaluation state on delete, and the
synchronous push-style trigger.
"""

import logging
import secrets
from dataclasses import asdict, dataclass, field
from typing import Any

from pydantic import ValidationError

from core.evaluator.metric_aggregator import MetricAggregator
from core.evaluator.rule_evaluator import RuleEvaluator
from core.model.enum.alert_enum import EmailStatus
from core.model.enum.condition_enum import MetricName
from core.schema.alert_rule_schema import AlertRuleInput, AlertRuleModel
from core.schema.alert_schema import AlertModel
from core.service.alert_service import AlertService
from core.task.rule_monitor_task import AlertRuleMonitor
from core.util.time_util import epoch_ms, utc_now_iso
from exception import InputValidationError, RuleNotFoundError
from repository.alert_rule_repository import AlertRuleRepository


@dataclass
class TriggerResult:
    metric: str
    value: float
    source: str
    rules_evaluated: int = 0
    alerts_triggered: int = 0
    emails_sent: int = 0
    triggered_alerts: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def _validation_message(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        location = ".".join(str(loc) for loc in err["loc"])
        parts.append(f"{location}: {err['msg']}" if location else err["msg"])
    return "; ".join(parts)


class AlertRuleService:
    def __init__(
        self,
        rule_repository: AlertRuleRepository,
        alert_service: AlertService,
        monitor: AlertRuleMonitor,
        aggregator: MetricAggregator,
    ):
        self.rule_repository = rule_repository
        self.alert_service = alert_service
        self.monitor = monitor
        self.aggregator = aggregator
        self.logger = logging.getLogger("AlertRuleService")

    # ----------------------------------------------------------------------
    # CRUD
    # ----------------------------------------------------------------------
    async def create_rule(self, payload: dict[str, Any]) -> AlertRuleModel:
        definition = self._validate(payload)
        rule = AlertRuleModel(id=f"rule_{epoch_ms()}_{secrets.token_hex(4)}", **definition.model_dump(mode="json"))

        if rule.metric not in set(MetricName):
            self.logger.warning(f"[RULE] '{rule.name}' uses metric '{rule.metric}' with no aggregation (push only)")

        await self.rule_repository.save(rule)
        self.logger.info(f"[RULE] Created {rule.id} '{rule.name}': {rule.metric} {rule.condition} {rule.threshold}")
        return rule

    async def get_rule(self, rule_id: str) -> AlertRuleModel:
        rule = await self.rule_repository.get(rule_id)
        if rule is None:
            raise RuleNotFoundError(f"Alert rule not found: {rule_id}", record_id=rule_id)
        return rule

    async def list_rules(
        self, enabled: bool | None = None, limit: int | None = None, offset: int = 0
    ) -> tuple[list[AlertRuleModel], int]:
        return await self.rule_repository.find(enabled=enabled, limit=limit, offset=offset)

    async def update_rule(self, rule_id: str, changes: dict[str, Any]) -> AlertRuleModel:
        """Partial update; the merged rule is validated as a whole."""
        existing = await self.get_rule(rule_id)

        merged = existing.model_dump(mode="json")
        merged.update({key: value for key, value in changes.items() if value is not None})
        definition = self._validate(merged)

        rule = AlertRuleModel(
            id=existing.id,
            created_at=existing.created_at,
            updated_at=utc_now_iso(),
            **definition.model_dump(mode="json"),
        )
        await self.rule_repository.save(rule)
        self.logger.info(f"[RULE] Updated {rule.id} '{rule.name}'")
        return rule

    async def delete_rule(self, rule_id: str) -> None:
        """Removes the rule and retires its evaluation state. Alerts it created stay."""
        await self.get_rule(rule_id)
        await self.rule_repository.delete(rule_id)
        await self.monitor.retire_rule_state(rule_id)
        self.logger.info(f"[RULE] Deleted {rule_id}")

    # ----------------------------------------------------------------------
    # Push-style trigger
    # ----------------------------------------------------------------------
    async def trigger(self, metric: str, value: float, source: str = "System") -> TriggerResult:
        """Evaluate every enabled rule on `metric` against a pushed value, outside the polling loop."""
        if not metric or not metric.strip():
            raise InputValidationError("metric is required", field="metric")
        metric = metric.strip().lower()

        rules, _ = await self.rule_repository.find(enabled=True, metric=metric)
        evaluator = self._trigger_evaluator()
        result = TriggerResult(metric=metric, value=value, source=source or "System", rules_evaluated=len(rules))

        for rule in rules:
            try:
                alert: AlertModel | None = await evaluator.evaluate_value(rule, value, source=result.source)
            except Exception as e:
                self.logger.error(f"[TRIGGER] Rule {rule.id} failed: {e}")
                continue

            if alert is None:
                continue

            logs, _ = await self.alert_service.get_email_logs(alert_id=alert.id, limit=100)
            sent = sum(1 for log in logs if log.status == EmailStatus.SENT)
            result.alerts_triggered += 1
            result.emails_sent += sent
            result.triggered_alerts.append(
                {
                    "rule_id": rule.id,
                    "rule_name": rule.name,
                    "alert_id": alert.id,
                    "severity": str(alert.severity),
                    "emails_sent": sent,
                }
            )

        self.logger.info(
            f"[TRIGGER] {metric}={value} from {result.source}: "
            f"rules={result.rules_evaluated}, alerts={result.alerts_triggered}, emails={result.emails_sent}"
        )
        return result

    # ----------------------------------------------------------------------
    # Helpers
    # ----------------------------------------------------------------------
    def _trigger_evaluator(self) -> RuleEvaluator:
        if self.monitor.evaluator is not None:
            return self.monitor.evaluator
        # Stateless path only: evaluate_value never touches the state store
        return RuleEvaluator(self.aggregator, state_store=None, alert_service=self.alert_service)

    @staticmethod
    def _validate(payload: dict[str, Any]) -> AlertRuleInput:
        try:
            return AlertRuleInput.model_validate(payload)
        except ValidationError as e:
            raise InputValidationError(f"Invalid alert rule: {_validation_message(e)}") from e
