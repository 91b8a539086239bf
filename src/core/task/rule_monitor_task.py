import asyncio
import logging
from dataclasses import asdict, dataclass

from core.evaluator.metric_aggregator import MetricAggregator
from core.evaluator.rule_evaluator import RuleEvaluator
from core.evaluator.rule_state_store import RuleStateStore
from core.model.enum.monitor_state_enum import MonitorState
from core.schema.alert_rule_schema import AlertRuleModel, RuleEvaluationState
from core.schema.log_event_schema import LogEvent
from core.service.alert_service import AlertService
from core.task.async_job_base import AsyncRecurringJob
from repository.alert_rule_repository import AlertRuleRepository, RuleStateRepository
from repository.log_repository import LogEventRepository


@dataclass
class CycleResult:
    skipped: str | None = None
    rules_evaluated: int = 0
    alerts_fired: int = 0
    failures: int = 0
    events_processed: int = 0
    high_water_mark: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class AlertRuleMonitor(AsyncRecurringJob):
    """
    Periodic evaluation of enabled alert rules against new log events.

    Each cycle:
    1. enabled rules (none → skip)
    2. events with id > high-water mark, ascending (none → skip)
    3. every rule evaluated concurrently, bounded by eval_concurrency
    4. high-water mark advanced to the batch max once all evaluations finished

    A crash mid-cycle leaves the mark untouched, so the batch is evaluated
    again; the hysteresis latch keeps that from creating duplicate alerts.
    """

    def __init__(
        self,
        rule_repository: AlertRuleRepository,
        log_repository: LogEventRepository,
        state_repository: RuleStateRepository,
        aggregator: MetricAggregator,
        alert_service: AlertService,
        interval_seconds: float = 30.0,
        eval_concurrency: int = 8,
        batch_limit: int = 1000,
    ):
        super().__init__(interval_seconds)
        self.rule_repository = rule_repository
        self.log_repository = log_repository
        self.state_repository = state_repository
        self.aggregator = aggregator
        self.alert_service = alert_service
        self.eval_concurrency = max(1, eval_concurrency)
        self.batch_limit = batch_limit

        self.high_water_mark: int = 0
        self.state_store: RuleStateStore | None = None
        self.evaluator: RuleEvaluator | None = None
        self._cycle_lock = asyncio.Lock()
        self.logger = logging.getLogger("AlertRuleMonitor")

    # ----------------------------------------------------------------------
    # Lifecycle
    # ----------------------------------------------------------------------
    @property
    def state(self) -> MonitorState:
        return MonitorState.RUNNING if self.is_running else MonitorState.STOPPED

    async def on_start(self) -> None:
        store = RuleStateStore(self.state_repository)
        await store.load()
        self.state_store = store
        self.evaluator = RuleEvaluator(self.aggregator, store, self.alert_service)

        self.logger.info("=" * 60)
        self.logger.info(
            f"[MONITOR] Started: interval={self.interval}s, window={self.aggregator.window_seconds}s, "
            f"concurrency={self.eval_concurrency}, high_water_mark={self.high_water_mark}"
        )
        self.logger.info("=" * 60)

    async def on_stop(self) -> None:
        async with self._cycle_lock:
            if self.state_store:
                self.state_store.close()
            self.state_store = None
            self.evaluator = None
        self.logger.info("[MONITOR] Stopped")

    async def run_once(self) -> None:
        await self.run_cycle()

    # ----------------------------------------------------------------------
    # Cycle
    # ----------------------------------------------------------------------
    async def run_cycle(self) -> CycleResult:
        evaluator = self.evaluator
        if evaluator is None:
            raise RuntimeError("Monitoring loop is not running")

        async with self._cycle_lock:
            rules = await self.rule_repository.list_enabled()
            if not rules:
                self.logger.debug("[MONITOR] No enabled rules, skipping cycle")
                return CycleResult(skipped="no enabled rules", high_water_mark=self.high_water_mark)

            batch = await self.log_repository.get_after_id(self.high_water_mark, limit=self.batch_limit)
            if not batch:
                self.logger.debug(f"[MONITOR] No new log events after id {self.high_water_mark}, skipping cycle")
                return CycleResult(skipped="no new log events", high_water_mark=self.high_water_mark)

            semaphore = asyncio.Semaphore(self.eval_concurrency)
            results = await asyncio.gather(
                *(self._evaluate_rule(evaluator, rule, batch, semaphore) for rule in rules),
                return_exceptions=True,
            )

            fired = sum(1 for r in results if r is True)
            failures = sum(1 for r in results if isinstance(r, BaseException) or r is None)

            self.high_water_mark = max(self.high_water_mark, max(event.id for event in batch))

            self.logger.info(
                f"[MONITOR] Cycle done: rules={len(rules)}, events={len(batch)}, fired={fired}, "
                f"failures={failures}, high_water_mark={self.high_water_mark}"
            )
            return CycleResult(
                rules_evaluated=len(rules),
                alerts_fired=fired,
                failures=failures,
                events_processed=len(batch),
                high_water_mark=self.high_water_mark,
            )

    async def _evaluate_rule(
        self, evaluator: RuleEvaluator, rule: AlertRuleModel, batch: list[LogEvent], semaphore: asyncio.Semaphore
    ) -> bool | None:
        """True when an alert fired, False when not, None when evaluation failed."""
        async with semaphore:
            try:
                alert = await evaluator.evaluate(rule, batch)
                return alert is not None
            except Exception as e:
                self.logger.error(f"[MONITOR] Rule {rule.id} ('{rule.name}') evaluation failed: {e}")
                return None

    # ----------------------------------------------------------------------
    # Inspection & administration
    # ----------------------------------------------------------------------
    async def get_rule_states(self) -> list[RuleEvaluationState]:
        if self.state_store:
            return self.state_store.snapshot()
        return await self.state_repository.list_all()

    async def get_stats(self) -> dict:
        states = await self.get_rule_states()
        return {
            "is_running": self.is_running,
            "rules_monitored": len(states),
            "active_alerts": sum(1 for s in states if s.is_active),
            "total_triggers": sum(s.trigger_count for s in states),
            "last_processed_log_id": self.high_water_mark,
            "interval_seconds": self.interval,
            "window_seconds": self.aggregator.window_seconds,
        }

    async def reset_rule_state(self, rule_id: str) -> RuleEvaluationState:
        if self.state_store:
            return await self.state_store.reset(rule_id)

        state = RuleEvaluationState(rule_id=rule_id)
        await self.state_repository.save(state)
        self.logger.info(f"[STATE] [{rule_id}] reset")
        return state

    async def retire_rule_state(self, rule_id: str) -> None:
        if self.state_store:
            await self.state_store.retire(rule_id)
        else:
            await self.state_repository.delete(rule_id)
