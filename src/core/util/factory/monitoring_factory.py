"""Factory wiring the alerting pipeline: store, repositories, services and background tasks."""

import logging
from dataclasses import dataclass

from core.evaluator.metric_aggregator import MetricAggregator
from core.schema.notifier_schema import NotificationConfigSchema
from core.schema.system_config_schema import SystemConfig
from core.service.alert_rule_service import AlertRuleService
from core.service.alert_service import AlertService
from core.task.rate_limit_sweep_task import RateLimitSweepTask
from core.task.rule_monitor_task import AlertRuleMonitor
from core.util.factory.notifier_factory import build_notification_stack
from core.util.rate_limiter import EmailRateLimiter
from repository.alert_repository import AlertRepository, EmailLogRepository
from repository.alert_rule_repository import AlertRuleRepository, RuleStateRepository
from repository.document_store import DocumentStore
from repository.in_memory_document_store import InMemoryDocumentStore
from repository.log_repository import LogEventRepository
from repository.sqlite_document_store import SQLiteDocumentStore
from repository.util.db_manager import SQLiteDBManager

logger = logging.getLogger("MonitoringFactory")


@dataclass
class HeraldComponents:
    store: DocumentStore
    log_repository: LogEventRepository
    alert_repository: AlertRepository
    email_log_repository: EmailLogRepository
    rule_repository: AlertRuleRepository
    state_repository: RuleStateRepository
    rate_limiter: EmailRateLimiter
    alert_service: AlertService
    alert_rule_service: AlertRuleService
    monitor: AlertRuleMonitor
    sweep_task: RateLimitSweepTask
    db_manager: SQLiteDBManager | None = None

    async def close(self) -> None:
        await self.sweep_task.stop()
        await self.monitor.stop()
        await self.store.close()
        logger.info("[STORE] Closed")


async def build_document_store(system_config: SystemConfig) -> tuple[DocumentStore, SQLiteDBManager | None]:
    """Create and initialize the configured document store backend."""
    if system_config.STORE.BACKEND == "memory":
        store = InMemoryDocumentStore()
        await store.init()
        logger.info("[STORE] In-memory document store initialized")
        return store, None

    db_manager = SQLiteDBManager.from_config(system_config.STORE)
    try:
        store = SQLiteDocumentStore(db_manager)
        await store.init()
    except Exception as e:
        logger.error(f"[STORE] Failed to initialize SQLite store at {system_config.STORE.DB_PATH}: {e}", exc_info=True)
        await db_manager.dispose()
        raise

    logger.info(f"[STORE] SQLite document store initialized ({system_config.STORE.DB_PATH})")
    return store, db_manager


def build_components(
    system_config: SystemConfig,
    notifier_config: NotificationConfigSchema,
    store: DocumentStore,
    db_manager: SQLiteDBManager | None = None,
) -> HeraldComponents:
    """Wire every component on top of an initialized store. Nothing is started."""
    timeout = system_config.COLLABORATOR_TIMEOUT_SEC

    log_repository = LogEventRepository(store, timeout_sec=timeout)
    alert_repository = AlertRepository(store, timeout_sec=timeout)
    email_log_repository = EmailLogRepository(store, timeout_sec=timeout)
    rule_repository = AlertRuleRepository(store, timeout_sec=timeout)
    state_repository = RuleStateRepository(store, timeout_sec=timeout)

    dispatcher, rate_limiter = build_notification_stack(notifier_config, email_log_repository)

    alert_service = AlertService(
        alert_repository=alert_repository,
        email_log_repository=email_log_repository,
        dispatcher=dispatcher,
        rate_limiter=rate_limiter,
        default_recipients=notifier_config.default_recipients,
    )

    aggregator = MetricAggregator(
        log_repository,
        window_seconds=system_config.MONITOR_WINDOW_SECONDS,
        window_limit=system_config.MONITOR_WINDOW_LIMIT,
    )

    monitor = AlertRuleMonitor(
        rule_repository=rule_repository,
        log_repository=log_repository,
        state_repository=state_repository,
        aggregator=aggregator,
        alert_service=alert_service,
        interval_seconds=system_config.MONITOR_INTERVAL_SECONDS,
        eval_concurrency=system_config.MONITOR_EVAL_CONCURRENCY,
        batch_limit=system_config.MONITOR_BATCH_LIMIT,
    )

    alert_rule_service = AlertRuleService(
        rule_repository=rule_repository,
        alert_service=alert_service,
        monitor=monitor,
        aggregator=aggregator,
    )

    sweep_task = RateLimitSweepTask(rate_limiter, interval_seconds=notifier_config.rate_limits.cleanup_interval_sec)

    return HeraldComponents(
        store=store,
        log_repository=log_repository,
        alert_repository=alert_repository,
        email_log_repository=email_log_repository,
        rule_repository=rule_repository,
        state_repository=state_repository,
        rate_limiter=rate_limiter,
        alert_service=alert_service,
        alert_rule_service=alert_rule_service,
        monitor=monitor,
        sweep_task=sweep_task,
        db_manager=db_manager,
    )


async def build_herald(system_config: SystemConfig, notifier_config: NotificationConfigSchema) -> HeraldComponents:
    store, db_manager = await build_document_store(system_config)
    return build_components(system_config, notifier_config, store, db_manager)
