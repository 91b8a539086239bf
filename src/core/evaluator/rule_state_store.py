import asyncio
import logging

from core.schema.alert_rule_schema import RuleEvaluationState
from core.util.time_util import utc_now_iso
from repository.alert_rule_repository import RuleStateRepository


class RuleStateStore:
    """
    In-memory cache of RuleEvaluationState, one asyncio.Lock per rule.

    Lifecycle: constructed and loaded when the monitoring loop starts, handed to
    the RuleEvaluator, torn down when the loop stops. Every mutation of a rule's
    state happens while holding that rule's lock (see `lock_for`).

    Retired rule ids are remembered for the lifetime of the store: an evaluation
    that was already queued when its rule was deleted finds the id retired once
    it gets the lock and leaves no state behind.
    """

    def __init__(self, repository: RuleStateRepository):
        self.repository = repository
        self._states: dict[str, RuleEvaluationState] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._retired: set[str] = set()
        self.loaded: bool = False
        self.logger = logging.getLogger(__class__.__name__)

    async def load(self) -> int:
        states = await self.repository.list_all()
        self._states = {state.rule_id: state for state in states}
        self.loaded = True
        self.logger.info(f"[STATE] Loaded {len(states)} rule states")
        return len(states)

    def lock_for(self, rule_id: str) -> asyncio.Lock:
        lock = self._locks.get(rule_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[rule_id] = lock
        return lock

    def get_or_create(self, rule_id: str) -> RuleEvaluationState:
        """Caller must hold lock_for(rule_id)."""
        state = self._states.get(rule_id)
        if state is None:
            state = RuleEvaluationState(rule_id=rule_id, window_start=utc_now_iso())
            self._states[rule_id] = state
        return state

    async def persist(self, state: RuleEvaluationState) -> None:
        """Caller must hold lock_for(state.rule_id)."""
        if state.rule_id in self._retired:
            self.logger.debug(f"[STATE] [{state.rule_id}] retired, not persisting")
            return
        state.updated_at = utc_now_iso()
        self._states[state.rule_id] = state
        await self.repository.save(state)

    def get(self, rule_id: str) -> RuleEvaluationState | None:
        state = self._states.get(rule_id)
        return state.model_copy() if state else None

    def snapshot(self) -> list[RuleEvaluationState]:
        return [state.model_copy() for state in self._states.values()]

    async def reset(self, rule_id: str) -> RuleEvaluationState:
        """Replace the rule's state with a fresh, inactive one."""
        async with self.lock_for(rule_id):
            state = RuleEvaluationState(rule_id=rule_id, window_start=utc_now_iso())
            await self.persist(state)
        self.logger.info(f"[STATE] [{rule_id}] reset")
        return state

    async def retire(self, rule_id: str) -> None:
        """Drop the rule's state from cache and store (rule deleted)."""
        async with self.lock_for(rule_id):
            self._retired.add(rule_id)
            self._states.pop(rule_id, None)
            await self.repository.delete(rule_id)
        self._locks.pop(rule_id, None)
        self.logger.info(f"[STATE] [{rule_id}] retired")

    def is_retired(self, rule_id: str) -> bool:
        return rule_id in self._retired

    @property
    def active_count(self) -> int:
        return sum(1 for state in self._states.values() if state.is_active)

    @property
    def total_triggers(self) -> int:
        return sum(state.trigger_count for state in self._states.values())

    def close(self) -> None:
        self._states.clear()
        self._locks.clear()
        self._retired.clear()
        self.loaded = False
