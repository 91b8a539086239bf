"""Unit tests for RuleStateStore."""

import pytest

from core.evaluator.rule_state_store import RuleStateStore
from core.schema.alert_rule_schema import RuleEvaluationState


class TestRuleStateStore:
    @pytest.mark.asyncio
    async def test_load_restores_persisted_states(self, state_repository):
        await state_repository.save(RuleEvaluationState(rule_id="rule_a", is_active=True, trigger_count=3))
        await state_repository.save(RuleEvaluationState(rule_id="rule_b"))

        store = RuleStateStore(state_repository)
        loaded = await store.load()

        assert loaded == 2
        assert store.loaded is True
        assert store.get("rule_a").trigger_count == 3
        assert store.active_count == 1
        assert store.total_triggers == 3

    @pytest.mark.asyncio
    async def test_get_or_create_starts_inactive(self, state_repository):
        store = RuleStateStore(state_repository)
        await store.load()

        async with store.lock_for("rule_new"):
            state = store.get_or_create("rule_new")

        assert state.is_active is False
        assert state.trigger_count == 0
        assert state.window_start is not None

    @pytest.mark.asyncio
    async def test_get_returns_a_copy(self, state_repository):
        store = RuleStateStore(state_repository)
        await store.load()
        async with store.lock_for("rule_a"):
            await store.persist(RuleEvaluationState(rule_id="rule_a"))

        snapshot = store.get("rule_a")
        snapshot.is_active = True

        assert store.get("rule_a").is_active is False

    @pytest.mark.asyncio
    async def test_lock_is_stable_per_rule(self, state_repository):
        store = RuleStateStore(state_repository)

        assert store.lock_for("rule_a") is store.lock_for("rule_a")
        assert store.lock_for("rule_a") is not store.lock_for("rule_b")

    @pytest.mark.asyncio
    async def test_reset_persists_fresh_state(self, state_repository):
        await state_repository.save(RuleEvaluationState(rule_id="rule_a", is_active=True, trigger_count=5))
        store = RuleStateStore(state_repository)
        await store.load()

        state = await store.reset("rule_a")

        assert state.is_active is False
        assert state.trigger_count == 0
        assert (await state_repository.get("rule_a")).trigger_count == 0

    @pytest.mark.asyncio
    async def test_retire_removes_from_cache_and_store(self, state_repository):
        await state_repository.save(RuleEvaluationState(rule_id="rule_a", is_active=True))
        store = RuleStateStore(state_repository)
        await store.load()

        await store.retire("rule_a")

        assert store.get("rule_a") is None
        assert await state_repository.get("rule_a") is None

    @pytest.mark.asyncio
    async def test_close_drops_everything(self, state_repository):
        await state_repository.save(RuleEvaluationState(rule_id="rule_a"))
        store = RuleStateStore(state_repository)
        await store.load()

        store.close()

        assert store.snapshot() == []
        assert store.loaded is False
