"""Repositories for alert rules and their persisted evaluation state."""

from core.schema.alert_rule_schema import AlertRuleModel, RuleEvaluationState
from repository.base_repository import DocumentRepository
from repository.document_store import DocumentQuery


class AlertRuleRepository(DocumentRepository):
    collection = "alert_rules"

    async def save(self, rule: AlertRuleModel) -> AlertRuleModel:
        await self._put(rule.id, rule.model_dump(mode="json"))
        return rule

    async def get(self, rule_id: str) -> AlertRuleModel | None:
        doc = await self._get(rule_id)
        return AlertRuleModel.model_validate(doc) if doc else None

    async def delete(self, rule_id: str) -> bool:
        return await self._delete(rule_id)

    async def find(
        self, enabled: bool | None = None, metric: str | None = None, limit: int | None = None, offset: int = 0
    ) -> tuple[list[AlertRuleModel], int]:
        query = DocumentQuery(sort_field="created_at", sort_desc=True, limit=limit, offset=offset)
        if enabled is not None:
            query.where("enabled", "eq", enabled)
        if metric:
            query.where("metric", "eq", metric)

        result = await self._query(query)
        rules: list[AlertRuleModel] = []
        for doc in result.items:
            try:
                rules.append(AlertRuleModel.model_validate(doc))
            except ValueError as e:
                self.logger.warning(f"[RULE] Skipping unreadable rule {doc.get('id')}: {e}")
        return rules, result.total

    async def list_enabled(self) -> list[AlertRuleModel]:
        rules, _ = await self.find(enabled=True)
        return rules


class RuleStateRepository(DocumentRepository):
    collection = "alert_rule_states"

    async def save(self, state: RuleEvaluationState) -> None:
        await self._put(state.rule_id, state.model_dump(mode="json"))

    async def get(self, rule_id: str) -> RuleEvaluationState | None:
        doc = await self._get(rule_id)
        return RuleEvaluationState.model_validate(doc) if doc else None

    async def delete(self, rule_id: str) -> bool:
        return await self._delete(rule_id)

    async def list_all(self) -> list[RuleEvaluationState]:
        result = await self._query(DocumentQuery())
        return [RuleEvaluationState.model_validate(doc) for doc in result.items]
