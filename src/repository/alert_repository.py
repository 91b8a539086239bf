"""Repositories for alerts and their email delivery log."""

from core.model.enum.alert_enum import AlertSeverity, AlertStatus
from core.schema.alert_schema import AlertModel, EmailLogModel
from repository.base_repository import DocumentRepository
from repository.document_store import DocumentQuery


class AlertRepository(DocumentRepository):
    collection = "alerts"

    async def save(self, alert: AlertModel) -> AlertModel:
        await self._put(alert.id, alert.model_dump(mode="json"))
        return alert

    async def get(self, alert_id: str) -> AlertModel | None:
        doc = await self._get(alert_id)
        return AlertModel.model_validate(doc) if doc else None

    async def delete(self, alert_id: str) -> bool:
        return await self._delete(alert_id)

    async def find(
        self,
        search: str | None = None,
        severity: AlertSeverity | str | None = None,
        status: AlertStatus | str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[AlertModel], int]:
        """Newest first (ids are time-ordered)."""
        query = DocumentQuery(
            search=search or None,
            search_fields=["title", "message", "source"],
            sort_field="id",
            sort_desc=True,
            limit=limit,
            offset=offset,
        )
        if severity:
            query.where("severity", "eq", severity)
        if status:
            query.where("status", "eq", status)

        result = await self._query(query)
        return [AlertModel.model_validate(doc) for doc in result.items], result.total

    async def count_by_status(self, status: AlertStatus) -> int:
        result = await self._query(DocumentQuery(limit=0).where("status", "eq", status))
        return result.total


class EmailLogRepository(DocumentRepository):
    collection = "email_logs"

    async def append(self, log: EmailLogModel) -> EmailLogModel:
        await self._put(log.id, log.model_dump(mode="json"))
        return log

    async def find(
        self, alert_id: str | None = None, limit: int = 50, offset: int = 0
    ) -> tuple[list[EmailLogModel], int]:
        """Newest first by creation time."""
        query = DocumentQuery(sort_field="created_at", sort_desc=True, limit=limit, offset=offset)
        if alert_id:
            query.where("alert_id", "eq", alert_id)

        result = await self._query(query)
        return [EmailLogModel.model_validate(doc) for doc in result.items], result.total
