from core.schema.log_event_schema import LogEvent
from repository.base_repository import DocumentRepository
from repository.document_store import DocumentQuery


class LogEventRepository(DocumentRepository):
    """Read access to the log collection (plus insert, used by ingestion and tests)."""

    collection = "logs"

    async def insert(self, event: LogEvent) -> LogEvent:
        await self._put(str(event.id), event.model_dump(mode="json", exclude_none=True))
        return event

    async def get_after_id(self, high_water_mark: int, limit: int = 1000) -> list[LogEvent]:
        """Events with id > high_water_mark, ascending by id."""
        query = DocumentQuery(sort_field="id", sort_desc=False, limit=limit).where("id", "gt", high_water_mark)
        result = await self._query(query)
        return [LogEvent.model_validate(doc) for doc in result.items]

    async def get_since(self, since_iso: str, limit: int = 5000) -> list[LogEvent]:
        """Events with timestamp >= since_iso, newest first."""
        query = DocumentQuery(sort_field="timestamp", sort_desc=True, limit=limit).where("timestamp", "gte", since_iso)
        result = await self._query(query)
        return [LogEvent.model_validate(doc) for doc in result.items]
