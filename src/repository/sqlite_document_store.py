"""Document store backed by a single SQLite table of JSON bodies."""

import json
import logging
from datetime import datetime
from typing import Any

from sqlalchemy import String, cast, delete, func, or_, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from core.util.time_util import TIMEZONE_INFO
from repository.document_store import DocumentQuery, DocumentStore, FieldFilter, QueryResult
from repository.model.document_model import DocumentRecord
from repository.util.db_manager import SQLiteDBManager

logger = logging.getLogger(__name__)


class SQLiteDocumentStore(DocumentStore):
    """
    Documents live in one `documents` table keyed by (collection, doc_id).
    Predicates and sorts are evaluated by SQLite on json_extract(body, '$.<field>').
    """

    def __init__(self, db_manager: SQLiteDBManager):
        self.db = db_manager

    async def init(self) -> None:
        await self.db.create_schema()
        logger.info("Document database initialized")

    # --------------------------------------------------------------
    # QUERIES
    # --------------------------------------------------------------
    async def query(self, collection: str, query: DocumentQuery) -> QueryResult:
        conditions = self._conditions(collection, query)

        async with self.db.session() as session:
            count_stmt = select(func.count()).select_from(DocumentRecord).where(*conditions)
            total: int = (await session.execute(count_stmt)).scalar() or 0

            stmt = select(DocumentRecord.body).where(*conditions)
            if query.sort_field:
                sort_expr = self._field(query.sort_field)
                # Documents without the field sort last in both directions
                stmt = stmt.order_by(sort_expr.is_(None), sort_expr.desc() if query.sort_desc else sort_expr.asc())
            stmt = stmt.order_by(DocumentRecord.doc_id)

            if query.limit is not None:
                stmt = stmt.limit(query.limit)
            if query.offset:
                stmt = stmt.offset(query.offset)

            result = await session.execute(stmt)
            bodies = result.scalars().all()

        logger.debug(f"[Document] Query {collection}: filters={len(query.filters)}, total={total}, returned={len(bodies)}")

        return QueryResult(items=[json.loads(body) for body in bodies], total=total)

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        async with self.db.session() as session:
            record = await session.get(DocumentRecord, (collection, str(doc_id)))
        return json.loads(record.body) if record else None

    # --------------------------------------------------------------
    # WRITES
    # --------------------------------------------------------------
    async def put(self, collection: str, doc_id: str, document: dict[str, Any]) -> None:
        body = json.dumps(document, default=str, ensure_ascii=False)
        now = datetime.now(tz=TIMEZONE_INFO)

        stmt = sqlite_insert(DocumentRecord).values(collection=collection, doc_id=str(doc_id), body=body, updated_at=now)
        stmt = stmt.on_conflict_do_update(
            index_elements=[DocumentRecord.collection, DocumentRecord.doc_id],
            set_={"body": body, "updated_at": now},
        )

        async with self.db.session() as session:
            await session.execute(stmt)
            await session.commit()

    async def delete(self, collection: str, doc_id: str) -> bool:
        stmt = delete(DocumentRecord).where(
            DocumentRecord.collection == collection,
            DocumentRecord.doc_id == str(doc_id),
        )
        async with self.db.session() as session:
            result = await session.execute(stmt)
            await session.commit()
        return (result.rowcount or 0) > 0

    async def close(self) -> None:
        await self.db.dispose()

    # --------------------------------------------------------------
    # Helpers
    # --------------------------------------------------------------
    @staticmethod
    def _field(field: str):
        return func.json_extract(DocumentRecord.body, f"$.{field}")

    def _conditions(self, collection: str, query: DocumentQuery) -> list:
        conditions: list = [DocumentRecord.collection == collection]
        conditions.extend(self._predicate(f) for f in query.filters)

        if query.search and query.search_fields:
            needle = f"%{query.search.lower()}%"
            conditions.append(
                or_(*[func.lower(cast(self._field(field), String)).like(needle) for field in query.search_fields])
            )
        return conditions

    def _predicate(self, field_filter: FieldFilter):
        expr = self._field(field_filter.field)
        value = field_filter.value

        match field_filter.op:
            case "eq":
                return expr.is_(None) if value is None else expr == value
            case "ne":
                return expr.is_not(None) if value is None else or_(expr.is_(None), expr != value)
            case "gt":
                return expr > value
            case "gte":
                return expr >= value
            case "lt":
                return expr < value
            case "lte":
                return expr <= value
            case _:
                raise ValueError(f"Unsupported filter operator: {field_filter.op}")
