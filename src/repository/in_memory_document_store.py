import copy
import logging
import operator
from collections import defaultdict
from typing import Any, Callable

from repository.document_store import DocumentQuery, DocumentStore, FieldFilter, QueryResult

logger = logging.getLogger("InMemoryDocumentStore")

_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "eq": operator.eq,
    "ne": operator.ne,
    "gt": operator.gt,
    "gte": operator.ge,
    "lt": operator.lt,
    "lte": operator.le,
}


class InMemoryDocumentStore(DocumentStore):
    """Process-local store; documents are copied in and out so callers never share state."""

    def __init__(self):
        self._collections: dict[str, dict[str, dict[str, Any]]] = defaultdict(dict)

    async def init(self) -> None:
        logger.info("[MemoryStore] Initialized")

    async def query(self, collection: str, query: DocumentQuery) -> QueryResult:
        docs = [doc for doc in self._collections[collection].values() if self._matches(doc, query)]

        if query.sort_field:
            docs = self._sorted(docs, query.sort_field, query.sort_desc)

        total = len(docs)
        end = None if query.limit is None else query.offset + query.limit
        page = docs[query.offset : end]
        return QueryResult(items=[copy.deepcopy(doc) for doc in page], total=total)

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        doc = self._collections[collection].get(str(doc_id))
        return copy.deepcopy(doc) if doc is not None else None

    async def put(self, collection: str, doc_id: str, document: dict[str, Any]) -> None:
        self._collections[collection][str(doc_id)] = copy.deepcopy(document)

    async def delete(self, collection: str, doc_id: str) -> bool:
        return self._collections[collection].pop(str(doc_id), None) is not None

    def count(self, collection: str) -> int:
        return len(self._collections[collection])

    # ----------------------------------------------------------------------
    # Matching helpers
    # ----------------------------------------------------------------------
    @staticmethod
    def _matches(doc: dict[str, Any], query: DocumentQuery) -> bool:
        if not all(InMemoryDocumentStore._passes(doc, f) for f in query.filters):
            return False

        if query.search and query.search_fields:
            needle = query.search.lower()
            return any(needle in str(doc.get(field) or "").lower() for field in query.search_fields)

        return True

    @staticmethod
    def _passes(doc: dict[str, Any], field_filter: FieldFilter) -> bool:
        value = doc.get(field_filter.field)
        if value is None and field_filter.op != "ne":
            return field_filter.op == "eq" and field_filter.value is None
        try:
            return _OPERATORS[field_filter.op](value, field_filter.value)
        except TypeError:
            return False

    @staticmethod
    def _sorted(docs: list[dict[str, Any]], field: str, desc: bool) -> list[dict[str, Any]]:
        present = [d for d in docs if d.get(field) is not None]
        missing = [d for d in docs if d.get(field) is None]
        present.sort(key=lambda d: d[field], reverse=desc)
        return present + missing
