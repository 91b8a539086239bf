import logging
from enum import Enum
from typing import Any

from core.util.decorator.timeout import call_with_timeout
from repository.document_store import DocumentQuery, DocumentStore, QueryResult


class DocumentRepository:
    """
    One collection of the document store, every call bounded by timeout_sec.

    Subclasses add typed accessors; failures surface as CollaboratorError or
    CollaboratorTimeoutError.
    """

    collection: str = ""

    def __init__(self, store: DocumentStore, timeout_sec: float = 10.0):
        self.store = store
        self.timeout_sec = timeout_sec
        self.logger = logging.getLogger(self.__class__.__name__)

    async def _query(self, query: DocumentQuery) -> QueryResult:
        for f in query.filters:
            if isinstance(f.value, Enum):
                f.value = f.value.value
        return await call_with_timeout(
            self.store.query(self.collection, query), self.timeout_sec, f"query {self.collection}", self.logger
        )

    async def _get(self, doc_id: str) -> dict[str, Any] | None:
        return await call_with_timeout(
            self.store.get(self.collection, doc_id), self.timeout_sec, f"get {self.collection}/{doc_id}", self.logger
        )

    async def _put(self, doc_id: str, document: dict[str, Any]) -> None:
        await call_with_timeout(
            self.store.put(self.collection, doc_id, document),
            self.timeout_sec,
            f"put {self.collection}/{doc_id}",
            self.logger,
        )

    async def _delete(self, doc_id: str) -> bool:
        return await call_with_timeout(
            self.store.delete(self.collection, doc_id),
            self.timeout_sec,
            f"delete {self.collection}/{doc_id}",
            self.logger,
        )
