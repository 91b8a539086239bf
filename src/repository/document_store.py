"""
Document store contract.

A collection is a set of JSON-like documents addressed by id. Queries are
conjunctions of equality/range predicates on top-level fields, an optional
case-insensitive substring search over named fields, a sort on one field,
and limit/offset pagination.
"""

from abc import ABC, abstractmethod
from typing import Any, Literal

from pydantic import BaseModel, Field

FilterOp = Literal["eq", "ne", "gt", "gte", "lt", "lte"]


class FieldFilter(BaseModel):
    field: str
    op: FilterOp = "eq"
    value: Any


class DocumentQuery(BaseModel):
    filters: list[FieldFilter] = Field(default_factory=list)
    search: str | None = None
    search_fields: list[str] = Field(default_factory=list)
    sort_field: str | None = None
    sort_desc: bool = False
    limit: int | None = Field(default=None, ge=0)
    offset: int = Field(default=0, ge=0)

    def where(self, field: str, op: FilterOp, value: Any) -> "DocumentQuery":
        self.filters.append(FieldFilter(field=field, op=op, value=value))
        return self


class QueryResult(BaseModel):
    items: list[dict[str, Any]]
    total: int


class DocumentStore(ABC):
    @abstractmethod
    async def init(self) -> None: ...

    @abstractmethod
    async def query(self, collection: str, query: DocumentQuery) -> QueryResult:
        """total counts every match before limit/offset."""
        ...

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None: ...

    @abstractmethod
    async def put(self, collection: str, doc_id: str, document: dict[str, Any]) -> None:
        """Insert or replace."""
        ...

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> bool:
        """True when a document was removed."""
        ...

    async def close(self) -> None:
        return None
