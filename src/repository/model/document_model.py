"""SQLAlchemy model for JSON document storage."""

from datetime import datetime

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from core.util.time_util import TIMEZONE_INFO


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""

    ...


class DocumentRecord(Base):
    """
    One document of one collection.

    The body is a JSON object; filters and sorts address its fields through
    SQLite json_extract().
    """

    __tablename__ = "documents"

    collection: Mapped[str] = mapped_column(String(64), primary_key=True)
    doc_id: Mapped[str] = mapped_column(String(128), primary_key=True)

    body: Mapped[str] = mapped_column(Text, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=lambda: datetime.now(tz=TIMEZONE_INFO)
    )

    __table_args__ = (Index("idx_collection", "collection"),)

    def __repr__(self) -> str:
        return f"<DocumentRecord(collection={self.collection}, doc_id={self.doc_id})>"
