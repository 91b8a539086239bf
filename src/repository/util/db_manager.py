"""
Engine and sessions for the SQLite document database.

One file holds every collection. Connections run in WAL mode so API reads
proceed while a monitoring cycle writes, and wait up to BUSY_TIMEOUT_MS for a
competing writer before reporting "database is locked".
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from core.schema.system_config_schema import StoreConfig
from repository.model.document_model import Base

logger = logging.getLogger("SQLiteDBManager")


class SQLiteDBManager:
    def __init__(self, db_path: str, busy_timeout_ms: int = 5000, echo: bool = False):
        self.db_path = db_path
        self.busy_timeout_ms = int(busy_timeout_ms)
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        self.async_engine: AsyncEngine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", echo=echo)
        event.listen(self.async_engine.sync_engine, "connect", self._configure_connection)
        self._sessions = async_sessionmaker(self.async_engine, expire_on_commit=False, autoflush=False)
        self._disposed = False

    @classmethod
    def from_config(cls, store_config: StoreConfig) -> "SQLiteDBManager":
        return cls(store_config.DB_PATH, busy_timeout_ms=store_config.BUSY_TIMEOUT_MS, echo=store_config.ECHO_SQL)

    def _configure_connection(self, dbapi_conn, _connection_record) -> None:
        cursor = dbapi_conn.cursor()
        try:
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA synchronous=NORMAL")
            cursor.execute(f"PRAGMA busy_timeout={self.busy_timeout_ms}")
        finally:
            cursor.close()

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self._sessions() as session:
            yield session

    async def create_schema(self) -> None:
        async with self.async_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"[STORE] Document schema ready in {self.db_path}")

    async def dispose(self) -> None:
        """Release pooled connections. Later calls are no-ops."""
        if self._disposed:
            return
        self._disposed = True
        await self.async_engine.dispose()
        logger.info(f"[STORE] Closed {self.db_path}")
