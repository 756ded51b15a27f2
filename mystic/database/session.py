# mystic/database/session.py
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from mystic.database.base import Base

_SQLITE_PRAGMAS = (
    "PRAGMA foreign_keys=ON",
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
)


class Database:
    """
    The one storage backend of the app, chosen at startup from DATABASE_URL.

    Services never build engines themselves: they receive an AsyncSession
    opened from here (per bot update, per scheduler job, per test).
    """

    def __init__(self, database_url: str, *, echo: bool = False, busy_timeout_ms: int = 5000) -> None:
        self.database_url = database_url
        self.is_sqlite = make_url(database_url).get_backend_name() == "sqlite"

        self.engine: AsyncEngine = create_async_engine(
            database_url,
            echo=echo,
            pool_pre_ping=True,
            connect_args={"timeout": 30} if self.is_sqlite else {},
        )

        if self.is_sqlite:
            pragmas = (*_SQLITE_PRAGMAS, f"PRAGMA busy_timeout={int(busy_timeout_ms)}")

            @event.listens_for(self.engine.sync_engine, "connect")
            def _on_connect(dbapi_connection, _connection_record) -> None:  # type: ignore[no-redef]
                cursor = dbapi_connection.cursor()
                for stmt in pragmas:
                    cursor.execute(stmt)
                cursor.close()

        self.SessionLocal = async_sessionmaker(
            bind=self.engine,
            expire_on_commit=False,
            autoflush=False,
            class_=AsyncSession,
        )

    async def init_models(self) -> None:
        # registers every table on Base.metadata
        import mystic.database.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        await self.engine.dispose()

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self.SessionLocal() as s:
            yield s


@asynccontextmanager
async def transactional(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    All-or-nothing block on a session that may or may not be inside a
    transaction already (SQLAlchemy 2.x autobegin).

    Nested use opens a SAVEPOINT, so a failing step only undoes its own
    writes and the outer unit of work decides what to do next.
    """
    if session.in_transaction():
        async with session.begin_nested():
            yield session
    else:
        async with session.begin():
            yield session
