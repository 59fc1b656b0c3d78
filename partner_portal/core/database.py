"""
Database engine, sessions and the per-request transaction.

Batch operations (template registration, product import, the trial check)
isolate each item in a SAVEPOINT, so every engine built here must support
``begin_nested`` including on SQLite.
"""
from typing import Any, AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, AsyncEngine, create_async_engine
from sqlalchemy.orm import sessionmaker

from partner_portal.core.base import Base
from partner_portal.core.config import settings

# Import models to register them with Base.metadata
from partner_portal.models import partner, venue, commission, document, prospect, product, article  # noqa: F401


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    # pysqlite defers BEGIN until the first write, which breaks SAVEPOINT
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def build_engine(url: str, **overrides: Any) -> AsyncEngine:
    """
    Create an async engine for ``url``.

    PostgreSQL gets a pre-pinged pool; SQLite gets no pool sizing and the
    savepoint fix. ``overrides`` go straight to ``create_async_engine``.
    """
    engine_args: dict[str, Any] = {"echo": settings.DEBUG}
    if _is_sqlite(url):
        engine_args["connect_args"] = {"check_same_thread": False}
    else:
        engine_args.update({
            "pool_pre_ping": True,
            "pool_size": 10,
            "max_overflow": 20,
        })
    engine_args.update(overrides)

    new_engine = create_async_engine(url, **engine_args)
    if _is_sqlite(url):
        _enable_sqlite_savepoints(new_engine)
    return new_engine


def build_sessionmaker(bind: AsyncEngine) -> sessionmaker:
    return sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine: AsyncEngine = build_engine(settings.DATABASE_URL)
AsyncSessionLocal = build_sessionmaker(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that provides a database session.

    One request is one transaction: committed when the handler returns,
    rolled back when it raises.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Create missing tables. Alembic owns the schema in production."""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_db(bind: AsyncEngine) -> None:
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
