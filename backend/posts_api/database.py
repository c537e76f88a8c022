"""
Posts API — Database Engine & Session Management
=================================================

What:  The async SQLAlchemy engine, session factory, declarative base and the
       per-request session dependency.
How:   `Database` wraps one engine and its session factory. The app factory
       creates exactly one per application and stores it on `app.state`;
       the lifespan hook disposes it at shutdown. `get_db_session` hands each
       request its own session.
Who:   main.py (lifecycle), route handlers via Depends(), Alembic (Base.metadata).

Connection Pooling:
    SQLite (default):  one file, `check_same_thread=False`; in-memory URLs use
                       a StaticPool so every session sees the same database.
    PostgreSQL:        pool_size / max_overflow / pre-ping from Settings,
                       connections recycled hourly.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from posts_api.config import Settings


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares one metadata object between the models, `Database.create_all()`
    and Alembic's autogenerate.
    """
    pass


def _engine_options(settings: Settings) -> Dict[str, Any]:
    """Engine keyword arguments appropriate for the configured backend."""
    url = make_url(settings.database_url)
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}

    if url.get_backend_name() == "sqlite":
        options["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            options["poolclass"] = StaticPool
        return options

    options.update(
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_recycle=3600,
    )
    return options


class Database:
    """
    Process-wide persistence handle: one engine plus its session factory.

    Creating the engine does not open a connection; the first session does.
    """

    def __init__(self, settings: Settings):
        self.url = settings.database_url
        self.engine: AsyncEngine = create_async_engine(
            settings.database_url, **_engine_options(settings)
        )
        # expire_on_commit=False keeps loaded attributes readable after commit
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def create_all(self) -> None:
        """Create any missing tables registered on `Base.metadata`."""
        # Registers the model classes on Base.metadata
        from posts_api.models import post  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> bool:
        """Run `SELECT 1`; returns False instead of raising when unreachable."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception:
            return False
        return True

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Yields a session that commits on success and rolls back on error.

        The session is always closed, returning its connection to the pool.
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def dispose(self) -> None:
        """Close every pooled connection. Called once at application shutdown."""
        await self.engine.dispose()


# ── Request Dependencies ──────────────────────────────────────────────────
def get_database(request: Request) -> Database:
    """The `Database` owned by the application serving this request."""
    return request.app.state.database


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides one database session per request.

    Example usage in a route:
        @router.get("/posts")
        async def list_posts(db: AsyncSession = Depends(get_db_session)):
            ...

    Raises:
        Any exception from the handler propagates after rollback, so the
        global error handlers can respond.
    """
    async with get_database(request).session() as session:
        yield session
