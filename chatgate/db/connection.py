"""
Async engine and session handling for the usage ledger store.

PostgreSQL (asyncpg) is the production target. SQLite (aiosqlite) backs
local runs and the test suite.

Engines are kept per event loop: the server loop, the cron trigger and each
test loop get their own pool, since asyncpg connections cannot cross loops.
"""

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    AsyncEngine,
    create_async_engine,
    async_sessionmaker,
)

from chatgate.constants import (
    DEFAULT_DB_POOL_SIZE,
    DEFAULT_DB_MAX_OVERFLOW,
    DEFAULT_DB_POOL_TIMEOUT,
    DEFAULT_DB_POOL_RECYCLE,
    DEFAULT_SQLITE_BUSY_TIMEOUT,
)
from chatgate.core.exceptions import ConfigurationError
from chatgate.utils.env_utils import parse_bool_env, parse_int_env

logger = logging.getLogger(__name__)


class DatabaseConfig:
    """Database configuration from environment variables."""

    def __init__(
        self,
        database_url: Optional[str] = None,
        enabled: Optional[bool] = None,
    ):
        # false: health reports "disabled" and every storage call fails fast
        self.enabled = enabled if enabled is not None else parse_bool_env("DATABASE_ENABLED", True)

        self.db_name = os.getenv("DATABASE_NAME", "chatgate")
        self.db_user = os.getenv("DATABASE_USER", "postgres")
        self.db_password = os.getenv("DATABASE_PASSWORD", "")
        self.db_host = os.getenv("DATABASE_HOST", "localhost")
        self.db_port = parse_int_env("DATABASE_PORT", 5432)

        self.database_url = database_url or os.getenv(
            "DATABASE_URL",
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}",
        )

        # Connection pool settings
        self.pool_size = parse_int_env("DB_POOL_SIZE", DEFAULT_DB_POOL_SIZE)
        self.max_overflow = parse_int_env("DB_MAX_OVERFLOW", DEFAULT_DB_MAX_OVERFLOW)
        self.pool_timeout = parse_int_env("DB_POOL_TIMEOUT", DEFAULT_DB_POOL_TIMEOUT)
        self.pool_recycle = parse_int_env("DB_POOL_RECYCLE", DEFAULT_DB_POOL_RECYCLE)

        self.echo_sql = parse_bool_env("DB_ECHO", False)

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def safe_url(self) -> str:
        """Database URL with the password masked."""
        url = self.database_url
        if "@" not in url or "://" not in url:
            return url
        scheme, rest = url.split("://", 1)
        credentials, host = rest.rsplit("@", 1)
        user = credentials.split(":", 1)[0]
        return f"{scheme}://{user}:****@{host}"


def _serialize_sqlite_writers(engine: AsyncEngine) -> None:
    """
    Make every SQLite transaction take the write lock up front.

    With the driver's deferred BEGIN, two connections can each hold a read
    lock while waiting to write and SQLite fails one of them without waiting.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

class DatabaseManager:
    """
    Lazily builds one engine and session factory per running event loop.

    The module-level ``db`` serves the application. Tests build their own
    manager against a throwaway database.
    """

    def __init__(self, config: Optional[DatabaseConfig] = None):
        self.config = config or DatabaseConfig()
        self._closed = False
        self._engines: Dict[int, AsyncEngine] = {}
        self._session_factories: Dict[int, async_sessionmaker] = {}

    @staticmethod
    def _loop_key() -> int:
        # 0 outside a running loop (sync scripts, import time)
        try:
            return id(asyncio.get_running_loop())
        except RuntimeError:
            return 0

    def _create_engine(self) -> AsyncEngine:
        kwargs: Dict[str, Any] = {"echo": self.config.echo_sql}
        if self.config.is_sqlite:
            # Writers wait for the file lock instead of failing immediately
            kwargs["connect_args"] = {"timeout": DEFAULT_SQLITE_BUSY_TIMEOUT}
        else:
            kwargs.update(
                pool_size=self.config.pool_size,
                max_overflow=self.config.max_overflow,
                pool_timeout=self.config.pool_timeout,
                pool_recycle=self.config.pool_recycle,
                pool_pre_ping=True,
            )

        engine = create_async_engine(self.config.database_url, **kwargs)
        if self.config.is_sqlite:
            _serialize_sqlite_writers(engine)
        return engine

    def _factory_for_current_loop(self) -> Optional[async_sessionmaker]:
        if self._closed or not self.config.enabled:
            return None

        key = self._loop_key()
        factory = self._session_factories.get(key)
        if factory is None:
            engine = self._create_engine()
            factory = async_sessionmaker(
                bind=engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
            self._engines[key] = engine
            self._session_factories[key] = factory
            logger.info(
                f"Ledger store engine ready ({engine.dialect.name}) "
                f"for loop {key}: {self.config.safe_url}"
            )
        return factory

    async def get_engine_async(self) -> Optional[AsyncEngine]:
        """Engine for the running loop, or None when the database is disabled or closed."""
        if self._factory_for_current_loop() is None:
            return None
        return self._engines[self._loop_key()]

    async def test_connection(self, timeout: float = 15.0) -> bool:
        """
        Run ``SELECT 1`` within ``timeout`` seconds.

        A disabled database counts as reachable so health checks stay green
        in deployments that run without one.
        """
        if not self.config.enabled:
            return True

        engine = await self.get_engine_async()
        if engine is None:
            logger.warning("Connection test skipped: database manager is closed")
            return False

        try:
            async with asyncio.timeout(timeout):
                async with engine.connect() as conn:
                    await conn.execute(text("SELECT 1"))
        except asyncio.TimeoutError:
            logger.error(f"Ledger store did not answer within {timeout}s")
            return False
        except Exception as e:
            logger.error(f"Ledger store connection test failed: {type(e).__name__}: {e}")
            return False
        return True

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Transaction scope: commit on clean exit, roll back on any exception.

        Raises:
            ConfigurationError: the database is disabled or already closed
        """
        factory = self._factory_for_current_loop()
        if factory is None:
            raise ConfigurationError(
                "DATABASE_ENABLED",
                "Usage storage is not available (database disabled or shut down)",
            )

        session = factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def create_tables(self) -> None:
        """Create missing tables. Production deployments use scripts/db_setup.py."""
        from .models import Base

        engine = await self.get_engine_async()
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"Created tables: {', '.join(sorted(Base.metadata.tables))}")

    async def drop_tables(self) -> None:
        from .models import Base

        engine = await self.get_engine_async()
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        logger.warning(f"Dropped tables: {', '.join(sorted(Base.metadata.tables))}")

    def get_pool_stats(self) -> Dict[str, Any]:
        """Pool class and status per event loop, for the status command."""
        pools: Dict[str, Any] = {}
        for key, engine in self._engines.items():
            status = getattr(engine.pool, "status", None)
            pools[str(key)] = {
                "class": type(engine.pool).__name__,
                "status": status() if callable(status) else None,
            }
        return {"pools_count": len(pools), "closed": self._closed, "pools": pools}

    async def close_all(self) -> None:
        """Dispose every engine. No new engines are created afterwards."""
        self._closed = True

        current = self._loop_key()
        for key, engine in list(self._engines.items()):
            try:
                if key == current:
                    await engine.dispose()
                else:
                    # Connections owned by another loop cannot be awaited here
                    engine.sync_engine.dispose(close=False)
            except Exception as e:
                logger.debug(f"Error disposing engine for loop {key}: {e}")

        self._engines.clear()
        self._session_factories.clear()
        logger.info("Ledger store connections closed")


db = DatabaseManager()
