"""Pooled MariaDB sessions tuned for MariaDB 10.0 compatibility."""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

import aiomysql

from common.config.gateway_settings import GatewaySettings
from dal.mariadb.quoting import quote_identifier
from dal.tracing import trace_query_operation
from dal.util.timeouts import run_with_timeout

logger = logging.getLogger(__name__)

# Session settings fixed at pool creation. Multi-statement packets stay off
# (no CLIENT.MULTI_STATEMENTS flag) and no per-query timeout is requested;
# MariaDB 10.0 has no max_statement_time.
COMPATIBILITY_OPTIONS: Dict[str, Any] = {
    "charset": "utf8mb4",
    "sql_mode": "TRADITIONAL",
    "client_flag": 0,
    "local_infile": False,
    "autocommit": True,
}


@dataclass
class RawResult:
    """Unnormalized outcome of one statement."""

    rows: List[Any] = field(default_factory=list)
    description: Optional[Sequence[Any]] = None
    rowcount: Optional[int] = None
    lastrowid: Optional[int] = None

    @property
    def has_result_set(self) -> bool:
        """True when the statement produced a result set (SELECT/SHOW/...)."""
        return self.description is not None


class ConnectionManager:
    """Owns one lazily created aiomysql pool and hands out exclusive sessions.

    Concurrent sessions are capped at ``settings.pool_size`` by the manager's
    own slots; extra callers wait up to ``settings.timeout_ms`` for a free
    slot. A session whose use raised is closed and never returned to the free
    list. aiomysql does not wake its own waiters when a closed connection is
    released, so callers queue on the slots rather than inside the pool.
    """

    def __init__(
        self,
        settings: GatewaySettings,
        pool_factory: Optional[Callable[..., Any]] = None,
    ) -> None:
        """Store settings; the pool itself is created on first use."""
        self._settings = settings
        self._pool_factory = pool_factory or aiomysql.create_pool
        self._pool = None
        self._pool_lock = asyncio.Lock()
        self._slots = asyncio.Semaphore(settings.pool_size)
        self._discarded = 0

    @property
    def settings(self) -> GatewaySettings:
        """Settings this manager was built with."""
        return self._settings

    @property
    def is_initialized(self) -> bool:
        """True once the pool has been created."""
        return self._pool is not None

    def pool_options(self) -> Dict[str, Any]:
        """Return the keyword arguments used to create the pool."""
        settings = self._settings
        return {
            "host": settings.host,
            "port": settings.port,
            "user": settings.user,
            "password": settings.password,
            "db": settings.database,
            "minsize": 0,
            "maxsize": settings.pool_size,
            "connect_timeout": settings.timeout_seconds,
            "cursorclass": aiomysql.DictCursor,
            "echo": settings.debug_sql,
            **COMPATIBILITY_OPTIONS,
        }

    async def get_pool(self):
        """Return the pool, creating it on first call."""
        if self._pool is not None:
            return self._pool
        async with self._pool_lock:
            if self._pool is None:
                logger.info(
                    "Creating MariaDB connection pool (host=%s port=%s maxsize=%s)",
                    self._settings.host,
                    self._settings.port,
                    self._settings.pool_size,
                )
                self._pool = await self._pool_factory(**self.pool_options())
        return self._pool

    @asynccontextmanager
    async def session(self, database: Optional[str] = None):
        """Yield an exclusively held connection, optionally switched to ``database``.

        Raises:
            ValueError: if ``database`` is not a plain identifier.
            AcquireTimeoutError: if no session frees up within the timeout.
        """
        use_statement = f"USE {quote_identifier(database, 'database')}" if database else None

        pool = await self.get_pool()
        conn = await run_with_timeout(self._acquire(pool), self._settings.timeout_seconds)
        logger.debug("Session acquired (%s)", self._describe_pool(pool))
        try:
            if use_statement:
                async with conn.cursor() as cursor:
                    await cursor.execute(use_statement)
            yield conn
        except BaseException:
            self._discard(conn)
            raise
        finally:
            try:
                await pool.release(conn)
            finally:
                self._slots.release()
            logger.debug("Session released (%s)", self._describe_pool(pool))

    async def execute(
        self,
        sql: str,
        params: Sequence[Any] = (),
        database: Optional[str] = None,
    ) -> RawResult:
        """Run one statement with positional parameters on a pooled session."""

        async def _run() -> RawResult:
            async with self.session(database) as conn:
                async with conn.cursor() as cursor:
                    await cursor.execute(sql, list(params) if params else None)
                    description = cursor.description
                    rows = list(await cursor.fetchall()) if description else []
                    return RawResult(
                        rows=rows,
                        description=description,
                        rowcount=cursor.rowcount,
                        lastrowid=cursor.lastrowid,
                    )

        return await trace_query_operation(
            "dal.query.execute",
            sql=sql,
            operation=_run(),
            enabled=self._settings.debug_sql,
            database=database or self._settings.database,
        )

    def pool_stats(self) -> Dict[str, Any]:
        """Return pool bookkeeping for diagnostics."""
        pool = self._pool
        size = getattr(pool, "size", 0) if pool is not None else 0
        free = getattr(pool, "freesize", 0) if pool is not None else 0
        return {
            "initialized": pool is not None,
            "size": size,
            "free": free,
            "used": size - free,
            "maxsize": self._settings.pool_size,
            "discarded": self._discarded,
        }

    async def close(self) -> None:
        """Close the pool and every idle connection."""
        if self._pool is None:
            return
        pool, self._pool = self._pool, None
        pool.close()
        await pool.wait_closed()
        logger.info("MariaDB connection pool closed")

    async def _acquire(self, pool):
        # Holding a slot guarantees the pool is below maxsize or has a free
        # connection, so pool.acquire() never waits on its condition.
        await self._slots.acquire()
        try:
            return await pool.acquire()
        except BaseException:
            self._slots.release()
            raise

    def _discard(self, conn) -> None:
        self._discarded += 1
        try:
            conn.close()
        except Exception:
            logger.exception("Failed to close discarded session")
        logger.warning("Session discarded after error (discarded=%d)", self._discarded)

    @staticmethod
    def _describe_pool(pool) -> str:
        return f"size={getattr(pool, 'size', '?')} free={getattr(pool, 'freesize', '?')}"
