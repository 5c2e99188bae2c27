"""
Async database access helpers (raw SQL) using asyncpg.

`Database` owns the connection pool. The app opens it on startup and closes it
on shutdown (see `api/main.py`). Repositories receive the instance through
their constructor.

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...

Driver errors are translated at this boundary: unique violations become
`ConflictError`, connection and timeout failures `TransientStorageError`,
anything else from the driver `StorageError`.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import Any, TypeVar

import asyncpg

from .config import Settings
from .errors import ConflictError, StorageError, TransientStorageError

R = TypeVar("R")


class Database:
    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._pool: asyncpg.Pool | None = None

    async def connect(self) -> None:
        if self._pool is not None:
            return None
        try:
            self._pool = await asyncpg.create_pool(
                dsn=self._settings.database_url,
                min_size=self._settings.db_pool_min_size,
                max_size=self._settings.db_pool_max_size,
                command_timeout=self._settings.db_command_timeout,
            )
        except (OSError, asyncpg.PostgresError) as exc:
            raise TransientStorageError(f"Could not connect to database: {exc}") from exc

    async def close(self) -> None:
        if self._pool is None:
            return None
        await self._pool.close()
        self._pool = None

    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("DB pool is not initialized. Call connect() on startup.")
        return self._pool

    async def _run(self, op: Awaitable[R]) -> R:
        try:
            return await op
        except asyncpg.UniqueViolationError as exc:
            raise ConflictError("Record already exists.") from exc
        except (
            asyncio.TimeoutError,
            OSError,
            asyncpg.InterfaceError,
            asyncpg.ConnectionDoesNotExistError,
            asyncpg.TooManyConnectionsError,
        ) as exc:
            raise TransientStorageError(str(exc) or type(exc).__name__) from exc
        except asyncpg.PostgresError as exc:
            raise StorageError(str(exc)) from exc

    async def fetch_one(self, sql: str, *args: Any) -> dict[str, Any] | None:
        """
        Run a query and return a single row as a dict (or None).
        """
        row = await self._run(self.pool().fetchrow(sql, *args))
        return dict(row) if row is not None else None

    async def fetch_all(self, sql: str, *args: Any) -> list[dict[str, Any]]:
        """
        Run a query and return all rows as a list of dicts.
        """
        rows = await self._run(self.pool().fetch(sql, *args))
        return [dict(r) for r in rows]

    async def fetch_val(self, sql: str, *args: Any) -> Any:
        """
        Run a query and return the first column of the first row.
        """
        return await self._run(self.pool().fetchval(sql, *args))

    async def execute(self, sql: str, *args: Any) -> str:
        """
        Run a statement (INSERT/UPDATE/DELETE/DDL). Returns the status tag, e.g. "UPDATE 1".
        """
        return await self._run(self.pool().execute(sql, *args))


def affected_rows(status_tag: str) -> int:
    # asyncpg returns tags like "UPDATE 3" or "INSERT 0 1".
    try:
        return int(status_tag.rsplit(" ", 1)[-1])
    except (ValueError, IndexError):
        return 0
