"""aiosqlite connection holding the token registry and custodial keys.

The schema is versioned with ``PRAGMA user_version``; each entry of
``MIGRATIONS`` moves the file one version forward and is applied once.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Any, Optional

import aiosqlite

logger = logging.getLogger("kangaroo.storage.database")

MIGRATIONS: list[str] = [
    """\
    CREATE TABLE IF NOT EXISTS users (
        user_id TEXT PRIMARY KEY,
        private_key TEXT NOT NULL,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS tokens (
        ticker TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        decimals INTEGER NOT NULL DEFAULT 18,
        position INTEGER NOT NULL
    );
    """,
]


class Database:
    """One SQLite file, opened lazily by :meth:`connect`.

    Rows come back as plain dicts.  Every write commits immediately; the
    store never needs a transaction spanning several statements.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self._conn: Optional[aiosqlite.Connection] = None

    @property
    def connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError(f"Database {self.db_path} is not connected")
        return self._conn

    async def connect(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = await aiosqlite.connect(str(self.db_path))
        self._conn.row_factory = sqlite3.Row
        await self._conn.execute("PRAGMA journal_mode=WAL;")
        await self._migrate()

    async def close(self) -> None:
        if self._conn is None:
            return
        await self._conn.close()
        self._conn = None

    async def execute(self, sql: str, params: tuple[Any, ...] = ()) -> aiosqlite.Cursor:
        cursor = await self.connection.execute(sql, params)
        await self.connection.commit()
        return cursor

    async def fetch_one(self, sql: str, params: tuple[Any, ...] = ()) -> Optional[dict]:
        async with self.connection.execute(sql, params) as cursor:
            row = await cursor.fetchone()
        return dict(row) if row is not None else None

    async def fetch_all(self, sql: str, params: tuple[Any, ...] = ()) -> list[dict]:
        async with self.connection.execute(sql, params) as cursor:
            return [dict(row) for row in await cursor.fetchall()]

    async def schema_version(self) -> int:
        async with self.connection.execute("PRAGMA user_version;") as cursor:
            (version,) = await cursor.fetchone()
        return version

    async def _migrate(self) -> None:
        version = await self.schema_version()
        for target, script in enumerate(MIGRATIONS[version:], start=version + 1):
            await self.connection.executescript(script)
            await self.connection.execute(f"PRAGMA user_version = {target};")
            await self.connection.commit()
            logger.info(f"Migrated {self.db_path} to schema version {target}")


def get_database(db_path: Path | str) -> Database:
    """A :class:`Database` for *db_path*; call :meth:`Database.connect` before use."""
    return Database(Path(db_path))
