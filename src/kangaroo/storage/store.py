"""SQLite-backed token registry and custodial key store."""

from __future__ import annotations

import logging

from kangaroo.network.tokens import Token
from kangaroo.storage.base import Store
from kangaroo.storage.database import Database
from kangaroo.storage.models import TokenRecord, UserRecord

logger = logging.getLogger("kangaroo.storage")


class SqliteStore(Store):
    """Implements :class:`TokenRegistry` and :class:`UserStore` on a :class:`Database`."""

    def __init__(self, db: Database) -> None:
        self.db = db

    async def close(self) -> None:
        await self.db.close()

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    async def find_token(self, ticker: str) -> Token | None:
        row = await self.db.fetch_one(
            "SELECT * FROM tokens WHERE ticker = ?", (ticker.strip().upper(),)
        )
        if row is None:
            return None
        return TokenRecord(**row).to_token()

    async def list_tokens(self) -> list[Token]:
        rows = await self.db.fetch_all("SELECT * FROM tokens ORDER BY position, ticker")
        return [TokenRecord(**r).to_token() for r in rows]

    async def add_token(self, token: Token) -> None:
        """Register *token* at the end of the list, or update it in place."""
        record = TokenRecord.from_token(token, position=0)
        cursor = await self.db.execute(
            "INSERT INTO tokens (ticker, name, decimals, position) "
            "VALUES (?, ?, ?, (SELECT COALESCE(MAX(position), -1) + 1 FROM tokens)) "
            "ON CONFLICT(ticker) DO UPDATE SET name = excluded.name, decimals = excluded.decimals",
            (record.ticker, record.name, record.decimals),
        )
        logger.debug(f"Token {token.ticker} registered ({cursor.rowcount} row).")

    async def remove_token(self, ticker: str) -> None:
        await self.db.execute("DELETE FROM tokens WHERE ticker = ?", (ticker.strip().upper(),))

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def get_private_key(self, user_id: str) -> str | None:
        row = await self.db.fetch_one(
            "SELECT user_id, private_key FROM users WHERE user_id = ?", (user_id,)
        )
        if row is None:
            return None
        return UserRecord(**row).private_key

    async def claim_private_key(self, user_id: str, private_key: str) -> str:
        record = UserRecord(user_id=user_id, private_key=private_key)
        cursor = await self.db.execute(
            "INSERT OR IGNORE INTO users (user_id, private_key) VALUES (?, ?)",
            (record.user_id, record.private_key),
        )
        if cursor.rowcount:
            logger.info(f"Provisioned custodial key for user {user_id}.")
        stored = await self.get_private_key(user_id)
        assert stored is not None
        return stored

    async def delete_user(self, user_id: str) -> None:
        await self.db.execute("DELETE FROM users WHERE user_id = ?", (user_id,))
