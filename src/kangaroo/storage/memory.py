"""In-memory store for tests and throwaway sessions."""

from __future__ import annotations

from kangaroo.network.tokens import Token
from kangaroo.storage.base import Store


class MemoryStore(Store):
    def __init__(self, tokens: list[Token] | None = None) -> None:
        self._tokens: dict[str, Token] = {}
        self._keys: dict[str, str] = {}
        for token in tokens or []:
            self._tokens[token.ticker] = token

    async def find_token(self, ticker: str) -> Token | None:
        return self._tokens.get(ticker.strip().upper())

    async def list_tokens(self) -> list[Token]:
        return list(self._tokens.values())

    async def add_token(self, token: Token) -> None:
        self._tokens[token.ticker] = token

    async def get_private_key(self, user_id: str) -> str | None:
        return self._keys.get(user_id)

    async def claim_private_key(self, user_id: str, private_key: str) -> str:
        return self._keys.setdefault(user_id, private_key)

    async def delete_user(self, user_id: str) -> None:
        self._keys.pop(user_id, None)
