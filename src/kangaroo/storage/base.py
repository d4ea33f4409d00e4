"""Storage capabilities consumed by the command layer."""

from __future__ import annotations

from abc import ABC, abstractmethod

from kangaroo.network.tokens import Token


class TokenRegistry(ABC):
    """Supported tokens, in the order they were registered."""

    @abstractmethod
    async def find_token(self, ticker: str) -> Token | None:
        """Case-insensitive lookup; ``None`` when unknown."""

    @abstractmethod
    async def list_tokens(self) -> list[Token]: ...

    @abstractmethod
    async def add_token(self, token: Token) -> None:
        """Register *token*; re-registering a ticker updates it in place."""


class UserStore(ABC):
    """Custodial key material per chat user."""

    @abstractmethod
    async def get_private_key(self, user_id: str) -> str | None: ...

    @abstractmethod
    async def claim_private_key(self, user_id: str, private_key: str) -> str:
        """Store *private_key* unless the user already has one.

        Returns whichever key is stored afterwards, so two racing
        callers end up with the same key.
        """

    @abstractmethod
    async def delete_user(self, user_id: str) -> None: ...


class Store(TokenRegistry, UserStore):
    async def close(self) -> None:
        return None
