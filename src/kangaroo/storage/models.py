"""Pydantic models mapping to the Kangaroo database tables."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from kangaroo.network.tokens import Token


class UserRecord(BaseModel):
    """Maps to the ``users`` table.

    ``private_key`` is either a hex key or, when a key password is
    configured, an encrypted keystore JSON document.
    """

    user_id: str
    private_key: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class TokenRecord(BaseModel):
    """Maps to the ``tokens`` table."""

    ticker: str
    name: str
    decimals: int = 18
    position: int = 0

    @classmethod
    def from_token(cls, token: Token, position: int) -> TokenRecord:
        return cls(ticker=token.ticker, name=token.name, decimals=token.decimals, position=position)

    def to_token(self) -> Token:
        return Token(ticker=self.ticker, name=self.name, decimals=self.decimals)
