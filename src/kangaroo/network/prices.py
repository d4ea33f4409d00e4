"""USD price feeds."""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import ROUND_HALF_UP, Context, Decimal

from kangaroo.errors import PriceUnavailable
from kangaroo.network.provider import RpcNetworkClient
from kangaroo.network.tokens import Token

_CENT = Decimal("0.01")
_CTX = Context(prec=120)


class PriceFeed(ABC):
    @abstractmethod
    async def get_usd_price(self, token: Token) -> Decimal:
        """Price of one whole *token* in USD. Raises ``PriceUnavailable``."""


class StaticPriceFeed(PriceFeed):
    """Fixed prices, e.g. from config. Unknown tickers are unavailable."""

    def __init__(self, prices: dict[str, Decimal | str] | None = None) -> None:
        self._prices = {k.upper(): Decimal(str(v)) for k, v in (prices or {}).items()}

    def set_price(self, ticker: str, price: Decimal | str) -> None:
        self._prices[ticker.upper()] = Decimal(str(price))

    async def get_usd_price(self, token: Token) -> Decimal:
        if token.ticker not in self._prices:
            raise PriceUnavailable(token.ticker)
        return self._prices[token.ticker]


class RpcPriceFeed(PriceFeed):
    """Prices reported by the Layer 2 node's ``get_token_price`` method."""

    def __init__(self, client: RpcNetworkClient) -> None:
        self._client = client

    async def get_usd_price(self, token: Token) -> Decimal:
        return await self._client.get_token_price(token)


def format_usd(value: Decimal) -> str:
    """``Decimal("1234.5")`` -> ``"$1234.50"``."""
    return f"${value.quantize(_CENT, rounding=ROUND_HALF_UP, context=_CTX)}"
