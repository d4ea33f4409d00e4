"""Read-only balance aggregation with USD pricing."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal

from kangaroo.errors import NetworkError, PriceUnavailable
from kangaroo.network.amount import Amount
from kangaroo.network.prices import PriceFeed, format_usd
from kangaroo.network.tokens import Token
from kangaroo.network.wallet import Wallet

logger = logging.getLogger("kangaroo.commands.balances")


@dataclass(frozen=True)
class TokenBalance:
    amount: Amount
    usd_value: Decimal | None

    def line(self) -> str:
        """``"<value> <TICKER> - $<usd>"``; the price part is omitted when unknown."""
        if self.usd_value is None:
            return f"{self.amount.get_string_value()} {self.amount.ticker}"
        return f"{self.amount.get_string_value()} {self.amount.ticker} - {format_usd(self.usd_value)}"


class BalanceAggregator:
    """Balances per token, priced in USD when a price can be had."""

    def __init__(self, prices: PriceFeed | None = None) -> None:
        self._prices = prices

    async def usd_value(self, amount: Amount) -> Decimal | None:
        """USD value of *amount*, or ``None`` if the price feed fails.

        Zero is worth $0 without asking the feed.
        """
        if amount.is_zero():
            return Decimal(0)
        if self._prices is None:
            return None
        try:
            price = await self._prices.get_usd_price(amount.token)
        except (PriceUnavailable, NetworkError) as exc:
            logger.warning(f"No USD price for {amount.ticker}: {exc}")
            return None
        return amount.multiply(price)

    async def get_balance(self, wallet: Wallet, token: Token) -> TokenBalance:
        amount = await wallet.get_balance(token)
        return TokenBalance(amount=amount, usd_value=await self.usd_value(amount))

    async def get_all_balances(self, wallet: Wallet, tokens: list[Token]) -> list[TokenBalance]:
        """One entry per token, in registry order, zero balances included."""
        return list(await asyncio.gather(*(self.get_balance(wallet, t) for t in tokens)))
