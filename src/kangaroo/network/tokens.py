"""Token definitions and the packed on-chain number formats."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PackFormat:
    """A ``mantissa * 10**exponent`` format with fixed bit widths.

    Values are counted in the token's smallest unit.
    """

    mantissa_bits: int
    exponent_bits: int

    @property
    def max_mantissa(self) -> int:
        return (1 << self.mantissa_bits) - 1

    @property
    def max_exponent(self) -> int:
        return (1 << self.exponent_bits) - 1

    @property
    def max_units(self) -> int:
        return self.max_mantissa * 10**self.max_exponent


# Network-wide widths: transfer amounts and fees are packed separately.
AMOUNT_MANTISSA_BITS = 35
AMOUNT_EXPONENT_BITS = 5
FEE_MANTISSA_BITS = 11
FEE_EXPONENT_BITS = 5


@dataclass(frozen=True)
class Token:
    """A token supported by the bot. Tickers are always upper case."""

    ticker: str
    name: str
    decimals: int = 18
    packable_mantissa_bits: int = AMOUNT_MANTISSA_BITS
    packable_exponent_bits: int = AMOUNT_EXPONENT_BITS
    fee_mantissa_bits: int = FEE_MANTISSA_BITS
    fee_exponent_bits: int = FEE_EXPONENT_BITS
    amount_format: PackFormat = field(init=False, repr=False, compare=False)
    fee_format: PackFormat = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        ticker = self.ticker.strip().upper()
        if not ticker:
            raise ValueError("Token ticker must not be empty")
        if self.decimals < 0:
            raise ValueError(f"Token {ticker} has negative decimals")
        object.__setattr__(self, "ticker", ticker)
        object.__setattr__(
            self,
            "amount_format",
            PackFormat(self.packable_mantissa_bits, self.packable_exponent_bits),
        )
        object.__setattr__(
            self,
            "fee_format",
            PackFormat(self.fee_mantissa_bits, self.fee_exponent_bits),
        )


KNOWN_TOKENS: dict[str, Token] = {
    "ETH": Token(ticker="ETH", name="Ethereum", decimals=18),
    "DAI": Token(ticker="DAI", name="Dai", decimals=18),
    "USDC": Token(ticker="USDC", name="USD Coin", decimals=6),
    "USDT": Token(ticker="USDT", name="Tether USD", decimals=6),
    "BAT": Token(ticker="BAT", name="Basic Attention Token", decimals=18),
    "WBTC": Token(ticker="WBTC", name="Wrapped Bitcoin", decimals=8),
}
