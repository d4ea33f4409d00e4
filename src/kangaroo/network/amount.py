"""Exact-decimal token amounts and rounding to the packed on-chain formats.

Amounts never touch binary floats.  All arithmetic runs in a private
decimal context wide enough for any 18-decimal token value, so results are
exact.  Packing always rounds toward zero: a packed amount is never larger
than the amount it came from.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import ROUND_DOWN, Context, Decimal
from functools import total_ordering

from kangaroo.errors import MalformedAmount, NegativeAmount, TickerMismatch
from kangaroo.network.tokens import PackFormat, Token

_CTX = Context(prec=120, rounding=ROUND_DOWN)

# Digits with an optional decimal point, optionally preceded by a minus
# sign so negative input can be told apart from garbage.
_NUMERAL_RE = re.compile(r"(-?)([0-9]+\.?[0-9]*|\.[0-9]+)")
_MAX_TEXT_LENGTH = 80


def pack_units(units: int, fmt: PackFormat) -> tuple[int, int]:
    """Round *units* down to the closest ``(mantissa, exponent)`` in *fmt*.

    Least-significant digits are dropped until the mantissa fits.  Values
    beyond the largest representable number saturate to that number.
    """
    if units < 0:
        raise ValueError("Cannot pack a negative value")
    mantissa, exponent = units, 0
    while mantissa > fmt.max_mantissa and exponent < fmt.max_exponent:
        mantissa //= 10
        exponent += 1
    if mantissa > fmt.max_mantissa:
        mantissa = fmt.max_mantissa
    return mantissa, exponent


def is_packable(units: int, fmt: PackFormat) -> bool:
    """Return True if *units* is exactly representable in *fmt*."""
    if units < 0:
        return False
    mantissa, exponent = units, 0
    while mantissa > fmt.max_mantissa and mantissa % 10 == 0 and exponent < fmt.max_exponent:
        mantissa //= 10
        exponent += 1
    return mantissa <= fmt.max_mantissa


@total_ordering
@dataclass(frozen=True, eq=False)
class Amount:
    """A value of one token.

    Two amounts are equal when they have the same ticker and the same
    numeric value, whatever their class or trailing zeros.
    """

    token: Token
    value: Decimal

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_text(cls, token: Token, text: str) -> Amount:
        """Parse a user-typed numeral.

        Raises
        ------
        NegativeAmount
            If the numeral is below zero.
        MalformedAmount
            For anything that is not a plain decimal numeral, including a
            leading ``+`` and ``-0``.
        """
        if not isinstance(text, str):
            raise MalformedAmount(str(text))
        stripped = text.strip()
        if len(stripped) > _MAX_TEXT_LENGTH:
            raise MalformedAmount(text)
        match = _NUMERAL_RE.fullmatch(stripped)
        if match is None:
            raise MalformedAmount(text)
        sign, digits = match.groups()
        value = Decimal(digits)
        if sign:
            if value > 0:
                raise NegativeAmount(text)
            raise MalformedAmount(text)
        return cls(token, value)

    @classmethod
    def from_value(cls, token: Token, value: Decimal | int | str) -> Amount:
        """Build an amount from a trusted value (config, tests, network data)."""
        if isinstance(value, float):
            raise TypeError("Amounts cannot be built from float")
        return cls(token, Decimal(value))

    @classmethod
    def from_base_units(cls, token: Token, units: int) -> Amount:
        return cls(token, Decimal(units).scaleb(-token.decimals, _CTX))

    @classmethod
    def zero(cls, token: Token) -> Amount:
        return cls(token, Decimal(0))

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def ticker(self) -> str:
        return self.token.ticker

    def is_zero(self) -> bool:
        return self.value == 0

    def is_positive(self) -> bool:
        return self.value > 0

    def to_base_units(self) -> int:
        """Value in the token's smallest unit, truncating finer digits."""
        scaled = self.value.scaleb(self.token.decimals, _CTX)
        return int(scaled.to_integral_value(rounding=ROUND_DOWN, context=_CTX))

    def fits_decimals(self) -> bool:
        """True if no digit is finer than the token's smallest unit."""
        scaled = self.value.scaleb(self.token.decimals, _CTX)
        return scaled == scaled.to_integral_value(rounding=ROUND_DOWN, context=_CTX)

    # ------------------------------------------------------------------
    # Packing
    # ------------------------------------------------------------------

    def get_closest_packable(self) -> PackedAmount:
        """Round down to the closest amount a transfer can carry."""
        return self._pack(self.token.amount_format)

    def get_closest_packable_fee(self) -> PackedAmount:
        """Round down to the closest amount a fee field can carry."""
        return self._pack(self.token.fee_format)

    def packs_exactly(self, fmt: PackFormat | None = None) -> bool:
        fmt = fmt or self.token.amount_format
        return self.value >= 0 and self.fits_decimals() and is_packable(self.to_base_units(), fmt)

    def _pack(self, fmt: PackFormat) -> PackedAmount:
        if self.value < 0:
            raise NegativeAmount(str(self.value))
        mantissa, exponent = pack_units(self.to_base_units(), fmt)
        units = mantissa * 10**exponent
        value = Decimal(units).scaleb(-self.token.decimals, _CTX)
        return PackedAmount(self.token, value, mantissa, exponent, fmt)

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    def _check_ticker(self, other: Amount) -> None:
        if not isinstance(other, Amount):
            raise TypeError(f"Expected an Amount, got {type(other).__name__}")
        if other.ticker != self.ticker:
            raise TickerMismatch(self.ticker, other.ticker)

    def add(self, other: Amount) -> Amount:
        self._check_ticker(other)
        return Amount(self.token, _CTX.add(self.value, other.value))

    def subtract(self, other: Amount) -> Amount:
        self._check_ticker(other)
        return Amount(self.token, _CTX.subtract(self.value, other.value))

    def multiply(self, factor: Decimal) -> Decimal:
        """Scale by a plain number (e.g. a USD price); returns a bare Decimal."""
        return _CTX.multiply(self.value, Decimal(factor))

    __add__ = add
    __sub__ = subtract

    # ------------------------------------------------------------------
    # Comparison and display
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Amount):
            return NotImplemented
        return self.ticker == other.ticker and self.value == other.value

    def __lt__(self, other: Amount) -> bool:
        self._check_ticker(other)
        return self.value < other.value

    def __hash__(self) -> int:
        return hash((self.ticker, self.value))

    def get_string_value(self) -> str:
        """Canonical decimal text: ``"0.0"``, ``"0.2"``, ``"12.0"``.

        Digits finer than the token's decimals are cut, trailing zeros are
        stripped and at least one fractional digit is kept.
        """
        quantum = Decimal(1).scaleb(-self.token.decimals)
        text = format(self.value.quantize(quantum, rounding=ROUND_DOWN, context=_CTX), "f")
        if "." not in text:
            return text + ".0"
        text = text.rstrip("0")
        if text.endswith("."):
            text += "0"
        return text

    def __str__(self) -> str:
        return f"{self.get_string_value()} {self.ticker}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.get_string_value()!r}, {self.ticker!r})"


@dataclass(frozen=True, eq=False, repr=False)
class PackedAmount(Amount):
    """An amount exactly representable as ``mantissa * 10**exponent`` smallest units.

    Only produced by :meth:`Amount.get_closest_packable` and
    :meth:`Amount.get_closest_packable_fee`.
    """

    mantissa: int
    exponent: int
    format: PackFormat

