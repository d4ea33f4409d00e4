"""Exception hierarchy shared by the amount, wallet and command layers.

Everything raised on purpose derives from :class:`KangarooError`.  The
command dispatcher converts the user-facing ones into failure responses;
:class:`TickerMismatch` is a programming error and is never converted.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from decimal import Decimal


class KangarooError(Exception):
    """Base class for all Kangaroo errors."""


# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------


class AmountError(KangarooError):
    """An amount the user typed cannot be used. Shown as "invalid amount"."""

    def __init__(self, text: str, reason: str = "invalid amount") -> None:
        super().__init__(f"{reason}: {text!r}")
        self.text = text


class MalformedAmount(AmountError):
    """The text is not a plain non-negative decimal numeral."""

    def __init__(self, text: str) -> None:
        super().__init__(text, "malformed amount")


class NegativeAmount(AmountError):
    """The text parses to a value below zero."""

    def __init__(self, text: str) -> None:
        super().__init__(text, "negative amount")


class NonPositiveAmount(AmountError):
    """The amount is valid but moves nothing (zero, or rounds to zero)."""

    def __init__(self, text: str) -> None:
        super().__init__(text, "amount must be greater than zero")


class TickerMismatch(KangarooError):
    """Arithmetic between amounts of different tokens."""

    def __init__(self, left: str, right: str) -> None:
        super().__init__(f"Cannot combine {left} with {right}")
        self.left = left
        self.right = right


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


class TokenNotFound(KangarooError):
    """The ticker is not in the token registry."""

    def __init__(self, ticker: str | None) -> None:
        super().__init__(f"Token '{ticker}' is not supported")
        self.ticker = ticker


class MissingOptions(KangarooError):
    """Required command options are absent.

    ``names`` keeps the command's canonical option order, not input order.
    ``all_missing`` is set when the user gave none of the required options.
    """

    def __init__(self, command: str, names: Sequence[str], all_missing: bool = False) -> None:
        super().__init__(f"/{command} is missing options: {', '.join(names)}")
        self.command = command
        self.names = list(names)
        self.all_missing = all_missing


class UnknownCommand(KangarooError):
    def __init__(self, name: str | None) -> None:
        super().__init__(f"Unknown command '{name}'")
        self.name = name


# ---------------------------------------------------------------------------
# Network
# ---------------------------------------------------------------------------


class TransactionError(KangarooError):
    """A transfer or activation could not be executed. Shown as "transaction failed"."""


class InsufficientBalance(TransactionError):
    def __init__(
        self,
        ticker: str,
        required: Decimal | None = None,
        available: Decimal | None = None,
    ) -> None:
        if required is not None and available is not None:
            message = f"Insufficient {ticker} balance: need {required}, have {available}"
        else:
            message = f"Insufficient {ticker} balance"
        super().__init__(message)
        self.ticker = ticker
        self.required = required
        self.available = available


class NetworkError(TransactionError):
    """The Layer 2 network rejected a request or could not be reached."""


class PriceUnavailable(KangarooError):
    def __init__(self, ticker: str, reason: str = "no price") -> None:
        super().__init__(f"USD price for {ticker} unavailable: {reason}")
        self.ticker = ticker
