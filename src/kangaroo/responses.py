"""Command results and their chat message payloads.

Every command produces exactly one :class:`Response`.  Failures are
responses too (``is_error`` is set): validation problems reach the user as
values, never as exceptions.  :func:`to_message` turns a response into the
chat platform's message payload; the CLI renders ``title`` and
``description()`` directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Any, ClassVar

from kangaroo.network.prices import format_usd
from kangaroo.strings import EMBED_COLOR, HELP_FIELDS, HELP_TITLE, get_string

if TYPE_CHECKING:
    from kangaroo.commands.balances import TokenBalance
    from kangaroo.network.amount import Amount, PackedAmount
    from kangaroo.network.tokens import Token

CHANNEL_MESSAGE = 4
DEFERRED_CHANNEL_MESSAGE = 5


def priced(amount: Amount, usd: Decimal | None) -> str:
    """``"0.2 ETH - $600.00"``, or just ``"0.2 ETH"`` without a price."""
    if usd is None:
        return str(amount)
    return f"{amount} - {format_usd(usd)}"


class Response:
    title: ClassVar[str] = ""
    is_error: ClassVar[bool] = False

    def get_title(self) -> str:
        return self.title

    def description(self) -> str | None:
        return None

    def fields(self) -> list[tuple[str, str]]:
        return []

    def embed(self) -> dict[str, Any]:
        embed: dict[str, Any] = {"title": self.get_title(), "color": EMBED_COLOR}
        description = self.description()
        if description is not None:
            embed["description"] = description
        fields = self.fields()
        if fields:
            embed["fields"] = [{"name": name, "value": value} for name, value in fields]
        return embed


def to_message(response: Response) -> dict[str, Any]:
    """Chat payload: ``{"type": 4, "data": {"embeds": [...]}}``."""
    return {"type": CHANNEL_MESSAGE, "data": {"embeds": [response.embed()]}}


def deferred_message() -> dict[str, Any]:
    return {"type": DEFERRED_CHANNEL_MESSAGE}


def server_error_message() -> dict[str, Any]:
    return {"type": CHANNEL_MESSAGE, "data": {"content": get_string("serverError")}}


# ---------------------------------------------------------------------------
# Informational
# ---------------------------------------------------------------------------


@dataclass
class HelpResponse(Response):
    title: ClassVar[str] = HELP_TITLE

    def fields(self) -> list[tuple[str, str]]:
        return list(HELP_FIELDS)


@dataclass
class SendHelpResponse(Response):
    command: str = "send"

    def get_title(self) -> str:
        return f"/{self.command}"

    def description(self) -> str:
        return get_string("sendInstructions")


@dataclass
class TokenListResponse(Response):
    title: ClassVar[str] = "All Supported Tokens📖"
    tokens: list[Token] = field(default_factory=list)

    def description(self) -> str:
        if not self.tokens:
            return get_string("noSupportedTokens")
        return "\n".join(f"{t.ticker} | {t.name}" for t in self.tokens)


@dataclass
class BalanceResponse(Response):
    """One token (``ticker`` set) or every token with a non-zero balance."""

    entries: list[TokenBalance] = field(default_factory=list)
    ticker: str | None = None

    def get_title(self) -> str:
        if self.ticker:
            return f"{self.ticker} Balance"
        return "All Balances"

    def description(self) -> str:
        if self.ticker:
            return "\n".join(e.line() for e in self.entries)
        lines = [e.line() for e in self.entries if not e.amount.is_zero()]
        if not lines:
            return get_string("noTokens")
        return "\n".join(lines)


@dataclass
class UnlockInfoResponse(Response):
    title: ClassVar[str] = "Unlocking Your Wallet"

    def description(self) -> str:
        return "\n\n".join([get_string("unlockGeneralInfo"), get_string("unlockInstructions")])


@dataclass
class AlreadyUnlockedResponse(Response):
    title: ClassVar[str] = "Wallet already unlocked"

    def description(self) -> str:
        return "\n\n".join([get_string("unlockGeneralInfo"), get_string("alreadyUnlocked")])


# ---------------------------------------------------------------------------
# Two-phase transactions
# ---------------------------------------------------------------------------


@dataclass
class PreviewResponse(Response):
    """What a transaction would do. Nothing has been signed or sent.

    ``instruction_text`` is the exact command that executes it.
    """

    preview_title: str
    primary_amount: PackedAmount | None
    fee_amount: PackedAmount
    instruction_text: str
    prompt: str | None = None
    primary_usd: Decimal | None = None
    fee_usd: Decimal | None = None

    def get_title(self) -> str:
        return self.preview_title

    def description(self) -> str:
        parts = []
        if self.prompt:
            parts.append(self.prompt)
        if self.primary_amount is not None:
            parts.append(f"Amount: {priced(self.primary_amount, self.primary_usd)}")
            parts.append(f"Fee: {priced(self.fee_amount, self.fee_usd)}")
        else:
            parts.append(priced(self.fee_amount, self.fee_usd))
        parts.append(get_string("confirmInstruction", command=self.instruction_text))
        return "\n\n".join(parts)


@dataclass
class TransactionResponse(Response):
    """A transfer that was executed."""

    transaction_title: str
    primary_amount: PackedAmount
    fee_amount: PackedAmount
    tx_hash: str
    primary_usd: Decimal | None = None
    fee_usd: Decimal | None = None

    def get_title(self) -> str:
        return self.transaction_title

    def description(self) -> str:
        return "\n\n".join(
            [
                f"Sent: {priced(self.primary_amount, self.primary_usd)}",
                f"Fee: {priced(self.fee_amount, self.fee_usd)}",
                f"Transaction: `{self.tx_hash}`",
            ]
        )


@dataclass
class UnlockedResponse(Response):
    ticker: str
    fee_amount: PackedAmount
    tx_hash: str

    def get_title(self) -> str:
        return f"Unlock with {self.ticker}"

    def description(self) -> str:
        return get_string("walletUnlocked")


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


@dataclass
class FailureResponse(Response):
    is_error: ClassVar[bool] = True
    string_key: ClassVar[str] = ""

    def description(self) -> str:
        return get_string(self.string_key)


@dataclass
class TokenNotFoundResponse(FailureResponse):
    title: ClassVar[str] = "Token not found"
    string_key: ClassVar[str] = "tokenNotFound"
    ticker: str | None = None


@dataclass
class InvalidAmountResponse(FailureResponse):
    title: ClassVar[str] = "Invalid amount"
    string_key: ClassVar[str] = "invalidAmount"


@dataclass
class MissingOptionsResponse(FailureResponse):
    title: ClassVar[str] = "Missing options"
    names: list[str] = field(default_factory=list)

    def description(self) -> str:
        return get_string("missingOptions", names=", ".join(f"`{n}`" for n in self.names))


@dataclass
class TransactionFailedResponse(FailureResponse):
    title: ClassVar[str] = "Transaction failed"
    string_key: ClassVar[str] = "transactionFailed"


@dataclass
class DuplicateConfirmResponse(FailureResponse):
    title: ClassVar[str] = "Already confirmed"
    string_key: ClassVar[str] = "duplicateConfirm"


@dataclass
class UnknownCommandResponse(FailureResponse):
    title: ClassVar[str] = "Unknown command"
    string_key: ClassVar[str] = "unknownCommand"
    name: str | None = None
