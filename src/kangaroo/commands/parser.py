"""Turn raw chat interactions or command text into validated requests.

Parsing is pure: no registry lookups, no network.  Ticker existence is
checked by the command handlers so that an unknown ticker fails the same
way whatever case the user typed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from kangaroo.errors import MissingOptions, UnknownCommand


class CommandKind(str, Enum):
    BALANCE = "balance"
    SEND = "send"
    UNLOCK = "unlock"
    LIST_TOKENS = "tokens"
    HELP = "help"


COMMAND_ALIASES: dict[str, CommandKind] = {
    "balance": CommandKind.BALANCE,
    "balances": CommandKind.BALANCE,
    "send": CommandKind.SEND,
    "tip": CommandKind.SEND,
    "withdraw": CommandKind.SEND,
    "unlock": CommandKind.UNLOCK,
    "tokens": CommandKind.LIST_TOKENS,
    "listtokens": CommandKind.LIST_TOKENS,
    "help": CommandKind.HELP,
}

# Canonical option order for /send; missing options are reported in this order.
SEND_OPTIONS = ("amount", "ticker", "user")

_MENTION_RE = re.compile(r"<@!?(\w+)>|@(\w+)")
_ADDRESS_RE = re.compile(r"0x[0-9a-fA-F]{40}")
_CONFIRM = "confirm"


@dataclass(frozen=True)
class CommandRequest:
    """A validated command. Built per invocation, never stored."""

    kind: CommandKind
    actor_id: str
    ticker: str | None = None
    amount_text: str | None = None
    target_id: str | None = None
    confirmed: bool = False
    command_name: str = ""

    @property
    def target_is_address(self) -> bool:
        return self.target_id is not None and is_address(self.target_id)


def is_address(value: str) -> bool:
    return _ADDRESS_RE.fullmatch(value) is not None


def get_option(interaction: Mapping[str, Any], name: str) -> Any:
    """Value of the option called *name* (case-insensitive), or ``None``."""
    options = (interaction.get("data") or {}).get("options") or []
    wanted = name.lower()
    for option in options:
        if str(option.get("name", "")).lower() == wanted:
            return option.get("value")
    return None


def get_actor_id(interaction: Mapping[str, Any]) -> str | None:
    """Guild interactions carry ``member.user``; direct messages carry ``user``."""
    member = interaction.get("member") or {}
    user = member.get("user") or interaction.get("user") or {}
    user_id = user.get("id")
    return str(user_id) if user_id is not None else None


def normalize_target(value: Any) -> str | None:
    """``"@u"``, ``"<@u>"`` and ``"<@!u>"`` all become ``"u"``."""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    match = _MENTION_RE.fullmatch(text)
    if match:
        return match.group(1) or match.group(2)
    return text


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def build_request(name: str, actor_id: str, options: Mapping[str, Any]) -> CommandRequest:
    """Validate *options* for the command *name*.

    Raises
    ------
    UnknownCommand
        If *name* is not a command.
    MissingOptions
        If ``/send`` lacks any of ``amount``, ``ticker``, ``user``.
    """
    kind = COMMAND_ALIASES.get(str(name or "").strip().lstrip("/").lower())
    if kind is None:
        raise UnknownCommand(name)

    lowered = {str(k).lower(): v for k, v in options.items()}
    ticker = _text(lowered.get("ticker"))
    confirmed = _text(lowered.get(_CONFIRM)) is not None

    if kind is CommandKind.SEND:
        values = {
            "amount": _text(lowered.get("amount")),
            "ticker": ticker,
            "user": normalize_target(lowered.get("user") or lowered.get("address")),
        }
        missing = [opt for opt in SEND_OPTIONS if values[opt] is None]
        if missing:
            raise MissingOptions(
                kind.value, missing, all_missing=len(missing) == len(SEND_OPTIONS)
            )
        return CommandRequest(
            kind=kind,
            actor_id=actor_id,
            ticker=ticker.upper(),
            amount_text=values["amount"],
            target_id=values["user"],
            confirmed=confirmed,
            command_name=kind.value,
        )

    if kind in (CommandKind.BALANCE, CommandKind.UNLOCK):
        return CommandRequest(
            kind=kind,
            actor_id=actor_id,
            ticker=ticker.upper() if ticker else None,
            confirmed=confirmed and kind is CommandKind.UNLOCK,
            command_name=kind.value,
        )

    return CommandRequest(kind=kind, actor_id=actor_id, command_name=kind.value)


def parse_interaction(interaction: Mapping[str, Any]) -> CommandRequest:
    """Parse a chat platform application-command interaction."""
    data = interaction.get("data") or {}
    actor_id = get_actor_id(interaction)
    if actor_id is None:
        raise ValueError("Interaction has no user")
    options = {
        str(o.get("name", "")): o.get("value")
        for o in data.get("options") or []
    }
    return build_request(data.get("name", ""), actor_id, options)


def parse_text(actor_id: str, text: str) -> CommandRequest:
    """Parse the typed form, e.g. ``/send 0.2 eth @u confirm``.

    Positional arguments map onto the command's options; a trailing
    ``confirm`` sets the confirm flag.
    """
    words = text.split()
    if not words:
        raise UnknownCommand("")
    name, args = words[0], words[1:]
    kind = COMMAND_ALIASES.get(name.lstrip("/").lower())
    if kind is None:
        raise UnknownCommand(name)

    options: dict[str, str] = {}
    if kind is CommandKind.SEND:
        if len(args) > len(SEND_OPTIONS) and args[len(SEND_OPTIONS)].lower() == _CONFIRM:
            options[_CONFIRM] = _CONFIRM
        options.update(zip(SEND_OPTIONS, args[: len(SEND_OPTIONS)]))
    elif kind is CommandKind.UNLOCK:
        if args and args[-1].lower() == _CONFIRM:
            options[_CONFIRM] = _CONFIRM
            args = args[:-1]
        if args:
            options["ticker"] = args[0]
    elif kind is CommandKind.BALANCE and args:
        options["ticker"] = args[0]
    return build_request(name, actor_id, options)
