"""Chat commands: parsing, the send/unlock protocol, balances, dispatch."""

from kangaroo.commands.balances import BalanceAggregator, TokenBalance
from kangaroo.commands.dispatch import CommandDispatcher
from kangaroo.commands.guard import ConfirmGuard
from kangaroo.commands.intents import IntentEngine
from kangaroo.commands.parser import (
    CommandKind,
    CommandRequest,
    build_request,
    parse_interaction,
    parse_text,
)

__all__ = [
    "BalanceAggregator",
    "CommandDispatcher",
    "CommandKind",
    "CommandRequest",
    "ConfirmGuard",
    "IntentEngine",
    "TokenBalance",
    "build_request",
    "parse_interaction",
    "parse_text",
]
