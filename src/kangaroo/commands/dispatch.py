"""Route a parsed command to its handler and return exactly one response."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from kangaroo.commands.balances import BalanceAggregator
from kangaroo.commands.guard import ConfirmGuard
from kangaroo.commands.intents import IntentEngine
from kangaroo.commands.parser import (
    CommandKind,
    CommandRequest,
    build_request,
    parse_interaction,
    parse_text,
)
from kangaroo.errors import (
    AmountError,
    MissingOptions,
    TokenNotFound,
    TransactionError,
    UnknownCommand,
)
from kangaroo.network.prices import PriceFeed
from kangaroo.responses import (
    BalanceResponse,
    HelpResponse,
    InvalidAmountResponse,
    MissingOptionsResponse,
    Response,
    SendHelpResponse,
    TokenListResponse,
    TokenNotFoundResponse,
    TransactionFailedResponse,
    UnknownCommandResponse,
)
from kangaroo.storage.base import TokenRegistry
from kangaroo.users import WalletDirectory

logger = logging.getLogger("kangaroo.commands.dispatch")


class CommandDispatcher:
    """The single entry point chat and terminal front ends call.

    User mistakes come back as failure responses.  Anything else (a
    balance query the network cannot answer, a broken database) raises,
    and the front end decides how to report it.
    """

    def __init__(
        self,
        registry: TokenRegistry,
        wallets: WalletDirectory,
        prices: PriceFeed | None = None,
        guard: ConfirmGuard | None = None,
    ) -> None:
        self.registry = registry
        self.wallets = wallets
        self.aggregator = BalanceAggregator(prices)
        self.intents = IntentEngine(registry, wallets, self.aggregator, guard)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def handle_interaction(self, interaction: Mapping[str, Any]) -> Response:
        try:
            request = parse_interaction(interaction)
        except (MissingOptions, UnknownCommand) as exc:
            return self._parse_failure(exc)
        return await self.handle(request)

    async def handle_text(self, actor_id: str, text: str) -> Response:
        try:
            request = parse_text(actor_id, text)
        except (MissingOptions, UnknownCommand) as exc:
            return self._parse_failure(exc)
        return await self.handle(request)

    async def handle_options(
        self, name: str, actor_id: str, options: Mapping[str, Any]
    ) -> Response:
        try:
            request = build_request(name, actor_id, options)
        except (MissingOptions, UnknownCommand) as exc:
            return self._parse_failure(exc)
        return await self.handle(request)

    async def handle(self, request: CommandRequest) -> Response:
        """Run *request* and return its response."""
        logger.debug(f"Handling {request.kind.value} for user {request.actor_id}")
        try:
            if request.kind is CommandKind.SEND:
                return await self.intents.send(request)
            if request.kind is CommandKind.UNLOCK:
                return await self.intents.unlock(request)
            if request.kind is CommandKind.BALANCE:
                return await self.balance(request)
            if request.kind is CommandKind.LIST_TOKENS:
                return TokenListResponse(tokens=await self.registry.list_tokens())
            return HelpResponse()
        except TokenNotFound as exc:
            return TokenNotFoundResponse(ticker=exc.ticker)
        except AmountError as exc:
            logger.debug(f"Rejected amount from user {request.actor_id}: {exc}")
            return InvalidAmountResponse()
        except TransactionError as exc:
            if request.kind not in (CommandKind.SEND, CommandKind.UNLOCK):
                raise
            logger.warning(f"{request.kind.value} for user {request.actor_id} failed: {exc}")
            return TransactionFailedResponse()

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def balance(self, request: CommandRequest) -> BalanceResponse:
        wallet = await self.wallets.get_or_create_wallet(request.actor_id)
        if request.ticker:
            token = await self.intents.find_token(request.ticker)
            entry = await self.aggregator.get_balance(wallet, token)
            return BalanceResponse(entries=[entry], ticker=token.ticker)
        tokens = await self.registry.list_tokens()
        return BalanceResponse(entries=await self.aggregator.get_all_balances(wallet, tokens))

    @staticmethod
    def _parse_failure(exc: MissingOptions | UnknownCommand) -> Response:
        if isinstance(exc, UnknownCommand):
            return UnknownCommandResponse(name=exc.name)
        if exc.all_missing:
            return SendHelpResponse(command=exc.command)
        return MissingOptionsResponse(names=exc.names)
