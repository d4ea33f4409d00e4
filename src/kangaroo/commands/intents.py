"""Two-phase send and unlock.

A command without ``confirm`` returns a preview; the same command with
``confirm`` executes.  Nothing is remembered in between: the confirm call
looks up the token, parses the amount and quotes the fee again from
scratch, and only the flag decides whether anything is signed.
"""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal

from kangaroo.commands.balances import BalanceAggregator
from kangaroo.commands.guard import ConfirmGuard
from kangaroo.commands.parser import CommandRequest
from kangaroo.errors import NonPositiveAmount, TokenNotFound, TransactionError
from kangaroo.network.amount import Amount, PackedAmount
from kangaroo.network.tokens import Token
from kangaroo.responses import (
    AlreadyUnlockedResponse,
    DuplicateConfirmResponse,
    PreviewResponse,
    Response,
    TransactionFailedResponse,
    TransactionResponse,
    UnlockedResponse,
    UnlockInfoResponse,
)
from kangaroo.storage.base import TokenRegistry
from kangaroo.users import WalletDirectory

logger = logging.getLogger("kangaroo.commands.intents")

TRANSFER_TITLE = "Transfer tokens"


def send_instruction(amount_text: str, ticker: str, target: str, target_is_address: bool) -> str:
    """The exact command that confirms a previewed send."""
    recipient = target if target_is_address else f"@{target}"
    return f"/send {amount_text} {ticker} {recipient} confirm"


def unlock_instruction(ticker: str) -> str:
    return f"/unlock {ticker} confirm"


class IntentEngine:
    """Previews and executes transfers and wallet unlocks.

    Parameters
    ----------
    registry:
        Supported tokens.
    wallets:
        Resolves user ids to custodial wallets, creating them lazily.
    aggregator:
        Used to price amounts in USD for display.
    guard:
        Optional duplicate-confirm guard.  ``None`` executes every confirm.
    """

    def __init__(
        self,
        registry: TokenRegistry,
        wallets: WalletDirectory,
        aggregator: BalanceAggregator | None = None,
        guard: ConfirmGuard | None = None,
    ) -> None:
        self.registry = registry
        self.wallets = wallets
        self.aggregator = aggregator or BalanceAggregator()
        self.guard = guard

    async def find_token(self, ticker: str | None) -> Token:
        token = await self.registry.find_token(ticker) if ticker else None
        if token is None:
            raise TokenNotFound(ticker)
        return token

    async def _resolve_target(self, request: CommandRequest) -> str:
        if request.target_is_address:
            return request.target_id
        target = await self.wallets.get_or_create_wallet(request.target_id)
        return target.address

    async def _prices(self, *amounts: PackedAmount) -> list[Decimal | None]:
        return list(await asyncio.gather(*(self.aggregator.usd_value(a) for a in amounts)))

    # ------------------------------------------------------------------
    # Send
    # ------------------------------------------------------------------

    async def send(self, request: CommandRequest) -> Response:
        """Preview or execute a transfer.

        Raises
        ------
        TokenNotFound
            If the ticker is not supported.
        AmountError
            If the amount is malformed, negative, zero or rounds to zero.
        """
        token = await self.find_token(request.ticker)
        amount = Amount.from_text(token, request.amount_text)
        if not amount.is_positive():
            raise NonPositiveAmount(request.amount_text)
        primary = amount.get_closest_packable()
        if primary.is_zero():
            raise NonPositiveAmount(request.amount_text)

        actor, target_address = await asyncio.gather(
            self.wallets.get_or_create_wallet(request.actor_id),
            self._resolve_target(request),
        )
        quoted = await actor.get_transfer_fee(token, target_address)
        fee = quoted.get_closest_packable_fee()
        primary_usd, fee_usd = await self._prices(primary, fee)

        if not request.confirmed:
            return PreviewResponse(
                preview_title=TRANSFER_TITLE,
                primary_amount=primary,
                fee_amount=fee,
                instruction_text=send_instruction(
                    request.amount_text.strip(),
                    token.ticker,
                    request.target_id,
                    request.target_is_address,
                ),
                primary_usd=primary_usd,
                fee_usd=fee_usd,
            )

        key = (request.actor_id, "send", token.ticker, primary.value, target_address)
        if not self._claim(key):
            return DuplicateConfirmResponse()
        try:
            result = await actor.transfer(token, target_address, primary, fee)
        except TransactionError as exc:
            self._release(key)
            logger.warning(
                f"Send of {primary} (fee {fee}) by user {request.actor_id} "
                f"to {target_address} failed: {exc}"
            )
            return TransactionFailedResponse()
        return TransactionResponse(
            transaction_title=TRANSFER_TITLE,
            primary_amount=primary,
            fee_amount=fee,
            tx_hash=result.tx_hash,
            primary_usd=primary_usd,
            fee_usd=fee_usd,
        )

    # ------------------------------------------------------------------
    # Unlock
    # ------------------------------------------------------------------

    async def unlock(self, request: CommandRequest) -> Response:
        """Explain, preview or execute a wallet unlock.

        An unlocked wallet short-circuits before anything else is looked at.
        """
        wallet = await self.wallets.get_or_create_wallet(request.actor_id)
        if await wallet.get_unlocked():
            return AlreadyUnlockedResponse()
        if not request.ticker:
            return UnlockInfoResponse()

        token = await self.find_token(request.ticker)
        fee = (await wallet.get_unlock_fee(token)).get_closest_packable_fee()

        if not request.confirmed:
            (fee_usd,) = await self._prices(fee)
            return PreviewResponse(
                preview_title=f"Unlock with {token.ticker}",
                primary_amount=None,
                fee_amount=fee,
                instruction_text=unlock_instruction(token.ticker),
                prompt=f"Unlock your wallet using {token.ticker}?",
                fee_usd=fee_usd,
            )

        key = (request.actor_id, "unlock", token.ticker)
        if not self._claim(key):
            return DuplicateConfirmResponse()
        try:
            result = await wallet.unlock(fee)
        except TransactionError as exc:
            self._release(key)
            logger.warning(f"Unlock by user {request.actor_id} paying {fee} failed: {exc}")
            return TransactionFailedResponse()
        return UnlockedResponse(ticker=token.ticker, fee_amount=fee, tx_hash=result.tx_hash)

    def _claim(self, key: tuple) -> bool:
        if self.guard is None or self.guard.claim(key):
            return True
        logger.info(f"Ignoring repeated confirm {key}")
        return False

    def _release(self, key: tuple) -> None:
        if self.guard is not None:
            self.guard.release(key)
