"""Per-user custodial wallet on the Layer 2 network."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount

from kangaroo.errors import InsufficientBalance
from kangaroo.network.amount import Amount
from kangaroo.network.provider import (
    FeeKind,
    NetworkClient,
    SignedTransaction,
    transaction_message,
)
from kangaroo.network.tokens import PackFormat, Token

logger = logging.getLogger("kangaroo.network.wallet")


@dataclass(frozen=True)
class TransferResult:
    tx_hash: str
    kind: FeeKind
    amount: Amount | None
    fee: Amount


class Wallet:
    """A user's Layer 2 account, driven by a custodial private key.

    The wallet never retries: a failed broadcast surfaces to the caller,
    and the user re-issues the command to get fresh quotes.
    """

    def __init__(
        self,
        account: LocalAccount,
        network: NetworkClient,
        owner_id: str | None = None,
    ) -> None:
        self._account = account
        self._network = network
        self.owner_id = owner_id

    @classmethod
    def create(
        cls,
        private_key: str | bytes,
        network: NetworkClient,
        owner_id: str | None = None,
    ) -> Wallet:
        """Derive the wallet for *private_key*. Same key, same address."""
        return cls(Account.from_key(private_key), network, owner_id)

    @property
    def address(self) -> str:
        return self._account.address

    def __repr__(self) -> str:
        return f"Wallet(owner_id={self.owner_id!r}, address={self.address!r})"

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_balance(self, token: Token) -> Amount:
        return await self._network.get_balance(self.address, token)

    async def get_unlocked(self) -> bool:
        return await self._network.is_activated(self.address)

    async def get_unlock_fee(self, token: Token) -> Amount:
        """Fresh quote for activating this wallet, paid in *token*."""
        return await self._network.quote_fee(FeeKind.ACTIVATION, token, self.address)

    async def get_transfer_fee(self, token: Token, target_address: str) -> Amount:
        """Fresh quote for sending *token* to *target_address*."""
        return await self._network.quote_fee(FeeKind.TRANSFER, token, target_address)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def transfer(
        self,
        token: Token,
        target_address: str,
        amount: Amount,
        fee: Amount,
    ) -> TransferResult:
        """Sign and submit a transfer of *amount* to *target_address*, paying *fee*.

        Raises
        ------
        InsufficientBalance
            If the amount plus fee (summed per ticker) exceeds the balance.
        NetworkError
            If the network rejects or cannot receive the transaction.
        """
        if amount.ticker != token.ticker:
            raise ValueError(f"Amount is in {amount.ticker}, transfer is in {token.ticker}")
        _require_packed(amount, token.amount_format, "amount")
        _require_packed(fee, fee.token.fee_format, "fee")
        await self._check_funds([amount, fee])

        nonce = await self._network.get_nonce(self.address)
        tx = self._sign(FeeKind.TRANSFER, target_address, amount, fee, nonce)
        tx_hash = await self._network.submit(tx)
        logger.info(
            f"Transfer {amount} (fee {fee}) from {self.address} to {target_address}: {tx_hash}"
        )
        return TransferResult(tx_hash=tx_hash, kind=FeeKind.TRANSFER, amount=amount, fee=fee)

    async def unlock(self, fee: Amount) -> TransferResult:
        """Pay *fee* to activate the wallet. Activation cannot be undone."""
        _require_packed(fee, fee.token.fee_format, "fee")
        await self._check_funds([fee])

        nonce = await self._network.get_nonce(self.address)
        tx = self._sign(FeeKind.ACTIVATION, None, None, fee, nonce)
        tx_hash = await self._network.submit(tx)
        logger.info(f"Unlocked {self.address} paying {fee}: {tx_hash}")
        return TransferResult(tx_hash=tx_hash, kind=FeeKind.ACTIVATION, amount=None, fee=fee)

    async def _check_funds(self, obligations: list[Amount]) -> None:
        """Compare what must leave the wallet with its balance, ticker by ticker."""
        required: dict[str, Amount] = {}
        for item in obligations:
            current = required.get(item.ticker)
            required[item.ticker] = item if current is None else current.add(item)

        needed = list(required.values())
        balances = await asyncio.gather(*(self.get_balance(a.token) for a in needed))
        for need, have in zip(needed, balances):
            if have < need:
                raise InsufficientBalance(need.ticker, need.value, have.value)

    def _sign(
        self,
        kind: FeeKind,
        to_address: str | None,
        amount: Amount | None,
        fee: Amount,
        nonce: int,
    ) -> SignedTransaction:
        message = transaction_message(kind, to_address, amount, fee, nonce)
        signed = self._account.sign_message(encode_defunct(text=message))
        return SignedTransaction(
            kind=kind,
            from_address=self.address,
            to_address=to_address,
            amount=amount,
            fee=fee,
            nonce=nonce,
            message=message,
            signature=signed.signature.hex(),
        )


def _require_packed(amount: Amount, fmt: PackFormat, label: str) -> None:
    if amount.value < 0:
        raise ValueError(f"The {label} must not be negative: {amount}")
    if not amount.packs_exactly(fmt):
        raise ValueError(
            f"The {label} {amount} is not packable; round it with get_closest_packable() first"
        )
