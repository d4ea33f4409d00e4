"""In-memory Layer 2 network for tests and headless demos.

Behaves like the real node where the bot can observe it: balances per
address, activation flags, nonces, a fee schedule that depends on whether
the transfer target already exists, signature and packing checks, and
balance enforcement on submission.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from decimal import Decimal

from eth_account import Account
from eth_account.messages import encode_defunct

from kangaroo.errors import InsufficientBalance, NetworkError, TransactionError
from kangaroo.network.amount import Amount, is_packable
from kangaroo.network.provider import FeeKind, NetworkClient, SignedTransaction
from kangaroo.network.tokens import Token

logger = logging.getLogger("kangaroo.network.simulated")


class SimulatedNetwork(NetworkClient):
    """A single-process stand-in for the Layer 2 node.

    Parameters
    ----------
    transfer_fee:
        Fee for a transfer to an existing account, in whole tokens of the
        transferred token.
    new_account_fee:
        Extra fee when the target has never held funds.
    activation_fee:
        Fee for unlocking (setting the signing key).
    require_activation:
        Reject transfers from accounts that are still locked.
    """

    def __init__(
        self,
        transfer_fee: Decimal | str = "0.000123456789",
        new_account_fee: Decimal | str = "0.0001",
        activation_fee: Decimal | str = "0.00234567",
        require_activation: bool = True,
    ) -> None:
        self._default_fees = {
            FeeKind.TRANSFER: Decimal(str(transfer_fee)),
            FeeKind.ACTIVATION: Decimal(str(activation_fee)),
        }
        self._new_account_fee = Decimal(str(new_account_fee))
        self._fee_overrides: dict[tuple[FeeKind, str], Decimal] = {}
        self.require_activation = require_activation
        self._balances: dict[tuple[str, str], int] = {}
        self._known: set[str] = set()
        self._activated: set[str] = set()
        self._nonces: dict[str, int] = {}
        self._pending_failure: TransactionError | None = None
        self._lock = asyncio.Lock()
        self.submitted: list[SignedTransaction] = []

    # ------------------------------------------------------------------
    # Test and demo controls
    # ------------------------------------------------------------------

    def fund(self, address: str, amount: Amount) -> None:
        key = (address.lower(), amount.ticker)
        self._balances[key] = self._balances.get(key, 0) + amount.to_base_units()
        self._known.add(address.lower())

    def activate(self, address: str) -> None:
        self._activated.add(address.lower())
        self._known.add(address.lower())

    def set_fee(self, kind: FeeKind, ticker: str, value: Decimal | str) -> None:
        """Change the quoted fee, as fee-market conditions would."""
        self._fee_overrides[(kind, ticker.upper())] = Decimal(str(value))

    def fail_next_submit(self, error: TransactionError | None = None) -> None:
        self._pending_failure = error or NetworkError("simulated broadcast failure")

    # ------------------------------------------------------------------
    # NetworkClient
    # ------------------------------------------------------------------

    async def get_balance(self, address: str, token: Token) -> Amount:
        units = self._balances.get((address.lower(), token.ticker), 0)
        return Amount.from_base_units(token, units)

    async def is_activated(self, address: str) -> bool:
        return address.lower() in self._activated

    async def get_nonce(self, address: str) -> int:
        return self._nonces.get(address.lower(), 0)

    async def quote_fee(self, kind: FeeKind, token: Token, address: str) -> Amount:
        fee = self._fee_overrides.get((kind, token.ticker), self._default_fees[kind])
        if kind is FeeKind.TRANSFER and address.lower() not in self._known:
            fee += self._new_account_fee
        return Amount.from_value(token, fee)

    async def submit(self, tx: SignedTransaction) -> str:
        async with self._lock:
            if self._pending_failure is not None:
                error, self._pending_failure = self._pending_failure, None
                raise error
            sender = tx.from_address.lower()
            self._verify(tx, sender)

            debits: dict[Token, int] = {}
            debits[tx.fee.token] = tx.fee.to_base_units()
            if tx.kind is FeeKind.TRANSFER:
                debits[tx.amount.token] = debits.get(tx.amount.token, 0) + tx.amount.to_base_units()
            for token, units in debits.items():
                have = self._balances.get((sender, token.ticker), 0)
                if have < units:
                    raise InsufficientBalance(
                        token.ticker,
                        Amount.from_base_units(token, units).value,
                        Amount.from_base_units(token, have).value,
                    )

            for token, units in debits.items():
                self._balances[(sender, token.ticker)] -= units
            if tx.kind is FeeKind.TRANSFER:
                target = tx.to_address.lower()
                key = (target, tx.amount.ticker)
                self._balances[key] = self._balances.get(key, 0) + tx.amount.to_base_units()
                self._known.add(target)
            else:
                self._activated.add(sender)
            self._nonces[sender] = tx.nonce + 1
            self.submitted.append(tx)

        tx_hash = "sync-tx:" + hashlib.sha256(tx.signature.encode()).hexdigest()
        logger.debug(f"Simulated {tx.kind.value} {tx_hash}")
        return tx_hash

    def _verify(self, tx: SignedTransaction, sender: str) -> None:
        signature = bytes.fromhex(tx.signature.removeprefix("0x"))
        signer = Account.recover_message(encode_defunct(text=tx.message), signature=signature)
        if signer.lower() != sender:
            raise NetworkError("Invalid signature")
        if tx.nonce != self._nonces.get(sender, 0):
            raise NetworkError(f"Nonce mismatch for {tx.from_address}")
        if tx.kind is FeeKind.TRANSFER:
            if self.require_activation and sender not in self._activated:
                raise NetworkError(f"Account {tx.from_address} is locked")
            if not is_packable(tx.amount.to_base_units(), tx.amount.token.amount_format):
                raise NetworkError("Transfer amount is not packable")
        elif sender in self._activated:
            raise NetworkError(f"Account {tx.from_address} is already unlocked")
        if not is_packable(tx.fee.to_base_units(), tx.fee.token.fee_format):
            raise NetworkError("Fee is not packable")
