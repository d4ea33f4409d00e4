"""Layer 2 network capability and its JSON-RPC implementation.

:class:`NetworkClient` is what the wallet facade talks to.  The bot ships
two implementations: :class:`RpcNetworkClient` (a JSON-RPC 2.0 node over
httpx) and :class:`kangaroo.network.simulated.SimulatedNetwork` (an
in-memory ledger used for tests and headless demos).
"""

from __future__ import annotations

import itertools
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

import httpx

from kangaroo.errors import InsufficientBalance, NetworkError, PriceUnavailable
from kangaroo.network.amount import Amount
from kangaroo.network.tokens import Token

logger = logging.getLogger("kangaroo.network.provider")

# pubKeyHash reported for accounts that never set a signing key
UNSET_PUBKEY_HASH = "sync:" + "0" * 40


class FeeKind(str, Enum):
    TRANSFER = "Transfer"
    ACTIVATION = "ChangePubKey"


@dataclass(frozen=True)
class SignedTransaction:
    """A transfer or activation, signed by the custodial key.

    ``message`` is the human-readable text the key signed;
    ``signature`` is the hex encoded Ethereum signature over it.
    """

    kind: FeeKind
    from_address: str
    to_address: str | None
    amount: Amount | None
    fee: Amount
    nonce: int
    message: str
    signature: str

    def to_rpc(self) -> dict[str, Any]:
        tx: dict[str, Any] = {
            "type": self.kind.value,
            "from": self.from_address,
            "fee": str(self.fee.to_base_units()),
            "feeToken": self.fee.ticker,
            "nonce": self.nonce,
        }
        if self.kind is FeeKind.TRANSFER:
            assert self.amount is not None and self.to_address is not None
            tx["to"] = self.to_address
            tx["token"] = self.amount.ticker
            tx["amount"] = str(self.amount.to_base_units())
        else:
            tx["account"] = self.from_address
        return tx


def transaction_message(
    kind: FeeKind,
    to_address: str | None,
    amount: Amount | None,
    fee: Amount,
    nonce: int,
) -> str:
    """Text the account owner signs to authorize a transaction."""
    if kind is FeeKind.TRANSFER:
        return (
            f"Transfer {amount.get_string_value()} {amount.ticker}\n"
            f"To: {to_address.lower()}\n"
            f"Nonce: {nonce}\n"
            f"Fee: {fee.get_string_value()} {fee.ticker}"
        )
    return (
        f"Activate account\n"
        f"Nonce: {nonce}\n"
        f"Fee: {fee.get_string_value()} {fee.ticker}"
    )


class NetworkClient(ABC):
    """What the bot needs from a Layer 2 network."""

    @abstractmethod
    async def get_balance(self, address: str, token: Token) -> Amount:
        """Committed balance; zero for tokens the account never held."""

    @abstractmethod
    async def is_activated(self, address: str) -> bool:
        """True once the account has set its signing key (is unlocked)."""

    @abstractmethod
    async def get_nonce(self, address: str) -> int: ...

    @abstractmethod
    async def quote_fee(self, kind: FeeKind, token: Token, address: str) -> Amount:
        """Current fee in *token*.

        *address* is the transfer target for transfers and the account
        itself for activations.
        """

    @abstractmethod
    async def submit(self, tx: SignedTransaction) -> str:
        """Broadcast a signed transaction and return its hash."""

    async def close(self) -> None:
        return None


class RpcNetworkClient(NetworkClient):
    """JSON-RPC 2.0 client for a Layer 2 node.

    Parameters
    ----------
    rpc_url:
        Endpoint accepting JSON-RPC POST requests.
    timeout:
        Per-request timeout in seconds.
    client:
        Optional pre-built ``httpx.AsyncClient`` (tests inject one).
    """

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.timeout = timeout
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._ids = itertools.count(1)

    async def close(self) -> None:
        await self._client.aclose()

    async def _call(self, method: str, params: list[Any]) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        try:
            resp = await self._client.post(self.rpc_url, json=payload, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as exc:
            raise NetworkError(f"{method} request failed: {exc}") from exc
        except ValueError as exc:
            raise NetworkError(f"{method} returned invalid JSON") from exc

        if not isinstance(data, dict):
            raise NetworkError(f"{method} returned a non-object response")
        error = data.get("error")
        if error:
            message = error.get("message", "") if isinstance(error, dict) else str(error)
            if "insufficient" in message.lower() or "not enough balance" in message.lower():
                raise InsufficientBalance(_ticker_from_params(params))
            raise NetworkError(f"{method} failed: {message}")
        return data.get("result")

    async def _account_state(self, address: str) -> dict[str, Any]:
        result = await self._call("account_info", [address])
        return (result or {}).get("committed") or {}

    async def get_balance(self, address: str, token: Token) -> Amount:
        balances = (await self._account_state(address)).get("balances") or {}
        return Amount.from_base_units(token, int(balances.get(token.ticker, "0")))

    async def is_activated(self, address: str) -> bool:
        pub_key_hash = (await self._account_state(address)).get("pubKeyHash")
        return bool(pub_key_hash) and pub_key_hash != UNSET_PUBKEY_HASH

    async def get_nonce(self, address: str) -> int:
        return int((await self._account_state(address)).get("nonce", 0))

    async def quote_fee(self, kind: FeeKind, token: Token, address: str) -> Amount:
        tx_type: Any = kind.value
        if kind is FeeKind.ACTIVATION:
            tx_type = {"ChangePubKey": "ECDSA"}
        result = await self._call("get_tx_fee", [tx_type, address, token.ticker])
        try:
            return Amount.from_base_units(token, int(result["totalFee"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise NetworkError(f"Unexpected fee quote: {result!r}") from exc

    async def submit(self, tx: SignedTransaction) -> str:
        signature = {"type": "EthereumSignature", "signature": tx.signature}
        result = await self._call("tx_submit", [tx.to_rpc(), signature])
        logger.info(f"Submitted {tx.kind.value} from {tx.from_address}: {result}")
        return str(result)

    async def get_token_price(self, token: Token) -> Decimal:
        try:
            result = await self._call("get_token_price", [token.ticker])
        except NetworkError as exc:
            raise PriceUnavailable(token.ticker, str(exc)) from exc
        if result is None:
            raise PriceUnavailable(token.ticker)
        return Decimal(str(result))


def _ticker_from_params(params: list[Any]) -> str:
    for param in params:
        if isinstance(param, dict) and "feeToken" in param:
            return str(param.get("token") or param["feeToken"])
    return "?"
