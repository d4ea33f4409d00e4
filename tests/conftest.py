"""Shared fixtures: an in-memory store, a simulated network and a dispatcher."""

from __future__ import annotations

from decimal import Decimal

import pytest

from kangaroo.commands.dispatch import CommandDispatcher
from kangaroo.network.amount import Amount
from kangaroo.network.prices import StaticPriceFeed
from kangaroo.network.simulated import SimulatedNetwork
from kangaroo.network.tokens import Token
from kangaroo.network.wallet import Wallet
from kangaroo.storage.memory import MemoryStore
from kangaroo.users import WalletDirectory

ETH = Token(ticker="ETH", name="Ethereum", decimals=18)
DAI = Token(ticker="DAI", name="Dai", decimals=18)
USDC = Token(ticker="USDC", name="USD Coin", decimals=6)


@pytest.fixture
def network() -> SimulatedNetwork:
    return SimulatedNetwork()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore([ETH, DAI])


@pytest.fixture
def wallets(store: MemoryStore, network: SimulatedNetwork) -> WalletDirectory:
    return WalletDirectory(store, network)


@pytest.fixture
def prices() -> StaticPriceFeed:
    return StaticPriceFeed({"ETH": "3000", "DAI": "1"})


@pytest.fixture
def dispatcher(
    store: MemoryStore, wallets: WalletDirectory, prices: StaticPriceFeed
) -> CommandDispatcher:
    return CommandDispatcher(store, wallets, prices=prices)


@pytest.fixture
def fund(wallets: WalletDirectory, network: SimulatedNetwork):
    """``await fund("alice", ETH, "1.5")`` credits a user's wallet and unlocks it."""

    async def _fund(user_id: str, token: Token, value: str, activate: bool = True) -> Wallet:
        wallet = await wallets.get_or_create_wallet(user_id)
        network.fund(wallet.address, Amount.from_value(token, Decimal(value)))
        if activate:
            network.activate(wallet.address)
        return wallet

    return _fund
