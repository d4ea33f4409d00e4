"""Kangaroo - wires config, storage, the network and the command dispatcher."""

from __future__ import annotations

import logging
from decimal import Decimal

from kangaroo.commands.dispatch import CommandDispatcher
from kangaroo.commands.guard import ConfirmGuard
from kangaroo.config import KangarooConfig, NetworkConfig
from kangaroo.network.amount import Amount
from kangaroo.network.prices import PriceFeed, RpcPriceFeed, StaticPriceFeed
from kangaroo.network.provider import NetworkClient, RpcNetworkClient
from kangaroo.network.simulated import SimulatedNetwork
from kangaroo.storage.base import Store
from kangaroo.storage.database import get_database
from kangaroo.storage.store import SqliteStore
from kangaroo.users import WalletDirectory

logger = logging.getLogger("kangaroo.bot")


def build_network(config: NetworkConfig) -> tuple[NetworkClient, PriceFeed]:
    """Network client and price feed for the configured backend."""
    if config.backend == "rpc":
        client = RpcNetworkClient(config.rpc_url, timeout=config.timeout_seconds)
        return client, RpcPriceFeed(client)
    sim = config.simulated
    network = SimulatedNetwork(
        transfer_fee=sim.transfer_fee,
        new_account_fee=sim.new_account_fee,
        activation_fee=sim.activation_fee,
    )
    prices = StaticPriceFeed({t: Decimal(p) for t, p in sim.prices.items()})
    return network, prices


class Kangaroo:
    """A running bot instance.

    Owns the store and the network client; call :meth:`shutdown` when done.
    """

    def __init__(
        self,
        config: KangarooConfig,
        store: Store,
        network: NetworkClient,
        prices: PriceFeed | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self.network = network
        self.prices = prices
        self.wallets = WalletDirectory(
            store,
            network,
            key_password=config.storage.key_password,
            kdf_iterations=config.storage.kdf_iterations,
        )
        guard_window = config.safety.confirm_dedup_seconds
        self.dispatcher = CommandDispatcher(
            store,
            self.wallets,
            prices=prices,
            guard=ConfirmGuard(guard_window) if guard_window > 0 else None,
        )

    @classmethod
    async def load(cls, config: KangarooConfig) -> Kangaroo:
        """Open storage, seed the token registry and connect the network."""
        db = get_database(config.storage.db_path)
        await db.connect()
        store = SqliteStore(db)
        for seed in config.tokens:
            await store.add_token(seed.to_token())

        network, prices = build_network(config.network)
        bot = cls(config=config, store=store, network=network, prices=prices)
        if isinstance(network, SimulatedNetwork):
            await bot._seed_simulated(network)
        logger.info(
            f"Kangaroo ready: {config.network.backend} network, "
            f"{len(config.tokens)} seeded tokens, db {config.storage.db_path}"
        )
        return bot

    async def _seed_simulated(self, network: SimulatedNetwork) -> None:
        seed = self.config.network.simulated
        for user_id, holdings in seed.balances.items():
            wallet = await self.wallets.get_or_create_wallet(user_id)
            for ticker, value in holdings.items():
                token = await self.store.find_token(ticker)
                if token is None:
                    logger.warning(f"Skipping seed balance in unknown token {ticker}")
                    continue
                network.fund(wallet.address, Amount.from_value(token, value))
        for user_id in seed.activated:
            wallet = await self.wallets.get_or_create_wallet(user_id)
            network.activate(wallet.address)

    async def shutdown(self) -> None:
        await self.network.close()
        await self.store.close()
