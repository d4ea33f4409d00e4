"""Layer 2 network layer: tokens, exact amounts, wallets and network clients."""

from kangaroo.network.amount import Amount, PackedAmount
from kangaroo.network.prices import PriceFeed, RpcPriceFeed, StaticPriceFeed
from kangaroo.network.provider import FeeKind, NetworkClient, RpcNetworkClient
from kangaroo.network.simulated import SimulatedNetwork
from kangaroo.network.tokens import Token
from kangaroo.network.wallet import TransferResult, Wallet

__all__ = [
    "Amount",
    "FeeKind",
    "NetworkClient",
    "PackedAmount",
    "PriceFeed",
    "RpcNetworkClient",
    "RpcPriceFeed",
    "SimulatedNetwork",
    "StaticPriceFeed",
    "Token",
    "TransferResult",
    "Wallet",
]
