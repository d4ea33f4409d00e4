"""Resolve chat users to their custodial wallets, creating them on first use."""

from __future__ import annotations

import logging

from kangaroo.network.provider import NetworkClient
from kangaroo.network.wallet import Wallet
from kangaroo.storage.base import UserStore
from kangaroo.storage.keystore import generate_private_key, seal_key, unseal_key

logger = logging.getLogger("kangaroo.users")


class WalletDirectory:
    """Hands out one wallet per user id.

    Parameters
    ----------
    store:
        Where custodial keys live.
    network:
        Network every wallet talks to.
    key_password:
        When set, new keys are stored as encrypted keystore documents.
    kdf_iterations:
        PBKDF2 iterations for encrypted keys.
    """

    def __init__(
        self,
        store: UserStore,
        network: NetworkClient,
        key_password: str = "",
        kdf_iterations: int | None = None,
    ) -> None:
        self.store = store
        self.network = network
        self._key_password = key_password
        self._kdf_iterations = kdf_iterations

    async def get_or_create_wallet(self, user_id: str) -> Wallet:
        """Load the user's wallet, provisioning a key if they have none.

        Idempotent: repeated and concurrent calls for the same user return
        wallets with the same address.
        """
        user_id = str(user_id)
        stored = await self.store.get_private_key(user_id)
        if stored is None:
            key = generate_private_key()
            if self._key_password:
                key = seal_key(key, self._key_password, self._kdf_iterations)
            stored = await self.store.claim_private_key(user_id, key)
        private_key = unseal_key(stored, self._key_password)
        return Wallet.create(private_key, self.network, owner_id=user_id)

    async def find_wallet(self, user_id: str) -> Wallet | None:
        """Like :meth:`get_or_create_wallet` but never provisions."""
        stored = await self.store.get_private_key(str(user_id))
        if stored is None:
            return None
        return Wallet.create(unseal_key(stored, self._key_password), self.network, owner_id=str(user_id))
