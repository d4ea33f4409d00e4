"""Custodial key generation and optional at-rest encryption using eth-account."""

from __future__ import annotations

import json

from eth_account import Account


def generate_private_key() -> str:
    """Generate a fresh key and return it as ``0x``-prefixed hex."""
    acct = Account.create()
    return "0x" + bytes(acct.key).hex()


def seal_key(private_key: str, password: str, iterations: int | None = None) -> str:
    """Encrypt *private_key* into a keystore JSON document.

    Parameters
    ----------
    private_key:
        Hex private key.
    password:
        Password used to encrypt the key.
    iterations:
        PBKDF2 iteration count. ``None`` uses the eth-account default.
    """
    encrypted = Account.encrypt(private_key, password, kdf="pbkdf2", iterations=iterations)
    return json.dumps(encrypted)


def unseal_key(stored: str, password: str) -> str:
    """Return the hex key from a stored value.

    Plain hex keys are returned unchanged so a database can hold keys
    written before encryption was switched on.

    Raises
    ------
    ValueError
        If the password is incorrect or the keystore is unreadable.
    """
    if not stored.lstrip().startswith("{"):
        return stored
    data = json.loads(stored)
    try:
        return "0x" + bytes(Account.decrypt(data, password)).hex()
    except Exception as exc:
        raise ValueError(f"Failed to decrypt keystore: {exc}") from exc
