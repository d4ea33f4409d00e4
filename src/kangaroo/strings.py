"""User-facing text."""

from __future__ import annotations

EMBED_COLOR = 15422875

HELP_TITLE = "Introduction to Kangaroo 🦘"

HELP_FIELDS: list[tuple[str, str]] = [
    (
        "What is It? ⁉️",
        "Kangaroo is a crypto tipping bot built with Layer 2 onboarding in mind. "
        "It supports Ethereum and a range of ERC-20 tokens.",
    ),
    (
        "Frictionless withdrawals 💸",
        "Typical Ethereum token transactions can have fees upwards of $20. "
        "Harness the power of Layer 2 and withdraw your funds for nearly 100 times less.",
    ),
    (
        "Grow your community 👥",
        "Engage your discord server with a plethora community oriented features. "
        "Better yet, give crypto funds that your community members can actually use.",
    ),
    (
        "The Basics 📘",
        "Tip other users, deposit and withdraw ETH and ERC-20 tokens to your Layer 2 wallet. ",
    ),
    (
        "Layer 2 Native 👏",
        "Kangaroo lives on Layer 2 Ethereum. No slow or expensive user experience.",
    ),
]

_STRINGS: dict[str, str] = {
    "unlockGeneralInfo": (
        "Layer 2 wallets start out locked. Unlocking registers your wallet's "
        "signing key on the network, once, and costs a small fee paid in any "
        "supported token."
    ),
    "unlockInstructions": (
        "Do `/unlock <ticker>` to see the fee in that token, then "
        "`/unlock <ticker> confirm` to pay it."
    ),
    "alreadyUnlocked": "Your wallet is already unlocked. There is nothing left to do.",
    "sendInstructions": (
        "Do `/send <amount> <ticker> @<user>` to preview a transfer, then repeat "
        "the command with `confirm` at the end to send it."
    ),
    "tokenNotFound": "That token is not supported. Do `/tokens` to see the supported tokens.",
    "invalidAmount": "That amount is not valid. Use a positive number such as `0.2`.",
    "missingOptions": "Missing options: {names}.",
    "transactionFailed": (
        "The transaction failed. Check your balance covers the amount and the fee, "
        "then try again."
    ),
    "duplicateConfirm": (
        "That exact transaction was just confirmed. Wait a moment before sending it again."
    ),
    "unknownCommand": "Unknown command. Do `/help` to see what Kangaroo can do.",
    "noTokens": "You don't have any tokens :(",
    "noSupportedTokens": "No tokens are supported yet.",
    "walletUnlocked": "Wallet unlocked.",
    "confirmInstruction": "Do `{command}` to confirm the transaction.",
    "serverError": "Server Error.",
}


def get_string(key: str, **kwargs: str) -> str:
    """Return the string for *key*, formatted with *kwargs*. Raises ``KeyError``."""
    text = _STRINGS[key]
    return text.format(**kwargs) if kwargs else text
