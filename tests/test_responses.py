from decimal import Decimal

import pytest

from kangaroo.network.amount import Amount
from kangaroo.responses import (
    AlreadyUnlockedResponse,
    HelpResponse,
    MissingOptionsResponse,
    PreviewResponse,
    TokenListResponse,
    TransactionFailedResponse,
    TransactionResponse,
    UnknownCommandResponse,
    UnlockInfoResponse,
    deferred_message,
    priced,
    server_error_message,
    to_message,
)
from kangaroo.strings import EMBED_COLOR, HELP_FIELDS, get_string

from tests.conftest import DAI, ETH


def test_help_message_payload():
    message = to_message(HelpResponse())
    assert message["type"] == 4
    (embed,) = message["data"]["embeds"]
    assert embed["title"] == "Introduction to Kangaroo 🦘"
    assert embed["color"] == EMBED_COLOR == 15422875
    assert [f["name"] for f in embed["fields"]] == [name for name, _ in HELP_FIELDS]
    assert "description" not in embed


def test_token_list():
    embed = TokenListResponse(tokens=[ETH, DAI]).embed()
    assert embed["title"] == "All Supported Tokens📖"
    assert embed["description"] == "ETH | Ethereum\nDAI | Dai"


def test_empty_token_list():
    assert TokenListResponse().description() == get_string("noSupportedTokens")


def test_unlock_info_texts():
    assert UnlockInfoResponse().description() == "\n\n".join(
        [get_string("unlockGeneralInfo"), get_string("unlockInstructions")]
    )
    assert AlreadyUnlockedResponse().get_title() == "Wallet already unlocked"


def test_missing_options_lists_names():
    response = MissingOptionsResponse(names=["ticker", "user"])
    assert response.is_error
    assert response.description() == "Missing options: `ticker`, `user`."


def test_failures_are_flagged():
    assert TransactionFailedResponse().is_error
    assert UnknownCommandResponse(name="dance").is_error
    assert not HelpResponse().is_error


def test_send_preview_description():
    amount = Amount.from_text(ETH, "0.2").get_closest_packable()
    fee = Amount.from_text(ETH, "0.0001234").get_closest_packable_fee()
    response = PreviewResponse(
        preview_title="Transfer tokens",
        primary_amount=amount,
        fee_amount=fee,
        instruction_text="/send 0.2 ETH @u confirm",
        primary_usd=Decimal("600"),
        fee_usd=Decimal("0.3702"),
    )
    assert response.description().split("\n\n") == [
        "Amount: 0.2 ETH - $600.00",
        "Fee: 0.0001234 ETH - $0.37",
        "Do `/send 0.2 ETH @u confirm` to confirm the transaction.",
    ]


def test_transaction_outcome_mentions_hash():
    amount = Amount.from_text(DAI, "0.01").get_closest_packable()
    fee = Amount.from_text(DAI, "0.0002").get_closest_packable_fee()
    response = TransactionResponse("Transfer tokens", amount, fee, "sync-tx:abc")
    embed = response.embed()
    assert embed["title"] == "Transfer tokens"
    assert "Sent: 0.01 DAI" in embed["description"]
    assert "`sync-tx:abc`" in embed["description"]


@pytest.mark.parametrize(
    "usd, expected",
    [(None, "1.5 ETH"), (Decimal("0"), "1.5 ETH - $0.00"), (Decimal("4500.005"), "1.5 ETH - $4500.01")],
)
def test_priced(usd, expected):
    assert priced(Amount.from_text(ETH, "1.5"), usd) == expected


def test_transport_payloads():
    assert deferred_message() == {"type": 5}
    assert server_error_message() == {"type": 4, "data": {"content": "Server Error."}}
