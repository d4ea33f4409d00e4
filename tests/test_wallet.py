import asyncio
from decimal import Decimal

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct

from kangaroo.errors import InsufficientBalance, NetworkError
from kangaroo.network.amount import Amount
from kangaroo.network.provider import FeeKind
from kangaroo.network.wallet import Wallet
from kangaroo.storage.keystore import generate_private_key
from kangaroo.users import WalletDirectory

from tests.conftest import DAI, ETH


def _packed(token, text):
    return Amount.from_text(token, text).get_closest_packable()


def _fee(token, text):
    return Amount.from_text(token, text).get_closest_packable_fee()


@pytest.mark.asyncio
async def test_same_user_same_address(wallets):
    first = await wallets.get_or_create_wallet("1234")
    second = await wallets.get_or_create_wallet("1234")
    other = await wallets.get_or_create_wallet("2345")
    assert first.address == second.address
    assert first.address != other.address


@pytest.mark.asyncio
async def test_concurrent_creation_yields_one_wallet(wallets):
    created = await asyncio.gather(*(wallets.get_or_create_wallet("1234") for _ in range(5)))
    assert len({w.address for w in created}) == 1


@pytest.mark.asyncio
async def test_find_wallet_never_provisions(wallets):
    assert await wallets.find_wallet("nobody") is None
    wallet = await wallets.get_or_create_wallet("somebody")
    found = await wallets.find_wallet("somebody")
    assert found.address == wallet.address


@pytest.mark.asyncio
async def test_encrypted_keys_derive_the_same_wallet(store, network):
    wallets = WalletDirectory(store, network, key_password="hunter2", kdf_iterations=2)
    wallet = await wallets.get_or_create_wallet("1234")
    stored = await store.get_private_key("1234")
    assert stored.startswith("{")
    again = await wallets.get_or_create_wallet("1234")
    assert again.address == wallet.address


@pytest.mark.asyncio
async def test_unfunded_balance_is_zero(wallets):
    wallet = await wallets.get_or_create_wallet("1234")
    balance = await wallet.get_balance(DAI)
    assert balance.is_zero()
    assert balance.ticker == "DAI"


@pytest.mark.asyncio
async def test_transfer_fee_depends_on_target(fund, network):
    wallet = await fund("1234", ETH, "1")
    known = await fund("2345", ETH, "0.1")
    fresh_address = Account.create().address

    fee_known = await wallet.get_transfer_fee(ETH, known.address)
    fee_fresh = await wallet.get_transfer_fee(ETH, fresh_address)
    assert fee_fresh.value - fee_known.value == Decimal("0.0001")

    network.set_fee(FeeKind.TRANSFER, "ETH", "0.0002")
    assert (await wallet.get_transfer_fee(ETH, known.address)).value == Decimal("0.0002")


@pytest.mark.asyncio
async def test_transfer_moves_packed_amount(fund, network):
    sender = await fund("1234", ETH, "1")
    target = await fund("2345", ETH, "0")
    amount = _packed(ETH, "0.2")
    fee = (await sender.get_transfer_fee(ETH, target.address)).get_closest_packable_fee()

    result = await sender.transfer(ETH, target.address, amount, fee)

    assert result.tx_hash.startswith("sync-tx:")
    assert result.kind is FeeKind.TRANSFER
    assert await target.get_balance(ETH) == amount
    assert (await sender.get_balance(ETH)).value == Decimal(1) - amount.value - fee.value


@pytest.mark.asyncio
async def test_signature_covers_the_transaction(fund, network):
    sender = await fund("1234", ETH, "1")
    target = Account.create().address
    fee = _fee(ETH, "0.001")
    await sender.transfer(ETH, target, _packed(ETH, "0.2"), fee)

    tx = network.submitted[-1]
    signature = bytes.fromhex(tx.signature.removeprefix("0x"))
    signer = Account.recover_message(encode_defunct(text=tx.message), signature=signature)
    assert signer == sender.address
    assert "Transfer 0.2 ETH" in tx.message
    assert f"To: {target.lower()}" in tx.message


@pytest.mark.asyncio
async def test_amount_plus_fee_over_balance_fails(fund, network):
    sender = await fund("1234", ETH, "0.2")
    with pytest.raises(InsufficientBalance) as info:
        await sender.transfer(ETH, Account.create().address, _packed(ETH, "0.2"), _fee(ETH, "0.001"))
    assert info.value.ticker == "ETH"
    assert network.submitted == []


@pytest.mark.asyncio
async def test_fee_in_another_token_is_checked_separately(fund, network):
    sender = await fund("1234", DAI, "10")
    network.fund(sender.address, Amount.from_text(ETH, "0.0005"))
    target = Account.create().address

    # DAI covers the amount; ETH covers the fee on its own.
    await sender.transfer(DAI, target, _packed(DAI, "10"), _fee(ETH, "0.0005"))
    assert (await sender.get_balance(DAI)).is_zero()
    assert (await sender.get_balance(ETH)).is_zero()

    # Plenty of DAI does not pay an ETH fee.
    network.fund(sender.address, Amount.from_text(DAI, "5"))
    with pytest.raises(InsufficientBalance) as info:
        await sender.transfer(DAI, target, _packed(DAI, "1"), _fee(ETH, "0.0001"))
    assert info.value.ticker == "ETH"


@pytest.mark.asyncio
async def test_broadcast_failure_is_not_retried(fund, network):
    sender = await fund("1234", ETH, "1")
    network.fail_next_submit()
    with pytest.raises(NetworkError):
        await sender.transfer(ETH, Account.create().address, _packed(ETH, "0.1"), _fee(ETH, "0.001"))
    assert network.submitted == []
    assert (await sender.get_balance(ETH)).value == Decimal(1)


@pytest.mark.asyncio
async def test_locked_wallet_cannot_transfer(fund):
    sender = await fund("1234", ETH, "1", activate=False)
    with pytest.raises(NetworkError):
        await sender.transfer(ETH, Account.create().address, _packed(ETH, "0.1"), _fee(ETH, "0.001"))


@pytest.mark.asyncio
async def test_unlock_is_one_way(fund):
    wallet = await fund("1234", DAI, "1", activate=False)
    assert not await wallet.get_unlocked()
    fee = (await wallet.get_unlock_fee(DAI)).get_closest_packable_fee()

    result = await wallet.unlock(fee)

    assert result.kind is FeeKind.ACTIVATION
    assert result.amount is None
    assert await wallet.get_unlocked()
    assert (await wallet.get_balance(DAI)).value == Decimal(1) - fee.value
    with pytest.raises(NetworkError):
        await wallet.unlock(fee)


@pytest.mark.asyncio
async def test_unlock_without_funds_fails(wallets):
    wallet = await wallets.get_or_create_wallet("1234")
    with pytest.raises(InsufficientBalance):
        await wallet.unlock(_fee(ETH, "0.001"))
    assert not await wallet.get_unlocked()


@pytest.mark.asyncio
async def test_unpacked_amounts_are_refused(fund):
    sender = await fund("1234", ETH, "1")
    with pytest.raises(ValueError):
        await sender.transfer(ETH, Account.create().address, _packed(ETH, "0.1"), Amount.from_text(ETH, "0.000123456789"))
    with pytest.raises(ValueError):
        await sender.transfer(DAI, Account.create().address, _packed(ETH, "0.1"), _fee(ETH, "0.001"))


def test_wallet_from_known_key():
    key = generate_private_key()
    assert Wallet.create(key, network=None).address == Account.from_key(key).address
