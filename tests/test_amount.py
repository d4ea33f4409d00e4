from decimal import Decimal

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from kangaroo.errors import AmountError, MalformedAmount, NegativeAmount, TickerMismatch
from kangaroo.network.amount import Amount, PackedAmount, is_packable, pack_units
from kangaroo.network.tokens import FEE_MANTISSA_BITS, PackFormat

from tests.conftest import DAI, ETH, USDC


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "text, expected",
    [
        ("0.2", Decimal("0.2")),
        (" 1.5 ", Decimal("1.5")),
        (".5", Decimal("0.5")),
        ("5.", Decimal("5")),
        ("0", Decimal("0")),
        ("0.000000000000000000001", Decimal("1E-21")),
    ],
)
def test_from_text_accepts_plain_numerals(text, expected):
    assert Amount.from_text(ETH, text).value == expected


@pytest.mark.parametrize(
    "text", ["pizza", "", "   ", "+1", "-0", "1e5", "NaN", "Infinity", "1.2.3", "1,5", "0x10", "1" * 81, "٠.٢", "１"]
)
def test_from_text_rejects_malformed(text):
    with pytest.raises(MalformedAmount):
        Amount.from_text(ETH, text)


@pytest.mark.parametrize("text", ["-1", "-0.5", " -2 "])
def test_negative_is_distinct_from_malformed(text):
    with pytest.raises(NegativeAmount) as info:
        Amount.from_text(ETH, text)
    assert not isinstance(info.value, MalformedAmount)
    assert isinstance(info.value, AmountError)


def test_zero_parses_and_is_not_positive():
    amount = Amount.from_text(ETH, "0")
    assert amount.is_zero()
    assert not amount.is_positive()


def test_from_value_refuses_floats():
    with pytest.raises(TypeError):
        Amount.from_value(ETH, 0.1)


def test_base_units_round_trip_for_six_decimal_token():
    amount = Amount.from_base_units(USDC, 1_500_000)
    assert amount.value == Decimal("1.5")
    assert amount.to_base_units() == 1_500_000


# ---------------------------------------------------------------------------
# Packing
# ---------------------------------------------------------------------------


def test_exact_value_packs_unchanged():
    packed = Amount.from_text(ETH, "0.2").get_closest_packable()
    assert isinstance(packed, PackedAmount)
    assert packed.value == Decimal("0.2")
    assert packed.mantissa * 10**packed.exponent == packed.to_base_units()


def test_packing_drops_least_significant_digits():
    packed = Amount.from_text(ETH, "1.234567890123456789").get_closest_packable()
    assert packed.value == Decimal("1.2345678901")
    assert packed.mantissa == 12345678901
    assert packed.exponent == 8


def test_fee_packing_uses_narrow_mantissa():
    fee = Amount.from_text(ETH, "0.000123456789").get_closest_packable_fee()
    assert fee.value == Decimal("0.0001234")
    assert fee.mantissa <= (1 << FEE_MANTISSA_BITS) - 1


def test_value_below_smallest_unit_packs_to_zero():
    packed = Amount.from_text(ETH, "0.0000000000000000009").get_closest_packable()
    assert packed.is_zero()


def test_digits_beyond_token_decimals_are_truncated():
    packed = Amount.from_text(USDC, "1.1234567").get_closest_packable()
    assert packed.value == Decimal("1.123456")


def test_huge_value_saturates_to_maximum():
    amount = Amount.from_value(ETH, Decimal(10) ** 40)
    packed = amount.get_closest_packable()
    assert packed.to_base_units() == ETH.amount_format.max_units
    assert packed.value <= amount.value


def test_negative_amount_cannot_be_packed():
    with pytest.raises(NegativeAmount):
        Amount(ETH, Decimal("-1")).get_closest_packable()


def test_pack_units_small_format():
    fmt = PackFormat(mantissa_bits=4, exponent_bits=2)
    assert pack_units(15, fmt) == (15, 0)
    assert pack_units(16, fmt) == (1, 1)
    assert pack_units(999, fmt) == (9, 2)
    assert pack_units(10**9, fmt) == (15, 3)
    assert is_packable(150, fmt)
    assert not is_packable(16, fmt)


@settings(max_examples=300)
@given(st.decimals(min_value=0, max_value=Decimal(10) ** 30, places=18, allow_nan=False, allow_infinity=False))
def test_packing_never_rounds_up(value):
    amount = Amount.from_value(ETH, value)
    for packed, fmt in (
        (amount.get_closest_packable(), ETH.amount_format),
        (amount.get_closest_packable_fee(), ETH.fee_format),
    ):
        assert packed.value <= amount.value
        assert 0 <= packed.mantissa <= fmt.max_mantissa
        assert 0 <= packed.exponent <= fmt.max_exponent
        assert packed.to_base_units() == packed.mantissa * 10**packed.exponent
        assert packed.packs_exactly(fmt)


@given(st.decimals(min_value=0, max_value=Decimal(10) ** 12, places=6, allow_nan=False, allow_infinity=False))
def test_parsed_text_packs_like_the_value(value):
    text = format(value.copy_abs(), "f")
    from_text = Amount.from_text(USDC, text).get_closest_packable()
    assert from_text == Amount.from_value(USDC, value).get_closest_packable()
    assert from_text.get_closest_packable() == from_text


# ---------------------------------------------------------------------------
# Arithmetic, comparison, display
# ---------------------------------------------------------------------------


def test_add_and_subtract_same_ticker():
    a = Amount.from_text(ETH, "0.2")
    b = Amount.from_text(ETH, "0.05")
    assert a.add(b).value == Decimal("0.25")
    assert (a - b).value == Decimal("0.15")


def test_arithmetic_across_tickers_is_refused():
    with pytest.raises(TickerMismatch):
        Amount.from_text(ETH, "1").add(Amount.from_text(DAI, "1"))
    with pytest.raises(TickerMismatch):
        Amount.from_text(ETH, "1").subtract(Amount.from_text(DAI, "1"))
    with pytest.raises(TickerMismatch):
        _ = Amount.from_text(ETH, "1") < Amount.from_text(DAI, "2")


def test_equality_ignores_class_and_trailing_zeros():
    packed = Amount.from_text(ETH, "0.2").get_closest_packable()
    assert packed == Amount.from_text(ETH, "0.200")
    assert hash(packed) == hash(Amount.from_text(ETH, "0.2"))
    assert Amount.from_text(ETH, "1") != Amount.from_text(DAI, "1")


def test_ordering():
    assert Amount.from_text(ETH, "0.1") < Amount.from_text(ETH, "0.2")
    assert Amount.from_text(ETH, "0.3") >= Amount.from_text(ETH, "0.2")


@pytest.mark.parametrize(
    "token, text, expected",
    [
        (ETH, "0", "0.0"),
        (ETH, "0.2", "0.2"),
        (ETH, "12", "12.0"),
        (ETH, "12.50", "12.5"),
        (USDC, "1.1234567", "1.123456"),
        (ETH, "0.0000000000000000009", "0.0"),
    ],
)
def test_string_value(token, text, expected):
    assert Amount.from_text(token, text).get_string_value() == expected


def test_str_includes_ticker():
    assert str(Amount.from_text(ETH, "0.2")) == "0.2 ETH"
