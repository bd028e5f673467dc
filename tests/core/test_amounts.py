import pytest
from decimal import Decimal
from remitbot.core.amounts import (
    format_amount,
    from_base_units,
    parse_amount,
    parse_min_amount,
    parse_positive_amount,
    to_base_units,
    TOO_LARGE,
    TOO_PRECISE,
)
from remitbot.core.errors import ValidationError


@pytest.mark.parametrize("amount, expected", [
    ("12.5", "1250000000"),
    (Decimal("50"), "5000000000"),
    (1, "100000000"),
])
def test_to_base_units(amount, expected):
    assert to_base_units(amount) == expected

def test_from_base_units_display():
    assert format_amount(from_base_units("500000000")) == "5"
    assert format_amount(from_base_units(1250000000)) == "12.5"
    assert from_base_units(None) == Decimal(0)
    assert from_base_units("garbage") == Decimal(0)

@pytest.mark.parametrize("raw", ["", "   ", "abc", "NaN", "Infinity", None])
def test_parse_amount_rejects(raw):
    with pytest.raises(ValidationError) as exc:
        parse_amount(raw, "bad")
    assert exc.value.message == "bad"

def test_parse_positive_amount():
    assert parse_positive_amount("0.5", "bad") == Decimal("0.5")
    with pytest.raises(ValidationError):
        parse_positive_amount("0", "bad")
    with pytest.raises(ValidationError):
        parse_positive_amount("-3", "bad")

def test_minimum_is_inclusive():
    assert parse_min_amount("1", 1, "min") == Decimal("1")
    assert parse_min_amount("10", 10.0, "min") == Decimal("10")
    with pytest.raises(ValidationError):
        parse_min_amount("0.99", 1, "min")
    with pytest.raises(ValidationError):
        parse_min_amount("9.99", 10, "min")

def test_format_amount_plain():
    assert format_amount(Decimal("1E+2")) == "100"
    assert format_amount("12.50") == "12.5"

@pytest.mark.parametrize("raw", ["1e21", "1e30", "1000000000000000", "-1e40"])
def test_parse_amount_rejects_oversized(raw):
    with pytest.raises(ValidationError) as exc:
        parse_amount(raw, "bad")
    assert exc.value.message == TOO_LARGE

@pytest.mark.parametrize("raw", ["0.000000001", "1.123456789"])
def test_parse_amount_rejects_sub_base_unit_precision(raw):
    with pytest.raises(ValidationError) as exc:
        parse_positive_amount(raw, "bad")
    assert exc.value.message == TOO_PRECISE

def test_eight_decimals_and_trailing_zeros_accepted():
    assert to_base_units(parse_positive_amount("0.00000001", "bad")) == "1"
    assert parse_amount("2.5000000000", "bad") == Decimal("2.5")

def test_largest_amount_converts():
    value = parse_amount("999999999999999.99999999", "bad")
    assert to_base_units(value) == "99999999999999999999999"

def test_to_base_units_refuses_unrepresentable():
    with pytest.raises(ValidationError):
        to_base_units(Decimal("1E+30"))

def test_format_amount_huge_platform_value():
    assert format_amount(from_base_units("1" + "0" * 40)) == "1" + "0" * 32
