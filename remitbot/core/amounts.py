"""
USDC amount handling.

The platform works in integer base units: 10^8 per whole USDC. Everything is
done with Decimal so that "12.5" becomes exactly "1250000000" on the wire.
Input is bounded at parse time (at most 8 decimal places, below MAX_AMOUNT) so
the base-unit conversion always stays within Decimal's 28-digit precision.
"""
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional, Union

from remitbot.core.errors import ValidationError

BASE_UNIT_DECIMALS = 8
BASE_UNIT_SCALE = Decimal(10) ** BASE_UNIT_DECIMALS
# One quadrillion USDC; base units then need at most 24 digits
MAX_AMOUNT = Decimal(10) ** 15

TOO_PRECISE = f"❌ Amounts can have at most {BASE_UNIT_DECIMALS} decimal places."
TOO_LARGE = "❌ That amount is too large."

Number = Union[Decimal, int, float, str]


def check_representable(value: Decimal) -> None:
    """Raise ValidationError unless value maps onto a whole number of base units."""
    if abs(value) >= MAX_AMOUNT:
        raise ValidationError(TOO_LARGE)
    if value.normalize().as_tuple().exponent < -BASE_UNIT_DECIMALS:
        raise ValidationError(TOO_PRECISE)


def is_representable(value: Decimal) -> bool:
    try:
        check_representable(value)
    except ValidationError:
        return False
    return True


def parse_amount(raw: Optional[str], message: str) -> Decimal:
    """Parse user input as a finite decimal or raise ValidationError(message)."""
    text = (raw or "").strip()
    if not text:
        raise ValidationError(message)
    try:
        value = Decimal(text)
    except (InvalidOperation, ValueError):
        raise ValidationError(message)
    if not value.is_finite():
        raise ValidationError(message)
    check_representable(value)
    return value


def parse_positive_amount(raw: Optional[str], message: str) -> Decimal:
    value = parse_amount(raw, message)
    if value <= 0:
        raise ValidationError(message)
    return value


def parse_min_amount(raw: Optional[str], minimum: Number, message: str) -> Decimal:
    """The minimum itself is accepted; anything strictly below is rejected."""
    value = parse_amount(raw, message)
    if value < Decimal(str(minimum)):
        raise ValidationError(message)
    return value


def to_base_units(amount: Number) -> str:
    value = Decimal(str(amount))
    check_representable(value)
    scaled = value * BASE_UNIT_SCALE
    return str(int(scaled.quantize(Decimal(1), rounding=ROUND_HALF_UP)))


def from_base_units(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal(0)
    try:
        return Decimal(str(value)) / BASE_UNIT_SCALE
    except (InvalidOperation, ValueError):
        return Decimal(0)


def format_amount(amount: Number) -> str:
    """Plain decimal text without exponent or trailing zeros (5, 12.5, 500)."""
    d = Decimal(str(amount))
    if not d.is_finite():
        return str(d)
    return format(d.normalize(), "f")
