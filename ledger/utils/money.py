from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.db.models import DecimalField, Sum, Value
from django.db.models.functions import Coalesce

from ledger.exceptions import ValidationError
from ledger.models.base import ZERO

CENT = Decimal("0.01")
# Money columns hold 15 digits, two of them decimals.
MAX_AMOUNT = Decimal(10) ** 13


def to_money(value, allow_zero=False) -> Decimal:
    """
    Coerce an amount to a Decimal with two decimal places.

    Raises ValidationError for anything that is not a finite number, has more
    than two decimal places, is not positive (zero is accepted only with
    allow_zero), or does not fit a money column.
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError("Amount must be a number.")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError("Amount must be a number.")
    if not amount.is_finite():
        raise ValidationError("Amount must be a number.")
    if amount < 0 or (amount == 0 and not allow_zero):
        raise ValidationError("Amount must be positive.")
    if amount >= MAX_AMOUNT:
        raise ValidationError("Amount is too large.")
    try:
        quantized = amount.quantize(CENT)
    except InvalidOperation:
        raise ValidationError("Amount is too large.")
    if amount != quantized:
        raise ValidationError("Amount cannot have more than two decimal places.")
    return quantized


def setting_money(value) -> Decimal:
    """Read a money-valued setting (int, str or Decimal) as a Decimal."""
    return Decimal(str(value)).quantize(CENT)


def to_paise(amount: Decimal) -> int:
    """Gateway amounts are integers in the smallest currency unit."""
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def money_sum(field, **kwargs):
    """Sum(field) that yields 0.00 instead of NULL over an empty set."""
    return Coalesce(
        Sum(field, **kwargs),
        Value(ZERO),
        output_field=DecimalField(max_digits=15, decimal_places=2),
    )
