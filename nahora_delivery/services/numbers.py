"""
Decimal parsing for prices and totals submitted as text.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

from nahora_delivery.core.errors import ValidationError


def parse_decimal(value: Any, field: str, *, allow_negative: bool = False) -> Decimal:
    """
    Parse a money amount.

    Args:
        value: Text (or number) as received from the client
        field: Field name used in the error message
        allow_negative: Accept amounts below zero

    Returns:
        Decimal: The parsed amount

    Raises:
        ValidationError: If the value is empty, not numeric or negative
    """
    text = str(value).strip() if value is not None else ""

    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise ValidationError(f"Valor inválido para '{field}': {value!r}")

    if not amount.is_finite():
        raise ValidationError(f"Valor inválido para '{field}': {value!r}")
    if amount < 0 and not allow_negative:
        raise ValidationError(f"'{field}' não pode ser negativo")

    return amount
