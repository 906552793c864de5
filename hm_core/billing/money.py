# hm_core/billing/money.py
"""
Fixed-point money arithmetic for invoices and payments.

Every monetary value is a Decimal with 2 fractional digits. Floats are accepted
as input only through their string form, never used for arithmetic.

Rounding is ROUND_HALF_UP to 2 places at the point a line amount is computed;
aggregates are summed at full precision and rounded once at the end.

Stored amounts are DecimalField(max_digits=12, decimal_places=2), so every
value (input or computed) must stay strictly below MAX_AMOUNT in magnitude.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable

from hm_core.common.api.exceptions import InvalidAmount

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
MAX_AMOUNT = Decimal("10000000000")
MAX_QUANTITY = 1_000_000


def quantize(value: Decimal, field_name: str = "amount") -> Decimal:
    try:
        return value.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidAmount({field_name: "Amount is too large."})


def _bounded(value: Decimal, field_name: str) -> Decimal:
    if abs(value) >= MAX_AMOUNT:
        raise InvalidAmount({field_name: f"Must be less than {MAX_AMOUNT}."})
    return value


def to_decimal(value, field_name: str, *, default: Decimal | None = None) -> Decimal:
    """
    Accepts Decimal / str / int / float and converts to a non-negative Decimal
    below MAX_AMOUNT. Raises InvalidAmount for anything else.
    """
    if value is None or value == "":
        if default is not None:
            return default
        raise InvalidAmount({field_name: "This field is required."})

    if isinstance(value, bool):
        raise InvalidAmount({field_name: "Invalid decimal value."})

    if isinstance(value, Decimal):
        dec = value
    else:
        try:
            dec = Decimal(str(value).strip())
        except (InvalidOperation, ValueError, TypeError):
            raise InvalidAmount({field_name: "Invalid decimal value."})

    if not dec.is_finite():
        raise InvalidAmount({field_name: "Invalid decimal value."})
    if dec < 0:
        raise InvalidAmount({field_name: "Must be >= 0."})
    return _bounded(dec, field_name)


def to_money(value, field_name: str, *, default: Decimal | None = None) -> Decimal:
    # 9999999999.995 rounds up to the bound itself
    return _bounded(quantize(to_decimal(value, field_name, default=default), field_name), field_name)


def to_quantity(value, field_name: str = "qty") -> int:
    """
    Whole units, at least 1. Missing means 1.
    """
    if value is None or value == "":
        return 1

    dec = to_decimal(value, field_name)
    if dec != dec.to_integral_value():
        raise InvalidAmount({field_name: "Quantity must be a whole number."})
    if dec < 1:
        raise InvalidAmount({field_name: "Quantity must be >= 1."})
    if dec > MAX_QUANTITY:
        raise InvalidAmount({field_name: f"Quantity must be <= {MAX_QUANTITY}."})
    return int(dec)


def line_amount(qty, rate, field_name: str = "amount") -> Decimal:
    return _bounded(quantize(Decimal(qty) * Decimal(rate), field_name), field_name)


def subtotal(amounts: Iterable[Decimal]) -> Decimal:
    return _bounded(quantize(sum((Decimal(a) for a in amounts), Decimal("0")), "subtotal"), "subtotal")


def total(subtotal_value: Decimal, discount: Decimal, tax: Decimal) -> Decimal:
    for name, v in (("subtotal", subtotal_value), ("discount", discount), ("tax", tax)):
        if Decimal(v) < 0:
            raise InvalidAmount({name: "Must be >= 0."})
    value = Decimal(subtotal_value) - Decimal(discount) + Decimal(tax)
    return _bounded(quantize(value, "total"), "total")
