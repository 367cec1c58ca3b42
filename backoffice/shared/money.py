"""Money arithmetic for quotes and invoices"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from ..config import TAX_RATE

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Round to cents, half-up"""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def has_cents_precision(value) -> bool:
    """True when the value is stored without rounding in a Numeric(12, 2) column"""
    value = value if isinstance(value, Decimal) else Decimal(str(value))
    return value == value.quantize(CENT)


def line_total(quantity, unit_price) -> Decimal:
    return to_money(Decimal(str(quantity)) * Decimal(str(unit_price)))


@dataclass(frozen=True)
class DocumentTotals:
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal


def compute_totals(lines: Iterable, tax_rate: Optional[Decimal] = None) -> DocumentTotals:
    """Totals for items exposing ``quantity`` and ``unit_price``.

    subtotal is the sum of rounded line totals, tax is rounded once on the
    subtotal and total = subtotal + tax.
    """
    rate = TAX_RATE if tax_rate is None else tax_rate
    subtotal = to_money(sum((line_total(item.quantity, item.unit_price) for item in lines), Decimal("0")))
    tax_amount = to_money(subtotal * rate)
    return DocumentTotals(subtotal=subtotal, tax_amount=tax_amount, total=subtotal + tax_amount)
