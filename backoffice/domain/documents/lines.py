"""Line items shared by quotes and invoices"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from ...shared.errors import ValidationFailed
from ...shared.money import has_cents_precision, line_total, to_money


@dataclass
class LineDraft:
    concept: str
    quantity: Decimal
    unit_price: Decimal
    line_total: Optional[Decimal] = None

    def total(self) -> Decimal:
        if self.line_total is not None:
            return to_money(self.line_total)
        return line_total(self.quantity, self.unit_price)


def drafts_from_input(items: Iterable) -> list[LineDraft]:
    """Schema line items (camelCase) to drafts"""
    return [
        LineDraft(concept=item.concept, quantity=Decimal(str(item.quantity)), unit_price=Decimal(str(item.unitPrice)))
        for item in items
    ]


def drafts_from_rows(rows: Iterable) -> list[LineDraft]:
    """Copy stored lines verbatim, including their stored totals"""
    return [
        LineDraft(concept=row.concept, quantity=row.quantity, unit_price=row.unit_price, line_total=row.line_total)
        for row in rows
    ]


def validate_lines(drafts: list[LineDraft]) -> None:
    if not drafts:
        raise ValidationFailed("At least one line item is required")
    for index, draft in enumerate(drafts, start=1):
        if not draft.concept or not draft.concept.strip():
            raise ValidationFailed(f"Line {index}: concept is required")
        if draft.quantity <= 0:
            raise ValidationFailed(f"Line {index}: quantity must be greater than 0")
        if not has_cents_precision(draft.quantity):
            raise ValidationFailed(f"Line {index}: quantity cannot have more than 2 decimals")
        if draft.unit_price <= 0:
            raise ValidationFailed(f"Line {index}: unit price must be greater than 0")
        if not has_cents_precision(draft.unit_price):
            raise ValidationFailed(f"Line {index}: unit price cannot have more than 2 decimals")


def build_line_rows(line_model, parent_field: str, parent_id: int, drafts: list[LineDraft]) -> list:
    return [
        line_model(
            **{parent_field: parent_id},
            position=position,
            concept=draft.concept.strip(),
            quantity=to_money(draft.quantity),
            unit_price=to_money(draft.unit_price),
            line_total=draft.total(),
        )
        for position, draft in enumerate(drafts)
    ]
