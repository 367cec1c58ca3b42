"""Line item schemas shared by quotes and invoices"""

from decimal import Decimal

from pydantic import BaseModel, field_validator

from ...shared.money import has_cents_precision
from ...shared.validators import validate_required_text


class LineItemCreate(BaseModel):
    concept: str
    quantity: Decimal
    unitPrice: Decimal

    @field_validator("concept")
    @classmethod
    def validate_concept(cls, v):
        return validate_required_text(v, "Concept")

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, v):
        if v <= 0:
            raise ValueError("Quantity must be greater than 0")
        if not has_cents_precision(v):
            raise ValueError("Quantity cannot have more than 2 decimals")
        return v

    @field_validator("unitPrice")
    @classmethod
    def validate_unit_price(cls, v):
        if v <= 0:
            raise ValueError("Unit price must be greater than 0")
        if not has_cents_precision(v):
            raise ValueError("Unit price cannot have more than 2 decimals")
        return v


class LineItemResponse(BaseModel):
    id: int
    concept: str
    quantity: Decimal
    unitPrice: Decimal
    lineTotal: Decimal


def line_item_response(line) -> LineItemResponse:
    return LineItemResponse(
        id=line.id,
        concept=line.concept,
        quantity=line.quantity,
        unitPrice=line.unit_price,
        lineTotal=line.line_total,
    )


def validate_line_list(lines):
    if lines is not None and len(lines) == 0:
        raise ValueError("At least one line item is required")
    return lines


class DocumentExportRequest(BaseModel):
    ids: list[int]

    @field_validator("ids")
    @classmethod
    def validate_ids(cls, v):
        if not v:
            raise ValueError("Select at least one document")
        if len(v) > 100:
            raise ValueError("Cannot export more than 100 documents at once")
        return list(dict.fromkeys(v))
