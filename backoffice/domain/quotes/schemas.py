"""Quote domain schemas"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from ...models_invoice import QUOTE_STATUSES
from ...shared.validators import validate_choice
from ..documents.schemas import LineItemCreate, LineItemResponse, line_item_response, validate_line_list
from ..invoices.schemas import InvoiceResponse


class QuoteCreate(BaseModel):
    clientId: int
    issueDate: Optional[date] = None
    validUntil: Optional[date] = None  # defaults to issue date + validity window
    notes: Optional[str] = None
    lines: list[LineItemCreate]

    @field_validator("lines")
    @classmethod
    def validate_lines(cls, v):
        return validate_line_list(v)

    @model_validator(mode="after")
    def validate_dates(self):
        if self.issueDate and self.validUntil and self.validUntil < self.issueDate:
            raise ValueError("Validity date cannot be before the issue date")
        return self


class QuoteUpdate(BaseModel):
    clientId: Optional[int] = None
    issueDate: Optional[date] = None
    validUntil: Optional[date] = None
    notes: Optional[str] = None
    lines: Optional[list[LineItemCreate]] = None

    @field_validator("lines")
    @classmethod
    def validate_lines(cls, v):
        return validate_line_list(v)


class QuoteStatusUpdate(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        return validate_choice(v, QUOTE_STATUSES, "Status")


class QuoteResponse(BaseModel):
    id: int
    number: str
    clientId: int
    clientName: Optional[str] = None
    issueDate: date
    validUntil: date
    subtotal: Decimal
    taxAmount: Decimal
    total: Decimal
    status: str
    notes: Optional[str]
    invoiceId: Optional[int]
    lines: list[LineItemResponse] = []
    created_at: Optional[datetime] = None


class QuoteConversionResponse(BaseModel):
    invoice: InvoiceResponse
    warning: Optional[str] = None


def quote_response(quote) -> QuoteResponse:
    return QuoteResponse(
        id=quote.id,
        number=quote.number,
        clientId=quote.client_id,
        clientName=quote.client.name if quote.client else None,
        issueDate=quote.issue_date,
        validUntil=quote.valid_until,
        subtotal=quote.subtotal,
        taxAmount=quote.tax_amount,
        total=quote.total,
        status=quote.status,
        notes=quote.notes,
        invoiceId=quote.invoice_id,
        lines=[line_item_response(line) for line in quote.lines],
        created_at=quote.created_at,
    )
