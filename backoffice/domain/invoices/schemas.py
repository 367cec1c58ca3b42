"""Invoice domain schemas"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from ...models_invoice import INVOICE_STATUSES
from ...shared.validators import validate_choice
from ..documents.schemas import LineItemCreate, LineItemResponse, line_item_response, validate_line_list


class InvoiceCreate(BaseModel):
    clientId: int
    issueDate: Optional[date] = None
    dueDate: Optional[date] = None
    status: str = "draft"
    notes: Optional[str] = None
    lines: list[LineItemCreate]

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        return validate_choice(v, INVOICE_STATUSES, "Status")

    @field_validator("lines")
    @classmethod
    def validate_lines(cls, v):
        return validate_line_list(v)

    @model_validator(mode="after")
    def validate_dates(self):
        if self.issueDate and self.dueDate and self.dueDate < self.issueDate:
            raise ValueError("Due date cannot be before the issue date")
        return self


class InvoiceUpdate(BaseModel):
    clientId: Optional[int] = None
    issueDate: Optional[date] = None
    dueDate: Optional[date] = None
    notes: Optional[str] = None
    lines: Optional[list[LineItemCreate]] = None

    @field_validator("lines")
    @classmethod
    def validate_lines(cls, v):
        return validate_line_list(v)


class InvoiceStatusUpdate(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        return validate_choice(v, INVOICE_STATUSES, "Status")


class InvoiceResponse(BaseModel):
    id: int
    number: str
    clientId: int
    clientName: Optional[str] = None
    issueDate: date
    dueDate: Optional[date]
    subtotal: Decimal
    taxAmount: Decimal
    total: Decimal
    status: str
    notes: Optional[str]
    lines: list[LineItemResponse] = []
    created_at: Optional[datetime] = None


def invoice_response(invoice) -> InvoiceResponse:
    return InvoiceResponse(
        id=invoice.id,
        number=invoice.number,
        clientId=invoice.client_id,
        clientName=invoice.client.name if invoice.client else None,
        issueDate=invoice.issue_date,
        dueDate=invoice.due_date,
        subtotal=invoice.subtotal,
        taxAmount=invoice.tax_amount,
        total=invoice.total,
        status=invoice.status,
        notes=invoice.notes,
        lines=[line_item_response(line) for line in invoice.lines],
        created_at=invoice.created_at,
    )
