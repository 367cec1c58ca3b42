"""Invoice service - Business logic for invoices"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...models import User
from ...models_invoice import INVOICE_STATUSES, Invoice
from ...shared.errors import NotFound, ValidationFailed
from ...shared.money import DocumentTotals, compute_totals
from ...shared.results import action
from ...shared.unit_of_work import Compensation, with_compensation
from ..clients.service import ClientService
from ..documents.lines import LineDraft, drafts_from_input, validate_lines
from ..documents.numbering import INVOICE, next_document_number
from .repository import InvoiceRepository
from .schemas import InvoiceCreate, InvoiceUpdate

logger = logging.getLogger(__name__)


class InvoiceService:
    """Service layer for invoice business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = InvoiceRepository()
        self.clients = ClientService(db)

    def require_invoice(self, invoice_id: int, user_id: int) -> Invoice:
        invoice = self.repo.get_document(self.db, invoice_id, user_id)
        if not invoice:
            raise NotFound("Invoice not found")
        return invoice

    def build_invoice(
        self,
        compensation: Compensation,
        user_id: int,
        client_id: int,
        drafts: list[LineDraft],
        issue_date: date,
        due_date: Optional[date] = None,
        notes: Optional[str] = None,
        status: str = "draft",
        totals: Optional[DocumentTotals] = None,
    ) -> Invoice:
        """Number, insert and fill an invoice inside a compensated unit.

        ``totals`` defaults to the totals of ``drafts``; pass stored totals to
        copy them verbatim.
        """
        sequence, number = next_document_number(self.db, user_id, INVOICE)
        invoice = self.repo.create_document(
            self.db,
            user_id,
            totals or compute_totals(drafts),
            client_id=client_id,
            sequence=sequence,
            number=number,
            issue_date=issue_date,
            due_date=due_date,
            status=status,
            notes=notes,
        )
        compensation.delete_on_failure(Invoice, invoice.id)
        self.repo.add_lines(self.db, invoice.id, drafts)
        self.db.refresh(invoice)
        return invoice

    @action("Error loading invoices")
    def list_invoices(
        self,
        user: User,
        status: Optional[str] = None,
        client_id: Optional[int] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ):
        return self.repo.list_documents(self.db, user.id, status, client_id, date_from, date_to)

    @action("Error loading invoice months")
    def get_available_months(self, user: User):
        return self.repo.available_months(self.db, user.id)

    @action("Error loading invoice")
    def get_invoice(self, invoice_id: int, user: User):
        return self.require_invoice(invoice_id, user.id)

    @action("Error creating invoice")
    def create_invoice(self, data: InvoiceCreate, user: User):
        self.clients.require_client(data.clientId, user.id)
        issue_date = data.issueDate or date.today()
        if data.dueDate and data.dueDate < issue_date:
            raise ValidationFailed("Due date cannot be before the issue date")
        drafts = drafts_from_input(data.lines)
        validate_lines(drafts)

        def on_failure(exc):
            logger.error(f"❌ Invoice creation for user {user.id} rolled back: {exc}")

        invoice = with_compensation(
            self.db,
            lambda comp: self.build_invoice(
                comp,
                user.id,
                data.clientId,
                drafts,
                issue_date,
                due_date=data.dueDate,
                notes=data.notes,
                status=data.status,
            ),
            on_failure,
        )
        logger.info(f"✅ Created invoice {invoice.number} for user {user.id}")
        return invoice

    @action("Error updating invoice")
    def update_invoice(self, invoice_id: int, data: InvoiceUpdate, user: User):
        invoice = self.require_invoice(invoice_id, user.id)

        updates = {}
        if data.clientId is not None and data.clientId != invoice.client_id:
            self.clients.require_client(data.clientId, user.id)
            updates["client_id"] = data.clientId
        if data.issueDate is not None:
            updates["issue_date"] = data.issueDate
        if data.dueDate is not None:
            updates["due_date"] = data.dueDate
        if data.notes is not None:
            updates["notes"] = data.notes

        issue_date = updates.get("issue_date", invoice.issue_date)
        due_date = updates.get("due_date", invoice.due_date)
        if due_date and due_date < issue_date:
            raise ValidationFailed("Due date cannot be before the issue date")

        if data.lines is None:
            return self.repo.update_document(self.db, invoice, **updates)

        drafts = drafts_from_input(data.lines)
        validate_lines(drafts)
        return with_compensation(
            self.db,
            lambda comp: self.repo.replace_lines(self.db, invoice, drafts, compute_totals(drafts), **updates),
        )

    @action("Error updating invoice status")
    def set_invoice_status(self, invoice_id: int, status: str, user: User):
        """Free-form transitions between draft, sent and paid"""
        if status not in INVOICE_STATUSES:
            raise ValidationFailed(f"Invalid invoice status: {status}")
        invoice = self.require_invoice(invoice_id, user.id)
        if invoice.status == status:
            return invoice
        logger.info(f"🔄 Invoice {invoice.number}: {invoice.status} → {status}")
        return self.repo.update_document(self.db, invoice, status=status)

    @action("Error deleting invoice")
    def delete_invoice(self, invoice_id: int, user: User):
        invoice = self.require_invoice(invoice_id, user.id)
        self.repo.unlink_invoice(self.db, invoice.id, user.id)
        self.repo.delete_document(self.db, invoice)
        logger.info(f"✅ Deleted invoice {invoice_id} for user {user.id}")

    @action("Error loading invoices for export")
    def get_invoices_for_export(self, invoice_ids: list[int], user: User):
        invoices = self.repo.get_documents(self.db, invoice_ids, user.id)
        if len(invoices) != len(invoice_ids):
            raise NotFound("Some invoices were not found")
        return invoices
