"""Quote service - Business logic for quotes and their conversion into invoices"""

import logging
from datetime import date, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ...config import QUOTE_VALIDITY_DAYS
from ...models import User
from ...models_invoice import QUOTE_STATUSES, Quote
from ...shared.errors import AlreadyConverted, Forbidden, NotFound, QuoteRejected, ValidationFailed
from ...shared.money import DocumentTotals, compute_totals
from ...shared.results import action, ok
from ...shared.unit_of_work import Compensation, with_compensation
from ..clients.service import ClientService
from ..documents.lines import LineDraft, drafts_from_input, drafts_from_rows, validate_lines
from ..documents.numbering import QUOTE, next_document_number
from ..invoices.service import InvoiceService
from .repository import QuoteRepository
from .schemas import QuoteCreate, QuoteUpdate

logger = logging.getLogger(__name__)

# Statuses reachable through set_quote_status. "accepted" is only reached by
# converting the quote into an invoice.
QUOTE_TRANSITIONS = {
    "pending": {"rejected", "expired"},
    "expired": {"pending", "rejected"},
    "accepted": set(),
    "rejected": set(),
}

EDITABLE_STATUSES = {"pending", "expired"}


class QuoteService:
    """Service layer for quote business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = QuoteRepository()
        self.clients = ClientService(db)
        self.invoices = InvoiceService(db)

    def require_quote(self, quote_id: int, user_id: int) -> Quote:
        quote = self.repo.get_document(self.db, quote_id, user_id)
        if not quote:
            raise NotFound("Quote not found")
        return quote

    def _insert_quote(
        self,
        user_id: int,
        client_id: int,
        drafts: list[LineDraft],
        issue_date: date,
        valid_until: date,
        notes: Optional[str],
        totals: Optional[DocumentTotals] = None,
    ) -> Quote:
        def create(comp: Compensation) -> Quote:
            sequence, number = next_document_number(self.db, user_id, QUOTE)
            quote = self.repo.create_document(
                self.db,
                user_id,
                totals or compute_totals(drafts),
                client_id=client_id,
                sequence=sequence,
                number=number,
                issue_date=issue_date,
                valid_until=valid_until,
                status="pending",
                notes=notes,
            )
            comp.delete_on_failure(Quote, quote.id)
            self.repo.add_lines(self.db, quote.id, drafts)
            self.db.refresh(quote)
            return quote

        def on_failure(exc):
            logger.error(f"❌ Quote creation for user {user_id} rolled back: {exc}")

        return with_compensation(self.db, create, on_failure)

    @action("Error loading quotes")
    def list_quotes(
        self,
        user: User,
        status: Optional[str] = None,
        client_id: Optional[int] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ):
        return self.repo.list_documents(self.db, user.id, status, client_id, date_from, date_to)

    @action("Error loading quote months")
    def get_available_months(self, user: User):
        return self.repo.available_months(self.db, user.id)

    @action("Error loading quote")
    def get_quote(self, quote_id: int, user: User):
        return self.require_quote(quote_id, user.id)

    @action("Error creating quote")
    def create_quote(self, data: QuoteCreate, user: User):
        self.clients.require_client(data.clientId, user.id)
        issue_date = data.issueDate or date.today()
        valid_until = data.validUntil or issue_date + timedelta(days=QUOTE_VALIDITY_DAYS)
        if valid_until < issue_date:
            raise ValidationFailed("Validity date cannot be before the issue date")
        drafts = drafts_from_input(data.lines)
        validate_lines(drafts)

        quote = self._insert_quote(user.id, data.clientId, drafts, issue_date, valid_until, data.notes)
        logger.info(f"✅ Created quote {quote.number} for user {user.id}")
        return quote

    @action("Error updating quote")
    def update_quote(self, quote_id: int, data: QuoteUpdate, user: User):
        quote = self.require_quote(quote_id, user.id)
        if quote.status not in EDITABLE_STATUSES:
            raise Forbidden(f"Quote {quote.number} cannot be edited once {quote.status}")

        updates = {}
        if data.clientId is not None and data.clientId != quote.client_id:
            self.clients.require_client(data.clientId, user.id)
            updates["client_id"] = data.clientId
        if data.issueDate is not None:
            updates["issue_date"] = data.issueDate
        if data.validUntil is not None:
            updates["valid_until"] = data.validUntil
        if data.notes is not None:
            updates["notes"] = data.notes

        if updates.get("valid_until", quote.valid_until) < updates.get("issue_date", quote.issue_date):
            raise ValidationFailed("Validity date cannot be before the issue date")

        if data.lines is None:
            return self.repo.update_document(self.db, quote, **updates)

        drafts = drafts_from_input(data.lines)
        validate_lines(drafts)
        return with_compensation(
            self.db,
            lambda comp: self.repo.replace_lines(self.db, quote, drafts, compute_totals(drafts), **updates),
        )

    @action("Error updating quote status")
    def set_quote_status(self, quote_id: int, status: str, user: User):
        if status not in QUOTE_STATUSES:
            raise ValidationFailed(f"Invalid quote status: {status}")
        quote = self.require_quote(quote_id, user.id)
        if quote.status == status:
            return quote
        if status == "accepted":
            raise Forbidden("A quote is accepted by converting it into an invoice")
        if status not in QUOTE_TRANSITIONS[quote.status]:
            raise Forbidden(f"Quote {quote.number} cannot go from {quote.status} to {status}")

        logger.info(f"🔄 Quote {quote.number}: {quote.status} → {status}")
        return self.repo.update_document(self.db, quote, status=status)

    @action("Error converting quote to invoice")
    def convert_quote_to_invoice(self, quote_id: int, user: User):
        """Create a draft invoice from a quote and mark the quote accepted.

        The invoice is the primary result. If the quote cannot be linked
        afterwards the result is still successful and carries a warning so
        the two records can be reconciled by hand.
        """
        quote = self.require_quote(quote_id, user.id)
        if quote.status == "accepted":
            raise AlreadyConverted(f"Quote {quote.number} has already been converted to an invoice")
        if quote.status == "rejected":
            raise QuoteRejected(f"Quote {quote.number} was rejected and cannot be converted")

        notes = f"Convertido desde presupuesto {quote.number}"
        if quote.notes:
            notes = f"{notes}\n\n{quote.notes}"
        totals = DocumentTotals(subtotal=quote.subtotal, tax_amount=quote.tax_amount, total=quote.total)
        drafts = drafts_from_rows(quote.lines)

        invoice = with_compensation(
            self.db,
            lambda comp: self.invoices.build_invoice(
                comp,
                user.id,
                quote.client_id,
                drafts,
                date.today(),
                notes=notes,
                status="draft",
                totals=totals,
            ),
        )
        logger.info(f"✅ Quote {quote.number} converted into invoice {invoice.number}")

        try:
            self.repo.update_document(self.db, quote, status="accepted", invoice_id=invoice.id)
        except Exception as e:
            self.db.rollback()
            logger.error(
                f"❌ Invoice {invoice.id} created but quote {quote_id} could not be linked, manual reconciliation needed: {e}"
            )
            return ok(
                invoice,
                warning=f"Invoice {invoice.number} was created but quote could not be marked as accepted",
            )
        return invoice

    @action("Error duplicating quote")
    def duplicate_quote(self, quote_id: int, user: User):
        """Copy a quote as a new pending one, leaving the original untouched"""
        original = self.require_quote(quote_id, user.id)
        issue_date = date.today()
        quote = self._insert_quote(
            user.id,
            original.client_id,
            drafts_from_rows(original.lines),
            issue_date,
            issue_date + timedelta(days=QUOTE_VALIDITY_DAYS),
            f"Duplicado de presupuesto {original.number}",
            totals=DocumentTotals(
                subtotal=original.subtotal, tax_amount=original.tax_amount, total=original.total
            ),
        )
        logger.info(f"✅ Duplicated quote {original.number} as {quote.number}")
        return quote

    @action("Error deleting quote")
    def delete_quote(self, quote_id: int, user: User):
        quote = self.require_quote(quote_id, user.id)
        if quote.status == "accepted":
            raise Forbidden(f"Quote {quote.number} was accepted and cannot be deleted")
        self.repo.delete_document(self.db, quote)
        logger.info(f"✅ Deleted quote {quote_id} for user {user.id}")

    @action("Error loading quotes for export")
    def get_quotes_for_export(self, quote_ids: list[int], user: User):
        quotes = self.repo.get_documents(self.db, quote_ids, user.id)
        if len(quotes) != len(quote_ids):
            raise NotFound("Some quotes were not found")
        return quotes
