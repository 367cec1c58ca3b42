"""Invoice repository - Database operations for invoices"""

from sqlalchemy.orm import Session

from ...models import Job
from ...models_invoice import Invoice, InvoiceLine, Quote
from ..documents.repository import DocumentRepository


class InvoiceRepository(DocumentRepository):
    """Repository for invoice database operations"""

    model = Invoice
    line_model = InvoiceLine
    parent_field = "invoice_id"

    @staticmethod
    def unlink_invoice(db: Session, invoice_id: int, user_id: int) -> None:
        """Clear references from quotes and jobs to an invoice about to be deleted"""
        db.query(Quote).filter(Quote.invoice_id == invoice_id, Quote.user_id == user_id).update(
            {Quote.invoice_id: None}, synchronize_session=False
        )
        db.query(Job).filter(Job.invoice_id == invoice_id, Job.user_id == user_id).update(
            {Job.invoice_id: None}, synchronize_session=False
        )
