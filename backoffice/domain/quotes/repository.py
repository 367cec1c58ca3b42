"""Quote repository - Database operations for quotes"""

from ...models_invoice import Quote, QuoteLine
from ..documents.repository import DocumentRepository


class QuoteRepository(DocumentRepository):
    """Repository for quote database operations"""

    model = Quote
    line_model = QuoteLine
    parent_field = "quote_id"
