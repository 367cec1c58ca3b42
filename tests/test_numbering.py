import pytest

from backoffice.domain.documents.numbering import (
    INVOICE,
    QUOTE,
    format_document_number,
    next_document_number,
)


class TestDocumentNumbering:
    """Per-account sequential numbers"""

    def test_format(self):
        assert format_document_number(QUOTE, 1) == "P-001"
        assert format_document_number(INVOICE, 42) == "F-042"
        assert format_document_number(INVOICE, 1234) == "F-1234"

    def test_sequence_per_type(self, db, user):
        assert next_document_number(db, user.id, QUOTE) == (1, "P-001")
        assert next_document_number(db, user.id, QUOTE) == (2, "P-002")
        assert next_document_number(db, user.id, INVOICE) == (1, "F-001")

    def test_sequence_per_account(self, db, user, other_user):
        next_document_number(db, user.id, INVOICE)
        next_document_number(db, user.id, INVOICE)
        assert next_document_number(db, other_user.id, INVOICE) == (1, "F-001")

    def test_unknown_type(self, db, user):
        with pytest.raises(ValueError):
            next_document_number(db, user.id, "receipt")
