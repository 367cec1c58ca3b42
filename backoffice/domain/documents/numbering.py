"""Atomic per-account document numbering"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import DocumentCounter

logger = logging.getLogger(__name__)

QUOTE = "quote"
INVOICE = "invoice"

PREFIXES = {QUOTE: "P", INVOICE: "F"}

MAX_ATTEMPTS = 3


def format_document_number(doc_type: str, sequence: int) -> str:
    return f"{PREFIXES[doc_type]}-{sequence:03d}"


def next_document_number(db: Session, user_id: int, doc_type: str) -> tuple[int, str]:
    """Reserve the next number for ``doc_type`` and commit it.

    The counter row is locked with SELECT ... FOR UPDATE, so concurrent
    requests for the same account serialize on it. Reserved numbers are
    never handed out again, even if the document that took them is later
    deleted or its creation fails.
    """
    if doc_type not in PREFIXES:
        raise ValueError(f"Unknown document type: {doc_type}")

    for attempt in range(1, MAX_ATTEMPTS + 1):
        counter = (
            db.query(DocumentCounter)
            .filter(DocumentCounter.user_id == user_id, DocumentCounter.doc_type == doc_type)
            .with_for_update()
            .first()
        )
        if counter is None:
            counter = DocumentCounter(user_id=user_id, doc_type=doc_type, last_value=0)
            db.add(counter)

        counter.last_value += 1
        sequence = counter.last_value
        try:
            db.commit()
        except IntegrityError:
            # Another request created the counter row first
            db.rollback()
            logger.warning(f"⚠️ Counter race for user {user_id} ({doc_type}), retry {attempt}/{MAX_ATTEMPTS}")
            continue
        return sequence, format_document_number(doc_type, sequence)

    raise RuntimeError(f"Could not allocate a {doc_type} number for user {user_id}")
