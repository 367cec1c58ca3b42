"""Database operations shared by quotes and invoices"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...shared.money import DocumentTotals
from .lines import LineDraft, build_line_rows


class DocumentRepository:
    """Base repository; subclasses set ``model``, ``line_model`` and ``parent_field``"""

    model = None
    line_model = None
    parent_field = None

    @classmethod
    def list_documents(
        cls,
        db: Session,
        user_id: int,
        status: Optional[str] = None,
        client_id: Optional[int] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list:
        model = cls.model
        query = db.query(model).filter(model.user_id == user_id)
        if status:
            query = query.filter(model.status == status)
        if client_id:
            query = query.filter(model.client_id == client_id)
        if date_from:
            query = query.filter(model.issue_date >= date_from)
        if date_to:
            query = query.filter(model.issue_date <= date_to)
        return query.order_by(model.issue_date.desc(), model.sequence.desc()).all()

    @classmethod
    def available_months(cls, db: Session, user_id: int) -> list[str]:
        """Distinct YYYY-MM of issue dates, newest first"""
        model = cls.model
        rows = db.query(model.issue_date).filter(model.user_id == user_id).distinct().all()
        return sorted({row[0].strftime("%Y-%m") for row in rows}, reverse=True)

    @classmethod
    def get_document(cls, db: Session, document_id: int, user_id: int):
        model = cls.model
        return db.query(model).filter(model.id == document_id, model.user_id == user_id).first()

    @classmethod
    def create_document(cls, db: Session, user_id: int, totals: DocumentTotals, **data):
        document = cls.model(
            user_id=user_id,
            subtotal=totals.subtotal,
            tax_amount=totals.tax_amount,
            total=totals.total,
            **data,
        )
        db.add(document)
        db.commit()
        db.refresh(document)
        return document

    @classmethod
    def add_lines(cls, db: Session, document_id: int, drafts: list[LineDraft]) -> None:
        db.add_all(build_line_rows(cls.line_model, cls.parent_field, document_id, drafts))
        db.commit()

    @classmethod
    def replace_lines(cls, db: Session, document, drafts: list[LineDraft], totals: DocumentTotals, **updates):
        """Delete all lines, insert the new ones and store totals in one commit"""
        # delete-orphan cascade removes the previous lines
        document.lines = build_line_rows(cls.line_model, cls.parent_field, document.id, drafts)
        document.subtotal = totals.subtotal
        document.tax_amount = totals.tax_amount
        document.total = totals.total
        for key, value in updates.items():
            setattr(document, key, value)
        db.commit()
        db.refresh(document)
        return document

    @staticmethod
    def update_document(db: Session, document, **updates):
        """Update a document with provided fields"""
        for key, value in updates.items():
            setattr(document, key, value)
        db.commit()
        db.refresh(document)
        return document

    @staticmethod
    def delete_document(db: Session, document) -> None:
        db.delete(document)
        db.commit()

    @classmethod
    def get_documents(cls, db: Session, document_ids: list[int], user_id: int) -> list:
        """Owned documents among ``document_ids``, in the requested order"""
        model = cls.model
        rows = db.query(model).filter(model.id.in_(document_ids), model.user_id == user_id).all()
        by_id = {row.id: row for row in rows}
        return [by_id[i] for i in document_ids if i in by_id]
