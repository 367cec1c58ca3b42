"""Dashboard repository - aggregate queries over invoices and expenses"""

from datetime import date
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Expense
from ...models_invoice import Invoice
from ...shared.money import to_money

RECENT_LIMIT = 5


class DashboardRepository:
    """Repository for dashboard aggregates"""

    @staticmethod
    def sum_invoices(db: Session, user_id: int, status: str, date_from: date, date_to: date) -> Decimal:
        total = (
            db.query(func.coalesce(func.sum(Invoice.total), 0))
            .filter(
                Invoice.user_id == user_id,
                Invoice.status == status,
                Invoice.issue_date >= date_from,
                Invoice.issue_date <= date_to,
            )
            .scalar()
        )
        return to_money(total)

    @staticmethod
    def sum_expenses(db: Session, user_id: int, date_from: date, date_to: date) -> Decimal:
        total = (
            db.query(func.coalesce(func.sum(Expense.amount), 0))
            .filter(Expense.user_id == user_id, Expense.date >= date_from, Expense.date <= date_to)
            .scalar()
        )
        return to_money(total)

    @staticmethod
    def get_overdue_invoices(db: Session, user_id: int, today: date) -> list[Invoice]:
        """Sent invoices past their due date, oldest due first"""
        return (
            db.query(Invoice)
            .filter(Invoice.user_id == user_id, Invoice.status == "sent", Invoice.due_date < today)
            .order_by(Invoice.due_date.asc())
            .all()
        )

    @staticmethod
    def count_drafts(db: Session, user_id: int) -> int:
        return db.query(Invoice).filter(Invoice.user_id == user_id, Invoice.status == "draft").count()

    @staticmethod
    def get_recent_invoices(db: Session, user_id: int) -> list[Invoice]:
        return (
            db.query(Invoice)
            .filter(Invoice.user_id == user_id)
            .order_by(Invoice.issue_date.desc(), Invoice.sequence.desc())
            .limit(RECENT_LIMIT)
            .all()
        )

    @staticmethod
    def get_recent_expenses(db: Session, user_id: int) -> list[Expense]:
        return (
            db.query(Expense)
            .filter(Expense.user_id == user_id)
            .order_by(Expense.date.desc(), Expense.id.desc())
            .limit(RECENT_LIMIT)
            .all()
        )
