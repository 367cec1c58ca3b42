"""Expense repository - Database operations for expenses and categories"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Expense, ExpenseCategory

DEFAULT_CATEGORIES = [
    ("Material", "#3B82F6"),
    ("Transporte", "#10B981"),
    ("Nóminas", "#F59E0B"),
    ("Seguros", "#8B5CF6"),
    ("Otros", "#6B7280"),
]


class ExpenseRepository:
    """Repository for expense database operations"""

    # Categories

    @staticmethod
    def get_categories(db: Session, user_id: int) -> list[ExpenseCategory]:
        return (
            db.query(ExpenseCategory)
            .filter(ExpenseCategory.user_id == user_id)
            .order_by(ExpenseCategory.name.asc())
            .all()
        )

    @staticmethod
    def get_category(db: Session, category_id: int, user_id: int) -> Optional[ExpenseCategory]:
        return (
            db.query(ExpenseCategory)
            .filter(ExpenseCategory.id == category_id, ExpenseCategory.user_id == user_id)
            .first()
        )

    @staticmethod
    def count_categories(db: Session, user_id: int) -> int:
        return db.query(ExpenseCategory).filter(ExpenseCategory.user_id == user_id).count()

    @staticmethod
    def create_category(db: Session, user_id: int, name: str, color: Optional[str] = None) -> ExpenseCategory:
        category = ExpenseCategory(user_id=user_id, name=name, color=color)
        db.add(category)
        db.commit()
        db.refresh(category)
        return category

    @staticmethod
    def create_default_categories(db: Session, user_id: int) -> list[ExpenseCategory]:
        categories = [ExpenseCategory(user_id=user_id, name=name, color=color) for name, color in DEFAULT_CATEGORIES]
        db.add_all(categories)
        db.commit()
        return categories

    @staticmethod
    def update_category(db: Session, category: ExpenseCategory, **updates) -> ExpenseCategory:
        for key, value in updates.items():
            if value is not None:
                setattr(category, key, value)
        db.commit()
        db.refresh(category)
        return category

    @staticmethod
    def delete_category(db: Session, category: ExpenseCategory) -> None:
        """Delete a category; its expenses stay uncategorised"""
        db.query(Expense).filter(Expense.category_id == category.id).update(
            {Expense.category_id: None}, synchronize_session=False
        )
        db.delete(category)
        db.commit()

    # Expenses

    @staticmethod
    def get_expenses(
        db: Session,
        user_id: int,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        category_id: Optional[int] = None,
    ) -> list[Expense]:
        query = db.query(Expense).filter(Expense.user_id == user_id)
        if date_from:
            query = query.filter(Expense.date >= date_from)
        if date_to:
            query = query.filter(Expense.date <= date_to)
        if category_id:
            query = query.filter(Expense.category_id == category_id)
        return query.order_by(Expense.date.desc(), Expense.id.desc()).all()

    @staticmethod
    def get_expense(db: Session, expense_id: int, user_id: int) -> Optional[Expense]:
        return db.query(Expense).filter(Expense.id == expense_id, Expense.user_id == user_id).first()

    @staticmethod
    def create_expense(db: Session, user_id: int, **data) -> Expense:
        expense = Expense(user_id=user_id, **data)
        db.add(expense)
        db.commit()
        db.refresh(expense)
        return expense

    @staticmethod
    def update_expense(db: Session, expense: Expense, **updates) -> Expense:
        for key, value in updates.items():
            setattr(expense, key, value)
        db.commit()
        db.refresh(expense)
        return expense

    @staticmethod
    def delete_expense(db: Session, expense: Expense) -> None:
        db.delete(expense)
        db.commit()
