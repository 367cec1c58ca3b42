"""Expense service - Business logic for expenses and categories"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Expense, ExpenseCategory, User
from ...shared.errors import NotFound
from ...shared.money import to_money
from ...shared.results import action
from .repository import ExpenseRepository
from .schemas import CategoryCreate, CategoryUpdate, ExpenseCreate, ExpenseUpdate

logger = logging.getLogger(__name__)


class ExpenseService:
    """Service layer for expense business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ExpenseRepository()

    def require_category(self, category_id: int, user_id: int) -> ExpenseCategory:
        category = self.repo.get_category(self.db, category_id, user_id)
        if not category:
            raise NotFound("Category not found")
        return category

    def require_expense(self, expense_id: int, user_id: int) -> Expense:
        expense = self.repo.get_expense(self.db, expense_id, user_id)
        if not expense:
            raise NotFound("Expense not found")
        return expense

    # Categories

    @action("Error loading categories")
    def get_categories(self, user: User):
        return self.repo.get_categories(self.db, user.id)

    @action("Error creating category")
    def create_category(self, data: CategoryCreate, user: User):
        return self.repo.create_category(self.db, user.id, data.name, data.color)

    @action("Error updating category")
    def update_category(self, category_id: int, data: CategoryUpdate, user: User):
        category = self.require_category(category_id, user.id)
        return self.repo.update_category(self.db, category, name=data.name, color=data.color)

    @action("Error deleting category")
    def delete_category(self, category_id: int, user: User):
        category = self.require_category(category_id, user.id)
        self.repo.delete_category(self.db, category)
        logger.info(f"✅ Deleted expense category {category_id} for user {user.id}")

    @action("Error creating default categories")
    def initialize_default_categories(self, user: User):
        """Create the default categories for an account that has none"""
        if self.repo.count_categories(self.db, user.id):
            return self.repo.get_categories(self.db, user.id)
        logger.info(f"📥 Creating default expense categories for user {user.id}")
        self.repo.create_default_categories(self.db, user.id)
        return self.repo.get_categories(self.db, user.id)

    # Expenses

    @action("Error loading expenses")
    def get_expenses(
        self,
        user: User,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        category_id: Optional[int] = None,
    ):
        return self.repo.get_expenses(self.db, user.id, date_from, date_to, category_id)

    @action("Error loading expense")
    def get_expense(self, expense_id: int, user: User):
        return self.require_expense(expense_id, user.id)

    @action("Error creating expense")
    def create_expense(self, data: ExpenseCreate, user: User):
        if data.categoryId is not None:
            self.require_category(data.categoryId, user.id)
        expense = self.repo.create_expense(
            self.db,
            user.id,
            concept=data.concept,
            amount=to_money(data.amount),
            date=data.date,
            category_id=data.categoryId,
            supplier=data.supplier,
            notes=data.notes,
        )
        logger.info(f"✅ Created expense {expense.id} for user {user.id}")
        return expense

    @action("Error updating expense")
    def update_expense(self, expense_id: int, data: ExpenseUpdate, user: User):
        expense = self.require_expense(expense_id, user.id)
        updates = {}
        if data.concept is not None:
            updates["concept"] = data.concept
        if data.amount is not None:
            updates["amount"] = to_money(data.amount)
        if data.date is not None:
            updates["date"] = data.date
        if "categoryId" in data.model_fields_set:
            if data.categoryId is not None:
                self.require_category(data.categoryId, user.id)
            updates["category_id"] = data.categoryId
        if data.supplier is not None:
            updates["supplier"] = data.supplier
        if data.notes is not None:
            updates["notes"] = data.notes
        return self.repo.update_expense(self.db, expense, **updates)

    @action("Error deleting expense")
    def delete_expense(self, expense_id: int, user: User):
        expense = self.require_expense(expense_id, user.id)
        self.repo.delete_expense(self.db, expense)
        logger.info(f"✅ Deleted expense {expense_id} for user {user.id}")
