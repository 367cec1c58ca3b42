"""Expense router - FastAPI endpoints for expenses and categories"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...shared.results import unwrap
from .schemas import (
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    ExpenseCreate,
    ExpenseResponse,
    ExpenseUpdate,
    expense_response,
)
from .service import ExpenseService

router = APIRouter(prefix="/expenses", tags=["Expenses"])


def get_expense_service(db: Session = Depends(get_db)) -> ExpenseService:
    """Dependency injection for ExpenseService"""
    return ExpenseService(db)


@router.get("/categories", response_model=list[CategoryResponse])
async def get_categories(
    current_user: User = Depends(get_current_user),
    service: ExpenseService = Depends(get_expense_service),
):
    return unwrap(service.get_categories(current_user))


@router.post("/categories/defaults", response_model=list[CategoryResponse])
async def initialize_default_categories(
    current_user: User = Depends(get_current_user),
    service: ExpenseService = Depends(get_expense_service),
):
    """Create the default categories when the account has none"""
    return unwrap(service.initialize_default_categories(current_user))


@router.post("/categories", response_model=CategoryResponse, status_code=201)
async def create_category(
    data: CategoryCreate,
    current_user: User = Depends(get_current_user),
    service: ExpenseService = Depends(get_expense_service),
):
    return unwrap(service.create_category(data, current_user))


@router.put("/categories/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: int,
    data: CategoryUpdate,
    current_user: User = Depends(get_current_user),
    service: ExpenseService = Depends(get_expense_service),
):
    return unwrap(service.update_category(category_id, data, current_user))


@router.delete("/categories/{category_id}")
async def delete_category(
    category_id: int,
    current_user: User = Depends(get_current_user),
    service: ExpenseService = Depends(get_expense_service),
):
    unwrap(service.delete_category(category_id, current_user))
    return {"message": "Category deleted successfully"}


@router.get("", response_model=list[ExpenseResponse])
async def get_expenses(
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    category_id: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    service: ExpenseService = Depends(get_expense_service),
):
    """List expenses, most recent first"""
    expenses = unwrap(service.get_expenses(current_user, date_from, date_to, category_id))
    return [expense_response(e) for e in expenses]


@router.get("/{expense_id}", response_model=ExpenseResponse)
async def get_expense(
    expense_id: int,
    current_user: User = Depends(get_current_user),
    service: ExpenseService = Depends(get_expense_service),
):
    return expense_response(unwrap(service.get_expense(expense_id, current_user)))


@router.post("", response_model=ExpenseResponse, status_code=201)
async def create_expense(
    data: ExpenseCreate,
    current_user: User = Depends(get_current_user),
    service: ExpenseService = Depends(get_expense_service),
):
    return expense_response(unwrap(service.create_expense(data, current_user)))


@router.put("/{expense_id}", response_model=ExpenseResponse)
async def update_expense(
    expense_id: int,
    data: ExpenseUpdate,
    current_user: User = Depends(get_current_user),
    service: ExpenseService = Depends(get_expense_service),
):
    return expense_response(unwrap(service.update_expense(expense_id, data, current_user)))


@router.delete("/{expense_id}")
async def delete_expense(
    expense_id: int,
    current_user: User = Depends(get_current_user),
    service: ExpenseService = Depends(get_expense_service),
):
    unwrap(service.delete_expense(expense_id, current_user))
    return {"message": "Expense deleted successfully"}
