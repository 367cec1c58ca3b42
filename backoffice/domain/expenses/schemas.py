"""Expense domain schemas"""

from datetime import date as DateType
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_hex_color, validate_required_text


class CategoryCreate(BaseModel):
    name: str
    color: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return validate_required_text(v, "Name")

    @field_validator("color")
    @classmethod
    def validate_color(cls, v):
        return validate_hex_color(v)


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    color: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is not None:
            return validate_required_text(v, "Name")
        return v

    @field_validator("color")
    @classmethod
    def validate_color(cls, v):
        return validate_hex_color(v)


class CategoryResponse(BaseModel):
    id: int
    name: str
    color: Optional[str]

    class Config:
        from_attributes = True


class ExpenseCreate(BaseModel):
    concept: str
    amount: Decimal
    date: DateType
    categoryId: Optional[int] = None
    supplier: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("concept")
    @classmethod
    def validate_concept(cls, v):
        return validate_required_text(v, "Concept")

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v):
        if v <= 0:
            raise ValueError("Amount must be greater than 0")
        return v


class ExpenseUpdate(BaseModel):
    concept: Optional[str] = None
    amount: Optional[Decimal] = None
    date: Optional[DateType] = None
    categoryId: Optional[int] = None
    supplier: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("concept")
    @classmethod
    def validate_concept(cls, v):
        if v is not None:
            return validate_required_text(v, "Concept")
        return v

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v):
        if v is not None and v <= 0:
            raise ValueError("Amount must be greater than 0")
        return v


class ExpenseResponse(BaseModel):
    id: int
    concept: str
    amount: Decimal
    date: DateType
    categoryId: Optional[int]
    categoryName: Optional[str] = None
    categoryColor: Optional[str] = None
    supplier: Optional[str]
    notes: Optional[str]


def expense_response(expense) -> ExpenseResponse:
    category = expense.category
    return ExpenseResponse(
        id=expense.id,
        concept=expense.concept,
        amount=expense.amount,
        date=expense.date,
        categoryId=expense.category_id,
        categoryName=category.name if category else None,
        categoryColor=category.color if category else None,
        supplier=expense.supplier,
        notes=expense.notes,
    )
