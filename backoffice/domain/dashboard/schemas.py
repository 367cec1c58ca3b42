"""Dashboard schemas"""

from decimal import Decimal

from pydantic import BaseModel

from ..expenses.schemas import ExpenseResponse
from ..invoices.schemas import InvoiceResponse


class DashboardStats(BaseModel):
    month: int
    year: int
    paidTotal: Decimal
    pendingTotal: Decimal
    expensesTotal: Decimal
    balance: Decimal
    overdueInvoices: list[InvoiceResponse]
    draftInvoices: int
    recentInvoices: list[InvoiceResponse]
    recentExpenses: list[ExpenseResponse]


class MonthlyTotal(BaseModel):
    month: str
    monthNum: int
    year: int
    income: Decimal
    expenses: Decimal
