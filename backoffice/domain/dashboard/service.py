"""Dashboard service - monthly income, expenses and pending work"""

import logging
from datetime import date
from typing import Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session

from ...models import User
from ...shared.dates import month_bounds
from ...shared.errors import ValidationFailed
from ...shared.results import action
from ..expenses.schemas import expense_response
from ..invoices.schemas import invoice_response
from .repository import DashboardRepository
from .schemas import DashboardStats, MonthlyTotal

logger = logging.getLogger(__name__)

MONTH_NAMES = ["Ene", "Feb", "Mar", "Abr", "May", "Jun", "Jul", "Ago", "Sep", "Oct", "Nov", "Dic"]
MAX_MONTHS = 24


class DashboardService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = DashboardRepository()

    @action("Error loading dashboard statistics")
    def get_dashboard_stats(self, user: User, month: int, year: int, today: Optional[date] = None):
        """Totals for one month plus account-wide pending work.

        Paid and pending totals use the invoice issue date. Overdue invoices
        and the draft count are not limited to the month.
        """
        if not 1 <= month <= 12:
            raise ValidationFailed("Month must be between 1 and 12")
        today = today or date.today()
        date_from, date_to = month_bounds(year, month)

        paid = self.repo.sum_invoices(self.db, user.id, "paid", date_from, date_to)
        pending = self.repo.sum_invoices(self.db, user.id, "sent", date_from, date_to)
        expenses = self.repo.sum_expenses(self.db, user.id, date_from, date_to)

        return DashboardStats(
            month=month,
            year=year,
            paidTotal=paid,
            pendingTotal=pending,
            expensesTotal=expenses,
            balance=paid - expenses,
            overdueInvoices=[invoice_response(i) for i in self.repo.get_overdue_invoices(self.db, user.id, today)],
            draftInvoices=self.repo.count_drafts(self.db, user.id),
            recentInvoices=[invoice_response(i) for i in self.repo.get_recent_invoices(self.db, user.id)],
            recentExpenses=[expense_response(e) for e in self.repo.get_recent_expenses(self.db, user.id)],
        )

    @action("Error loading monthly totals")
    def get_monthly_totals(self, user: User, months: int = 6, today: Optional[date] = None):
        """Paid income and expenses for the last ``months`` months, oldest first"""
        if not 1 <= months <= MAX_MONTHS:
            raise ValidationFailed(f"Months must be between 1 and {MAX_MONTHS}")
        current = (today or date.today()).replace(day=1)

        results = []
        for offset in range(months - 1, -1, -1):
            first = current - relativedelta(months=offset)
            year, month = first.year, first.month
            date_from, date_to = month_bounds(year, month)
            results.append(
                MonthlyTotal(
                    month=MONTH_NAMES[month - 1],
                    monthNum=month,
                    year=year,
                    income=self.repo.sum_invoices(self.db, user.id, "paid", date_from, date_to),
                    expenses=self.repo.sum_expenses(self.db, user.id, date_from, date_to),
                )
            )
        return results
