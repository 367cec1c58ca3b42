"""Dashboard router"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...shared.results import unwrap
from .schemas import DashboardStats, MonthlyTotal
from .service import DashboardService

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


def get_dashboard_service(db: Session = Depends(get_db)) -> DashboardService:
    return DashboardService(db)


@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats(
    month: Optional[int] = Query(None),
    year: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Statistics for the given month, the current one by default"""
    today = date.today()
    return unwrap(service.get_dashboard_stats(current_user, month or today.month, year or today.year))


@router.get("/monthly", response_model=list[MonthlyTotal])
async def get_monthly_totals(
    months: int = Query(6),
    current_user: User = Depends(get_current_user),
    service: DashboardService = Depends(get_dashboard_service),
):
    return unwrap(service.get_monthly_totals(current_user, months))
