"""Calendar sync router - manual reconciliation with Google Calendar"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...shared.results import unwrap
from .schemas import (
    ImportResult,
    PullResult,
    PushAllResult,
    SyncRecordResponse,
    TwoWaySyncResult,
    sync_record_response,
)
from .service import CalendarFactory, CalendarSyncService, database_calendar_factory

router = APIRouter(prefix="/calendar-sync", tags=["Calendar Sync"])


def get_calendar_factory(db: Session = Depends(get_db)) -> CalendarFactory:
    """Calendar handles for the current request"""
    return database_calendar_factory(db)


def get_calendar_sync_service(
    db: Session = Depends(get_db),
    calendar_factory: CalendarFactory = Depends(get_calendar_factory),
) -> CalendarSyncService:
    """Dependency injection for CalendarSyncService"""
    return CalendarSyncService(db, calendar_factory)


@router.post("/jobs/{job_id}", response_model=SyncRecordResponse)
async def push_job(
    job_id: int,
    current_user: User = Depends(get_current_user),
    service: CalendarSyncService = Depends(get_calendar_sync_service),
):
    """Push one job to Google Calendar"""
    return sync_record_response(unwrap(await service.push_job(job_id, current_user)))


@router.get("/jobs/{job_id}", response_model=Optional[SyncRecordResponse])
async def get_sync_status(
    job_id: int,
    current_user: User = Depends(get_current_user),
    service: CalendarSyncService = Depends(get_calendar_sync_service),
):
    record = unwrap(service.get_sync_status(job_id, current_user))
    return sync_record_response(record) if record else None


@router.post("/push", response_model=PushAllResult)
async def push_all(
    current_user: User = Depends(get_current_user),
    service: CalendarSyncService = Depends(get_calendar_sync_service),
):
    """Push every job that is not cancelled"""
    return unwrap(await service.push_all(current_user))


@router.post("/pull", response_model=PullResult)
async def pull_from_google(
    current_user: User = Depends(get_current_user),
    service: CalendarSyncService = Depends(get_calendar_sync_service),
):
    """Apply calendar edits to the jobs they belong to"""
    return unwrap(await service.pull_from_external(current_user))


@router.post("/import", response_model=ImportResult)
async def import_from_google(
    current_user: User = Depends(get_current_user),
    service: CalendarSyncService = Depends(get_calendar_sync_service),
):
    """Create jobs for calendar events that have none"""
    return unwrap(await service.import_from_external(current_user))


@router.post("/sync", response_model=TwoWaySyncResult)
async def two_way_sync(
    current_user: User = Depends(get_current_user),
    service: CalendarSyncService = Depends(get_calendar_sync_service),
):
    """Import, pull and push in one go"""
    return unwrap(await service.two_way_sync(current_user))
