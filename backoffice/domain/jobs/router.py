"""Job router - FastAPI endpoints for scheduled jobs"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...shared.dates import to_utc_naive
from ...shared.results import unwrap
from ..calendar_sync.router import get_calendar_factory
from ..calendar_sync.service import CalendarFactory
from .schemas import (
    JobCompletionResponse,
    JobCreate,
    JobMutationResponse,
    JobResponse,
    JobUpdate,
    OccurrenceResult,
    RecurrenceRequest,
    job_response,
)
from .service import JobService

router = APIRouter(prefix="/jobs", tags=["Jobs"])


def get_job_service(
    db: Session = Depends(get_db),
    calendar_factory: CalendarFactory = Depends(get_calendar_factory),
) -> JobService:
    """Dependency injection for JobService"""
    return JobService(db, calendar_factory)


@router.get("", response_model=list[JobResponse])
async def list_jobs(
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    status: Optional[str] = Query(None),
    client_id: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    """Jobs overlapping the range, for the calendar view"""
    jobs = unwrap(
        service.list_jobs(
            current_user,
            to_utc_naive(date_from) if date_from else None,
            to_utc_naive(date_to) if date_to else None,
            status,
            client_id,
        )
    )
    return [job_response(j) for j in jobs]


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(
    job_id: int,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    return job_response(unwrap(service.get_job(job_id, current_user)))


@router.post("", response_model=JobMutationResponse, status_code=201)
async def create_job(
    data: JobCreate,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    result = await service.create_job(data, current_user)
    return JobMutationResponse(job=job_response(unwrap(result)), warning=result.warning)


@router.put("/{job_id}", response_model=JobMutationResponse)
async def update_job(
    job_id: int,
    data: JobUpdate,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    result = await service.update_job(job_id, data, current_user)
    return JobMutationResponse(job=job_response(unwrap(result)), warning=result.warning)


@router.delete("/{job_id}")
async def delete_job(
    job_id: int,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    result = await service.delete_job(job_id, current_user)
    unwrap(result)
    return {"message": "Job deleted successfully", "warning": result.warning}


@router.post("/{job_id}/complete", response_model=JobCompletionResponse)
async def complete_job(
    job_id: int,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    """Complete the job and create its invoice"""
    result = await service.complete_job(job_id, current_user)
    invoice = unwrap(result)
    return JobCompletionResponse(invoiceId=invoice.id, invoiceNumber=invoice.number, warning=result.warning)


@router.post("/{job_id}/recurrences", response_model=list[OccurrenceResult], status_code=201)
async def create_recurring_jobs(
    job_id: int,
    data: RecurrenceRequest,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    return unwrap(await service.create_recurring_jobs(job_id, data.occurrences, data.pattern, current_user))
