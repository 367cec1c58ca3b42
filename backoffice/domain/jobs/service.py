"""Job service - Business logic for scheduled jobs"""

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from ...config import INVOICE_DUE_DAYS
from ...models import JOB_STATUSES, Job, User
from ...shared.errors import AlreadyInvoiced, CalendarNotConnected, NotFound, ValidationFailed
from ...shared.results import action, ok
from ...shared.unit_of_work import with_compensation
from ..calendar_sync.service import CalendarFactory, CalendarSyncService
from ..clients.service import ClientService
from ..documents.lines import LineDraft
from ..invoices.service import InvoiceService
from .repository import JobRepository
from .schemas import MAX_OCCURRENCES, RECURRENCE_INTERVAL_DAYS, JobCreate, JobUpdate, OccurrenceResult

logger = logging.getLogger(__name__)


class JobService:
    """Service layer for jobs.

    Calendar pushes after a write are side effects: their failures come
    back as ``warning`` on a successful result and on the sync record.
    """

    def __init__(self, db: Session, calendar_factory: Optional[CalendarFactory] = None):
        self.db = db
        self.repo = JobRepository()
        self.clients = ClientService(db)
        self.invoices = InvoiceService(db)
        self.calendar_sync = CalendarSyncService(db, calendar_factory)

    def require_job(self, job_id: int, user_id: int) -> Job:
        job = self.repo.get_job(self.db, job_id, user_id)
        if not job:
            raise NotFound("Job not found")
        return job

    async def _push_best_effort(self, job: Job) -> Optional[str]:
        """Push the job to the calendar; returns a warning instead of raising"""
        try:
            calendar = await self.calendar_sync.connect(job.user_id)
        except CalendarNotConnected:
            logger.info(f"ℹ️ Google Calendar not connected, job {job.id} not synced")
            return None
        try:
            await self.calendar_sync.push(calendar, job)
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Job {job.id} saved but calendar sync failed: {e}")
            return f"Job saved but calendar sync failed: {e}"
        return None

    @action("Error loading jobs")
    def list_jobs(
        self,
        user: User,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        status: Optional[str] = None,
        client_id: Optional[int] = None,
    ):
        return self.repo.get_jobs(self.db, user.id, date_from, date_to, status, client_id)

    @action("Error loading job")
    def get_job(self, job_id: int, user: User):
        return self.require_job(job_id, user.id)

    @action("Error creating job")
    async def create_job(self, data: JobCreate, user: User):
        self.clients.require_client(data.clientId, user.id)
        if data.endAt <= data.startAt:
            raise ValidationFailed("End time must be after start time")

        job = self.repo.create_job(
            self.db,
            user.id,
            client_id=data.clientId,
            title=data.title,
            description=data.description,
            service_type=data.serviceType,
            status=data.status,
            start_at=data.startAt,
            end_at=data.endAt,
            address=data.address,
            agreed_price=data.agreedPrice,
            is_recurring=data.isRecurring,
            recurrence_pattern=data.recurrencePattern,
        )
        logger.info(f"✅ Created job {job.id} for user {user.id}")
        warning = await self._push_best_effort(job)
        return ok(job, warning=warning)

    @action("Error updating job")
    async def update_job(self, job_id: int, data: JobUpdate, user: User):
        job = self.require_job(job_id, user.id)

        updates = {}
        if data.clientId is not None and data.clientId != job.client_id:
            self.clients.require_client(data.clientId, user.id)
            updates["client_id"] = data.clientId
        field_map = {
            "title": "title",
            "description": "description",
            "serviceType": "service_type",
            "status": "status",
            "startAt": "start_at",
            "endAt": "end_at",
            "address": "address",
            "agreedPrice": "agreed_price",
        }
        for schema_field, column in field_map.items():
            value = getattr(data, schema_field)
            if value is not None:
                updates[column] = value

        if updates.get("status", job.status) not in JOB_STATUSES:
            raise ValidationFailed("Invalid job status")
        if updates.get("end_at", job.end_at) <= updates.get("start_at", job.start_at):
            raise ValidationFailed("End time must be after start time")

        job = self.repo.update_job(self.db, job, **updates)
        warning = await self._push_best_effort(job)
        return ok(job, warning=warning)

    @action("Error deleting job")
    async def delete_job(self, job_id: int, user: User):
        """Remove the calendar event (best effort), then the job"""
        job = self.require_job(job_id, user.id)
        try:
            warning = await self.calendar_sync.delete_event_for_job(job.id, user.id)
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Calendar cleanup for job {job_id} failed: {e}")
            warning = f"The calendar event could not be deleted: {e}"
            self.calendar_sync.repo.delete_by_job(self.db, job_id, user.id)

        self.repo.delete_job(self.db, job)
        logger.info(f"✅ Deleted job {job_id} for user {user.id}")
        return ok(None, warning=warning)

    @action("Error completing job")
    async def complete_job(self, job_id: int, user: User):
        """Mark the job completed and bill it with a one-line draft invoice"""
        job = self.require_job(job_id, user.id)
        if job.invoice_id:
            raise AlreadyInvoiced(f"Job '{job.title}' already has an invoice")

        price = job.agreed_price if job.agreed_price is not None else Decimal("0")
        line = LineDraft(concept=job.title, quantity=Decimal("1"), unit_price=price)
        today = date.today()

        def create(comp):
            invoice = self.invoices.build_invoice(
                comp,
                user.id,
                job.client_id,
                [line],
                today,
                due_date=today + timedelta(days=INVOICE_DUE_DAYS),
                notes=f"Trabajo completado: {job.title}",
            )
            self.repo.update_job(self.db, job, status="completed", invoice_id=invoice.id)
            return invoice

        invoice = with_compensation(self.db, create)
        logger.info(f"✅ Job {job.id} completed, invoice {invoice.number} created")

        warning = await self._push_best_effort(job)
        return ok(invoice, warning=warning)

    @action("Error creating recurring jobs")
    async def create_recurring_jobs(self, base_job_id: int, occurrences: int, pattern: str, user: User):
        """Copies of the base job shifted by i × interval, one result per occurrence"""
        if pattern not in RECURRENCE_INTERVAL_DAYS:
            raise ValidationFailed(f"Invalid recurrence pattern: {pattern}")
        if occurrences < 1 or occurrences > MAX_OCCURRENCES:
            raise ValidationFailed(f"Occurrences must be between 1 and {MAX_OCCURRENCES}")

        base = self.require_job(base_job_id, user.id)
        interval = timedelta(days=RECURRENCE_INTERVAL_DAYS[pattern])

        def create(comp):
            jobs = []
            for i in range(1, occurrences + 1):
                job = self.repo.create_job(
                    self.db,
                    user.id,
                    client_id=base.client_id,
                    title=base.title,
                    description=base.description,
                    service_type=base.service_type,
                    status="pending",
                    start_at=base.start_at + interval * i,
                    end_at=base.end_at + interval * i,
                    address=base.address,
                    agreed_price=base.agreed_price,
                    is_recurring=True,
                    recurrence_pattern=pattern,
                    parent_job_id=base.id,
                )
                comp.delete_on_failure(Job, job.id)
                jobs.append(job)
            return jobs

        jobs = with_compensation(self.db, create)
        logger.info(f"✅ Created {len(jobs)} {pattern} occurrences of job {base.id}")

        try:
            calendar = await self.calendar_sync.connect(user.id)
        except CalendarNotConnected:
            logger.info("ℹ️ Google Calendar not connected, occurrences not synced")
            calendar = None

        results = []
        for job in jobs:
            synced, error = False, None
            if calendar is not None:
                try:
                    await self.calendar_sync.push(calendar, job)
                    synced = True
                except Exception as e:
                    self.db.rollback()
                    error = str(e)
                    logger.error(f"❌ Occurrence {job.id} not synced: {e}")
            results.append(OccurrenceResult(jobId=job.id, startAt=job.start_at, synced=synced, error=error))
        return results
