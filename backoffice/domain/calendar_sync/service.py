"""
Calendar sync service - reconciliation between jobs and Google Calendar

Three independent operations: push (job → event), pull (event → existing
job) and import (event → new job). ``two_way_sync`` runs the three in
sequence. Sync problems are recorded on the sync record and never undo
the local data.
"""

import logging
from dataclasses import replace
from typing import Awaitable, Callable, Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session

from ...models import Job, User
from ...models_google_calendar import CalendarSync
from ...services.credential_vault import DatabaseTokenStore, get_calendar_handle
from ...services.google_calendar_service import CalendarEventNotFound, GoogleCalendarClient
from ...shared.dates import utcnow
from ...shared.errors import CalendarNotConnected, DomainError, ExternalServiceError, NotFound
from ...shared.results import action
from ...shared.unit_of_work import with_compensation
from ..clients.service import ClientService
from ..jobs.repository import JobRepository
from .event_mapping import EventFields, fields_from_event, fields_from_job, job_id_from_event, job_to_event
from .merge import MergePolicy, reconcile
from .repository import CalendarSyncRepository

logger = logging.getLogger(__name__)

CalendarFactory = Callable[[int], Awaitable[GoogleCalendarClient]]

PULL_MONTHS_BACK = 3
PULL_MONTHS_AHEAD = 3
IMPORT_MONTHS_BACK = 3
IMPORT_MONTHS_AHEAD = 6
IMPORT_MAX_RESULTS = 250

IMPORTED_SERVICE_TYPE = "general_cleaning"
UNTITLED_EVENT = "Sin título"
IMPORTED_EVENT_TITLE = "Evento importado"


def database_calendar_factory(db: Session) -> CalendarFactory:
    """Calendar handles built from the credentials stored in the database"""
    token_store = DatabaseTokenStore(db)

    async def factory(user_id: int) -> GoogleCalendarClient:
        return await get_calendar_handle(user_id, token_store)

    return factory


def _error_message(error: Exception) -> str:
    return error.message if isinstance(error, DomainError) else str(error)


class CalendarSyncService:
    """Service layer for calendar reconciliation"""

    def __init__(
        self,
        db: Session,
        calendar_factory: Optional[CalendarFactory] = None,
        merge_policy: Optional[MergePolicy] = None,
    ):
        self.db = db
        self.repo = CalendarSyncRepository()
        self.jobs = JobRepository()
        self.clients = ClientService(db)
        self.calendar_factory = calendar_factory or database_calendar_factory(db)
        self.merge_policy = merge_policy or reconcile

    async def connect(self, user_id: int) -> GoogleCalendarClient:
        """Calendar handle for the account; raises CalendarNotConnected"""
        return await self.calendar_factory(user_id)

    # ------------------------------------------------------------------
    # Push
    # ------------------------------------------------------------------

    async def push(self, calendar: GoogleCalendarClient, job: Job) -> CalendarSync:
        """Create or update the job's event and record the mapping.

        A mapped event that disappeared from the calendar is recreated.
        Any other failure is stored on the sync record and re-raised.
        """
        record = self.repo.get_by_job(self.db, job.id, job.user_id)
        body = job_to_event(job)
        try:
            if record and record.google_event_id:
                try:
                    event = await calendar.update_event(record.google_event_id, body)
                except CalendarEventNotFound:
                    logger.warning(
                        f"⚠️ Event {record.google_event_id} for job {job.id} no longer exists, recreating it"
                    )
                    event = await calendar.insert_event(body)
            else:
                event = await calendar.insert_event(body)
        except Exception as e:
            message = _error_message(e)
            logger.error(f"❌ Failed to push job {job.id} to Google Calendar: {message}")
            self.db.rollback()
            self.repo.mark_error(self.db, job.user_id, job.id, message)
            if isinstance(e, DomainError):
                raise
            raise ExternalServiceError(f"Calendar sync failed: {message}") from e

        record = self.repo.mark_synced(self.db, job.user_id, job.id, event["id"])
        logger.info(f"📤 Job {job.id} synced to event {event['id']}")
        return record

    async def _push_all(self, calendar: GoogleCalendarClient, user_id: int) -> dict:
        synced = failed = 0
        for job in self.jobs.get_pushable_jobs(self.db, user_id):
            try:
                await self.push(calendar, job)
                synced += 1
            except Exception as e:
                # Already recorded on the sync record
                logger.warning(f"⚠️ Push of job {job.id} failed: {_error_message(e)}")
                failed += 1
        logger.info(f"✅ Pushed jobs for user {user_id}: {synced} synced, {failed} failed")
        return {"synced": synced, "failed": failed}

    # ------------------------------------------------------------------
    # Pull
    # ------------------------------------------------------------------

    def _apply_event(self, job: Job, local: EventFields, merged: EventFields) -> None:
        updates = {}
        if merged.title != local.title:
            updates["title"] = merged.title or UNTITLED_EVENT
        if merged.description != local.description:
            updates["description"] = merged.description
        if merged.location != local.location:
            updates["address"] = merged.location
        if merged.start_at != local.start_at:
            updates["start_at"] = merged.start_at
        if merged.end_at != local.end_at:
            updates["end_at"] = merged.end_at
        self.jobs.update_job(self.db, job, **updates)

    async def _pull(self, calendar: GoogleCalendarClient, user_id: int) -> dict:
        now = utcnow()
        events = await calendar.list_events(
            now - relativedelta(months=PULL_MONTHS_BACK), now + relativedelta(months=PULL_MONTHS_AHEAD)
        )

        updated = unchanged = 0
        for event in events:
            job_id = job_id_from_event(event)
            if job_id is None:
                continue
            job = self.jobs.get_job(self.db, job_id, user_id)
            if job is None:
                continue
            external = fields_from_event(event)
            if external is None:
                continue

            local = fields_from_job(job)
            merged = self.merge_policy(local, external)
            if merged.location is None and not (job.address or "").strip():
                # Location shown is the client address; nothing to clear on the job
                merged = replace(merged, location=local.location)
            if merged == local:
                unchanged += 1
                continue
            if merged.end_at <= merged.start_at:
                logger.warning(f"⚠️ Event {event.get('id')} ends before it starts, job {job.id} left as is")
                continue

            self._apply_event(job, local, merged)
            self.repo.mark_synced(self.db, user_id, job.id, event["id"])
            updated += 1

        logger.info(f"📥 Pulled Google Calendar for user {user_id}: {updated} updated, {unchanged} unchanged")
        return {"updated": updated, "unchanged": unchanged}

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    def _import_event(self, user_id: int, client_id: int, event_id: str, fields: EventFields) -> Job:
        def create(comp):
            job = self.jobs.create_job(
                self.db,
                user_id,
                client_id=client_id,
                title=fields.title or IMPORTED_EVENT_TITLE,
                description=fields.description,
                address=fields.location,
                start_at=fields.start_at,
                end_at=fields.end_at,
                service_type=IMPORTED_SERVICE_TYPE,
                status="pending",
            )
            comp.delete_on_failure(Job, job.id)
            self.repo.mark_synced(self.db, user_id, job.id, event_id)
            return job

        return with_compensation(self.db, create)

    async def _import(self, calendar: GoogleCalendarClient, user_id: int) -> dict:
        now = utcnow()
        events = await calendar.list_events(
            now - relativedelta(months=IMPORT_MONTHS_BACK),
            now + relativedelta(months=IMPORT_MONTHS_AHEAD),
            max_results=IMPORT_MAX_RESULTS,
        )
        mapped = self.repo.mapped_event_ids(self.db, user_id)

        imported = skipped = 0
        default_client = None
        for event in events:
            event_id = event.get("id")
            fields = fields_from_event(event)
            # No id, all-day or missing times
            if not event_id or fields is None:
                skipped += 1
                continue
            if event_id in mapped:
                skipped += 1
                continue
            if event.get("status") == "cancelled":
                skipped += 1
                continue
            marker = job_id_from_event(event)
            if marker is not None and self.jobs.get_job(self.db, marker, user_id):
                skipped += 1
                continue
            if fields.end_at <= fields.start_at:
                skipped += 1
                continue

            if default_client is None:
                default_client = self.clients.get_or_create_default_client(user_id)
            try:
                job = self._import_event(user_id, default_client.id, event_id, fields)
            except Exception as e:
                self.db.rollback()
                logger.error(f"❌ Could not import event {event_id}: {_error_message(e)}")
                skipped += 1
                continue
            mapped.add(event_id)
            imported += 1
            logger.info(f"📥 Imported event {event_id} as job {job.id}")

        logger.info(f"✅ Import for user {user_id}: {imported} imported, {skipped} skipped")
        return {"imported": imported, "skipped": skipped}

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    async def delete_event_for_job(self, job_id: int, user_id: int) -> Optional[str]:
        """Remove the job's event and its sync record.

        Returns a warning when the event could not be deleted at Google.
        Without a connection only the local record is removed.
        """
        record = self.repo.get_by_job(self.db, job_id, user_id)
        if record is None:
            return None
        if not record.google_event_id:
            self.repo.delete_by_job(self.db, job_id, user_id)
            return None

        event_id = record.google_event_id
        try:
            calendar = await self.connect(user_id)
        except CalendarNotConnected:
            logger.info(f"ℹ️ Google Calendar not connected, dropping sync record of job {job_id}")
            self.repo.delete_by_job(self.db, job_id, user_id)
            return None

        warning = None
        try:
            await calendar.delete_event(event_id)
            logger.info(f"✅ Deleted event {event_id} of job {job_id}")
        except CalendarEventNotFound:
            logger.info(f"ℹ️ Event {event_id} of job {job_id} was already gone")
        except ExternalServiceError as e:
            logger.error(f"❌ Failed to delete event {event_id} of job {job_id}: {e.message}")
            warning = f"The calendar event could not be deleted: {e.message}"

        self.repo.delete_by_job(self.db, job_id, user_id)
        return warning

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    @action("Error syncing job with Google Calendar")
    async def push_job(self, job_id: int, user: User):
        job = self.jobs.get_job(self.db, job_id, user.id)
        if not job:
            raise NotFound("Job not found")
        calendar = await self.connect(user.id)
        return await self.push(calendar, job)

    @action("Error syncing jobs with Google Calendar")
    async def push_all(self, user: User):
        calendar = await self.connect(user.id)
        return await self._push_all(calendar, user.id)

    @action("Error pulling changes from Google Calendar")
    async def pull_from_external(self, user: User):
        calendar = await self.connect(user.id)
        return await self._pull(calendar, user.id)

    @action("Error importing events from Google Calendar")
    async def import_from_external(self, user: User):
        calendar = await self.connect(user.id)
        return await self._import(calendar, user.id)

    @action("Error synchronizing with Google Calendar")
    async def two_way_sync(self, user: User):
        """Import, then pull, then push every job; a failing phase does not stop the next"""
        calendar = await self.connect(user.id)
        summary = {
            "imported": 0,
            "skipped": 0,
            "updated": 0,
            "unchanged": 0,
            "pushed": 0,
            "push_failed": 0,
            "errors": [],
        }

        logger.info(f"🔄 Two-way sync started for user {user.id}")
        try:
            summary.update(await self._import(calendar, user.id))
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Import phase failed for user {user.id}: {_error_message(e)}")
            summary["errors"].append(f"import: {_error_message(e)}")

        try:
            summary.update(await self._pull(calendar, user.id))
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Pull phase failed for user {user.id}: {_error_message(e)}")
            summary["errors"].append(f"pull: {_error_message(e)}")

        try:
            pushed = await self._push_all(calendar, user.id)
            summary["pushed"] = pushed["synced"]
            summary["push_failed"] = pushed["failed"]
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Push phase failed for user {user.id}: {_error_message(e)}")
            summary["errors"].append(f"push: {_error_message(e)}")

        logger.info(f"✅ Two-way sync finished for user {user.id}: {summary}")
        return summary

    @action("Error loading sync status")
    def get_sync_status(self, job_id: int, user: User):
        if not self.jobs.get_job(self.db, job_id, user.id):
            raise NotFound("Job not found")
        return self.repo.get_by_job(self.db, job_id, user.id)
