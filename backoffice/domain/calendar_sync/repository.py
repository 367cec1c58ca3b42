"""Calendar sync repository - job ↔ event sync records"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models_google_calendar import CalendarSync
from ...shared.dates import utcnow


class CalendarSyncRepository:
    """Repository for job ↔ event mappings"""

    @staticmethod
    def get_by_job(db: Session, job_id: int, user_id: int) -> Optional[CalendarSync]:
        return (
            db.query(CalendarSync)
            .filter(CalendarSync.job_id == job_id, CalendarSync.user_id == user_id)
            .first()
        )

    @staticmethod
    def mapped_event_ids(db: Session, user_id: int) -> set[str]:
        rows = (
            db.query(CalendarSync.google_event_id)
            .filter(CalendarSync.user_id == user_id, CalendarSync.google_event_id.isnot(None))
            .all()
        )
        return {row[0] for row in rows}

    @staticmethod
    def mark_synced(db: Session, user_id: int, job_id: int, event_id: str) -> CalendarSync:
        record = CalendarSyncRepository.get_by_job(db, job_id, user_id)
        if record is None:
            record = CalendarSync(user_id=user_id, job_id=job_id)
            db.add(record)
        record.google_event_id = event_id
        record.sync_status = "synced"
        record.last_synced_at = utcnow()
        record.error_message = None
        db.commit()
        db.refresh(record)
        return record

    @staticmethod
    def mark_error(db: Session, user_id: int, job_id: int, message: str) -> CalendarSync:
        """Record a failed push, creating the record if the job was never synced"""
        record = CalendarSyncRepository.get_by_job(db, job_id, user_id)
        if record is None:
            record = CalendarSync(user_id=user_id, job_id=job_id)
            db.add(record)
        record.sync_status = "error"
        record.error_message = message[:2000]
        db.commit()
        db.refresh(record)
        return record

    @staticmethod
    def delete_by_job(db: Session, job_id: int, user_id: int) -> None:
        db.query(CalendarSync).filter(CalendarSync.job_id == job_id, CalendarSync.user_id == user_id).delete(
            synchronize_session=False
        )
        db.commit()
