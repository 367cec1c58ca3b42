"""Job repository - Database operations for jobs"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Job


class JobRepository:
    """Repository for job database operations"""

    @staticmethod
    def get_jobs(
        db: Session,
        user_id: int,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        status: Optional[str] = None,
        client_id: Optional[int] = None,
    ) -> list[Job]:
        """Jobs overlapping the given range, in start order"""
        query = db.query(Job).filter(Job.user_id == user_id)
        if date_from:
            query = query.filter(Job.end_at >= date_from)
        if date_to:
            query = query.filter(Job.start_at <= date_to)
        if status:
            query = query.filter(Job.status == status)
        if client_id:
            query = query.filter(Job.client_id == client_id)
        return query.order_by(Job.start_at.asc(), Job.id.asc()).all()

    @staticmethod
    def get_job(db: Session, job_id: int, user_id: int) -> Optional[Job]:
        return db.query(Job).filter(Job.id == job_id, Job.user_id == user_id).first()

    @staticmethod
    def get_pushable_jobs(db: Session, user_id: int) -> list[Job]:
        """Every job that is not cancelled, in start order"""
        return (
            db.query(Job)
            .filter(Job.user_id == user_id, Job.status != "cancelled")
            .order_by(Job.start_at.asc(), Job.id.asc())
            .all()
        )

    @staticmethod
    def create_job(db: Session, user_id: int, **job_data) -> Job:
        job = Job(user_id=user_id, **job_data)
        db.add(job)
        db.commit()
        db.refresh(job)
        return job

    @staticmethod
    def update_job(db: Session, job: Job, **updates) -> Job:
        """Set every given field, None included"""
        for key, value in updates.items():
            setattr(job, key, value)
        db.commit()
        db.refresh(job)
        return job

    @staticmethod
    def delete_job(db: Session, job: Job) -> None:
        db.delete(job)
        db.commit()
