"""Calendar sync schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class SyncRecordResponse(BaseModel):
    jobId: int
    googleEventId: Optional[str]
    syncStatus: str
    lastSyncedAt: Optional[datetime]
    errorMessage: Optional[str]


class PullResult(BaseModel):
    updated: int
    unchanged: int


class ImportResult(BaseModel):
    imported: int
    skipped: int


class PushAllResult(BaseModel):
    synced: int
    failed: int


class TwoWaySyncResult(BaseModel):
    imported: int
    skipped: int
    updated: int
    unchanged: int
    pushed: int
    push_failed: int
    errors: list[str] = []


def sync_record_response(record) -> SyncRecordResponse:
    return SyncRecordResponse(
        jobId=record.job_id,
        googleEventId=record.google_event_id,
        syncStatus=record.sync_status,
        lastSyncedAt=record.last_synced_at,
        errorMessage=record.error_message,
    )
