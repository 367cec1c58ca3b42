"""Translation between jobs and Google Calendar events"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ...config import CALENDAR_TIME_ZONE
from ...models import Client, Job
from ...shared.dates import format_rfc3339, parse_rfc3339

# Private extended property carrying the job id; must stay stable across push, pull and import
JOB_MARKER_KEY = "appJobId"

COLOR_BY_SERVICE_TYPE = {
    "general_cleaning": "9",
    "deep_cleaning": "11",
    "office_cleaning": "10",
    "window_cleaning": "5",
    "other": "8",
}


@dataclass(frozen=True)
class EventFields:
    """The fields compared and merged between a job and its event"""

    title: str
    description: Optional[str]
    location: Optional[str]
    start_at: datetime
    end_at: datetime


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def job_location(job: Job, client: Optional[Client]) -> Optional[str]:
    return _clean(job.address) or (_clean(client.address) if client else None)


def fields_from_job(job: Job, client: Optional[Client] = None) -> EventFields:
    client = client or job.client
    return EventFields(
        title=job.title.strip(),
        description=_clean(job.description),
        location=job_location(job, client),
        # Google drops sub-second precision
        start_at=job.start_at.replace(microsecond=0),
        end_at=job.end_at.replace(microsecond=0),
    )


def fields_from_event(event: dict[str, Any]) -> Optional[EventFields]:
    """None for all-day events or events without both timestamps"""
    start = parse_rfc3339((event.get("start") or {}).get("dateTime"))
    end = parse_rfc3339((event.get("end") or {}).get("dateTime"))
    if start is None or end is None:
        return None
    return EventFields(
        title=(event.get("summary") or "").strip(),
        description=_clean(event.get("description")),
        location=_clean(event.get("location")),
        start_at=start,
        end_at=end,
    )


def job_to_event(job: Job, client: Optional[Client] = None) -> dict[str, Any]:
    """Google Calendar event body for a job"""
    client = client or job.client
    fields = fields_from_job(job, client)
    body: dict[str, Any] = {
        "summary": fields.title,
        "description": fields.description or "",
        "start": {"dateTime": format_rfc3339(fields.start_at), "timeZone": CALENDAR_TIME_ZONE},
        "end": {"dateTime": format_rfc3339(fields.end_at), "timeZone": CALENDAR_TIME_ZONE},
        "colorId": COLOR_BY_SERVICE_TYPE.get(job.service_type, COLOR_BY_SERVICE_TYPE["other"]),
        "extendedProperties": {
            "private": {
                JOB_MARKER_KEY: str(job.id),
                "clientId": str(job.client_id),
                "clientName": client.name if client else "",
                "serviceType": job.service_type,
                "status": job.status,
            }
        },
    }
    if fields.location:
        body["location"] = fields.location
    return body


def job_id_from_event(event: dict[str, Any]) -> Optional[int]:
    """Job id stamped in the event's private properties, if any"""
    private = (event.get("extendedProperties") or {}).get("private") or {}
    marker = private.get(JOB_MARKER_KEY)
    if not marker:
        return None
    try:
        return int(marker)
    except (TypeError, ValueError):
        return None

