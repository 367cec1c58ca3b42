"""Job domain schemas"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from ...models import JOB_STATUSES, SERVICE_TYPES
from ...shared.dates import to_utc_naive
from ...shared.validators import validate_choice, validate_required_text

RECURRENCE_INTERVAL_DAYS = {
    "weekly": 7,
    "biweekly": 14,
    "monthly": 30,  # fixed offset, not calendar months
}

MAX_OCCURRENCES = 52


class JobCreate(BaseModel):
    clientId: int
    title: str
    description: Optional[str] = None
    serviceType: str = "general_cleaning"
    status: str = "pending"
    startAt: datetime
    endAt: datetime
    address: Optional[str] = None
    agreedPrice: Optional[Decimal] = None
    isRecurring: bool = False
    recurrencePattern: Optional[str] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        return validate_required_text(v, "Title")

    @field_validator("serviceType")
    @classmethod
    def validate_service_type(cls, v):
        return validate_choice(v, SERVICE_TYPES, "Service type")

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        return validate_choice(v, JOB_STATUSES, "Status")

    @field_validator("recurrencePattern")
    @classmethod
    def validate_pattern(cls, v):
        return validate_choice(v, tuple(RECURRENCE_INTERVAL_DAYS), "Recurrence pattern")

    @field_validator("startAt", "endAt")
    @classmethod
    def normalize_datetime(cls, v):
        return to_utc_naive(v)

    @field_validator("agreedPrice")
    @classmethod
    def validate_price(cls, v):
        if v is not None and v < 0:
            raise ValueError("Agreed price cannot be negative")
        return v

    @model_validator(mode="after")
    def validate_range(self):
        if self.endAt <= self.startAt:
            raise ValueError("End time must be after start time")
        return self


class JobUpdate(BaseModel):
    clientId: Optional[int] = None
    title: Optional[str] = None
    description: Optional[str] = None
    serviceType: Optional[str] = None
    status: Optional[str] = None
    startAt: Optional[datetime] = None
    endAt: Optional[datetime] = None
    address: Optional[str] = None
    agreedPrice: Optional[Decimal] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if v is not None:
            return validate_required_text(v, "Title")
        return v

    @field_validator("serviceType")
    @classmethod
    def validate_service_type(cls, v):
        return validate_choice(v, SERVICE_TYPES, "Service type")

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        return validate_choice(v, JOB_STATUSES, "Status")

    @field_validator("startAt", "endAt")
    @classmethod
    def normalize_datetime(cls, v):
        return to_utc_naive(v) if v is not None else v

    @field_validator("agreedPrice")
    @classmethod
    def validate_price(cls, v):
        if v is not None and v < 0:
            raise ValueError("Agreed price cannot be negative")
        return v


class RecurrenceRequest(BaseModel):
    occurrences: int
    pattern: str

    @field_validator("occurrences")
    @classmethod
    def validate_occurrences(cls, v):
        if v < 1 or v > MAX_OCCURRENCES:
            raise ValueError(f"Occurrences must be between 1 and {MAX_OCCURRENCES}")
        return v

    @field_validator("pattern")
    @classmethod
    def validate_pattern(cls, v):
        return validate_choice(v, tuple(RECURRENCE_INTERVAL_DAYS), "Pattern")


class JobResponse(BaseModel):
    id: int
    clientId: int
    clientName: Optional[str] = None
    title: str
    description: Optional[str]
    serviceType: str
    status: str
    startAt: datetime
    endAt: datetime
    address: Optional[str]
    agreedPrice: Optional[Decimal]
    isRecurring: bool
    recurrencePattern: Optional[str]
    parentJobId: Optional[int]
    invoiceId: Optional[int]


class JobMutationResponse(BaseModel):
    job: JobResponse
    warning: Optional[str] = None


class JobCompletionResponse(BaseModel):
    invoiceId: int
    invoiceNumber: str
    warning: Optional[str] = None


class OccurrenceResult(BaseModel):
    jobId: int
    startAt: datetime
    synced: bool
    error: Optional[str] = None


def job_response(job) -> JobResponse:
    return JobResponse(
        id=job.id,
        clientId=job.client_id,
        clientName=job.client.name if job.client else None,
        title=job.title,
        description=job.description,
        serviceType=job.service_type,
        status=job.status,
        startAt=job.start_at,
        endAt=job.end_at,
        address=job.address,
        agreedPrice=job.agreed_price,
        isRecurring=job.is_recurring,
        recurrencePattern=job.recurrence_pattern,
        parentJobId=job.parent_job_id,
        invoiceId=job.invoice_id,
    )
