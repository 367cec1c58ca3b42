"""Domain error taxonomy"""

from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    VALIDATION = "VALIDATION"
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    ALREADY_CONVERTED = "ALREADY_CONVERTED"
    REJECTED = "REJECTED"
    ALREADY_INVOICED = "ALREADY_INVOICED"
    CALENDAR_NOT_CONNECTED = "CALENDAR_NOT_CONNECTED"
    EXTERNAL_SERVICE = "EXTERNAL_SERVICE"
    INTERNAL = "INTERNAL"


# HTTP status returned by routers for each failure code
HTTP_STATUS_BY_CODE = {
    ErrorCode.VALIDATION: 400,
    ErrorCode.NOT_AUTHENTICATED: 401,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.ALREADY_CONVERTED: 409,
    ErrorCode.REJECTED: 409,
    ErrorCode.ALREADY_INVOICED: 409,
    ErrorCode.CALENDAR_NOT_CONNECTED: 409,
    ErrorCode.EXTERNAL_SERVICE: 502,
    ErrorCode.INTERNAL: 500,
}


class DomainError(Exception):
    """Base class for failures that are reported to the caller as-is"""

    code = ErrorCode.INTERNAL
    default_message = "Unexpected error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(DomainError):
    code = ErrorCode.VALIDATION
    default_message = "Invalid data"


class NotFound(DomainError):
    code = ErrorCode.NOT_FOUND
    default_message = "Not found"


class Forbidden(DomainError):
    code = ErrorCode.FORBIDDEN
    default_message = "Operation not allowed"


class AlreadyConverted(DomainError):
    code = ErrorCode.ALREADY_CONVERTED
    default_message = "Quote has already been converted to an invoice"


class QuoteRejected(DomainError):
    code = ErrorCode.REJECTED
    default_message = "A rejected quote cannot be converted"


class AlreadyInvoiced(DomainError):
    code = ErrorCode.ALREADY_INVOICED
    default_message = "Job already has an invoice"


class CalendarNotConnected(DomainError):
    code = ErrorCode.CALENDAR_NOT_CONNECTED
    default_message = "Google Calendar is not connected"


class ExternalServiceError(DomainError):
    code = ErrorCode.EXTERNAL_SERVICE
    default_message = "External service error"
