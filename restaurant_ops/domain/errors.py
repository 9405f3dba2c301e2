"""
Weekly entry error taxonomy.

All errors are scoped to one orchestrator session; none is fatal.
"""

from enum import Enum


class ValidationCode(str, Enum):
    """Reason a submission was blocked"""
    MISSING_WEEK_DATA = "MISSING_WEEK_DATA"
    NO_BUDGETED_SALES = "NO_BUDGETED_SALES"


_VALIDATION_MESSAGES = {
    ValidationCode.MISSING_WEEK_DATA: "Please add sales data before saving.",
    ValidationCode.NO_BUDGETED_SALES: "Please enter budgeted sales for at least one day before saving.",
}


class WeeklyEntryError(Exception):
    """Base class for weekly entry errors; `message` is user-facing."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(WeeklyEntryError):
    """Blocks submission; recoverable by editing."""

    def __init__(self, code: ValidationCode, message: str | None = None):
        super().__init__(message or _VALIDATION_MESSAGES[code])
        self.code = code


class RemoteFetchError(WeeklyEntryError):
    """A read-side collaborator call failed; callers fall back locally."""


class SubmissionError(WeeklyEntryError):
    """The save call failed; message is the server's text verbatim."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
