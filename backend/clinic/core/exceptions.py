"""
Typed failures raised across the clinic core boundary.

Every error the core surfaces derives from ClinicError so callers (the HTTP
adapter, scripts, tests) can handle the whole family in one place while still
branching on the precise type.
"""

from typing import Optional


class ClinicError(Exception):
    """Base class for all clinic core errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ClinicError):
    """Malformed or incomplete domain input. Raised before any gateway call."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def __str__(self) -> str:
        return f"{self.field}: {self.message}" if self.field else self.message


class InvalidDateError(ClinicError):
    """The cascade engine could not parse or combine a date and time."""

    def __init__(self, message: str, value: Optional[str] = None):
        super().__init__(message)
        self.value = value


class NotFoundError(ClinicError):
    """A record does not exist (or is not visible to the acting user)."""

    def __init__(self, collection: str, record_id: str):
        super().__init__(f"{collection}/{record_id} not found")
        self.collection = collection
        self.record_id = record_id


class PersistenceError(ClinicError):
    """The persistence backend failed to apply an operation."""

    pass


class AuthError(ClinicError):
    """Authentication failed or the actor lacks the required role."""

    pass
