"""
Cascade rules deriving appointments from clinical events.

Both rules are pure: they return a candidate Appointment (no id) or None and
never touch the gateway. Persisting the candidate, after the source entity
has been saved, is the caller's job.
"""

import logging
from datetime import date, datetime, time
from typing import Optional, Union

from clinic.core import config
from clinic.core.exceptions import InvalidDateError, ValidationError
from clinic.core.validation import is_blank, iso_date
from clinic.domain.entities import (
    Appointment,
    AppointmentLocation,
    AppointmentStatus,
    AppointmentType,
    FollowUp,
    Injection,
)

logger = logging.getLogger(__name__)


def _parse_day(value: Union[str, date]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return iso_date(str(value))
    except ValueError:
        raise InvalidDateError(f"Invalid date '{value}', expected YYYY-MM-DD", str(value))


def _parse_clock(value: Union[str, time]) -> time:
    if isinstance(value, time):
        return value
    raw = str(value).strip()
    try:
        parts = [int(part) for part in raw.split(":")]
        if len(parts) not in (2, 3):
            raise ValueError(raw)
        return time(*parts)
    except ValueError:
        raise InvalidDateError(f"Invalid time '{value}', expected HH:MM", raw)


def combine(day: Union[str, date], clock: Union[str, time]) -> datetime:
    """Combine a date-only value and a wall-clock time into local datetime."""
    return datetime.combine(_parse_day(day), _parse_clock(clock))


def derive_follow_up_appointment(
    injection: Injection, default_time: Optional[time] = None
) -> Optional[Appointment]:
    """Follow-up check-up appointment implied by an injection.

    Returns None when the injection carries no follow-up date.
    Raises InvalidDateError when the date cannot be parsed.
    """
    if is_blank(injection.follow_up_date):
        return None

    clock = default_time or config.FOLLOW_UP_DEFAULT_TIME
    when = combine(injection.follow_up_date, clock)
    try:
        candidate = Appointment(
            patient_id=injection.patient_id,
            doctor_id=injection.doctor_id,
            date=when,
            type=AppointmentType.FOLLOWUP.value,
            location=AppointmentLocation.SERVICE.value,
            status=AppointmentStatus.SCHEDULED.value,
            notes=config.FOLLOW_UP_APPOINTMENT_NOTES,
        )
    except ValidationError as e:
        raise InvalidDateError(str(e), injection.follow_up_date)

    logger.debug(
        "Derived follow-up appointment",
        extra={"context": {"injection_id": injection.id, "date": when.isoformat()}},
    )
    return candidate


def derive_next_appointment(
    follow_up: FollowUp, default_time: Optional[time] = None
) -> Optional[Appointment]:
    """Next injection appointment planned during a follow-up.

    Both the date and the time are required; a date alone derives nothing
    unless a default time is configured.
    """
    if is_blank(follow_up.next_appointment):
        return None

    clock = follow_up.next_appointment_time
    if is_blank(clock):
        clock = default_time or config.NEXT_APPOINTMENT_DEFAULT_TIME
    if clock is None:
        logger.info(
            "Next appointment date without time, nothing scheduled",
            extra={"context": {"follow_up_id": follow_up.id}},
        )
        return None

    when = combine(follow_up.next_appointment, clock)
    try:
        candidate = Appointment(
            patient_id=follow_up.patient_id,
            doctor_id=follow_up.doctor_id,
            date=when,
            type=AppointmentType.INJECTION.value,
            location=AppointmentLocation.SERVICE.value,
            status=AppointmentStatus.SCHEDULED.value,
            notes=config.NEXT_APPOINTMENT_NOTES,
        )
    except ValidationError as e:
        raise InvalidDateError(str(e), follow_up.next_appointment)

    logger.debug(
        "Derived next appointment",
        extra={"context": {"follow_up_id": follow_up.id, "date": when.isoformat()}},
    )
    return candidate
