"""
Temporal classification of appointments.

Nothing here is cached: every function takes ``now`` explicitly so a view
re-rendered later reclassifies against the new clock. An aware ``now`` is
converted to local wall-clock time, the convention appointment dates use.
"""

from datetime import date, datetime
from enum import Enum
from typing import Iterable, List

from clinic.core.validation import to_local_naive
from clinic.domain.entities import Appointment, AppointmentStatus


class AppointmentState(str, Enum):
    SCHEDULED_FUTURE = "scheduled_future"
    DUE_TODAY = "due_today"
    OVERDUE = "overdue"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


def classify(appointment: Appointment, now: datetime) -> AppointmentState:
    now = to_local_naive(now)
    if appointment.status == AppointmentStatus.COMPLETED.value:
        return AppointmentState.COMPLETED
    if appointment.status == AppointmentStatus.CANCELLED.value:
        return AppointmentState.CANCELLED
    if appointment.date < now:
        return AppointmentState.OVERDUE
    if appointment.date.date() == now.date():
        return AppointmentState.DUE_TODAY
    return AppointmentState.SCHEDULED_FUTURE


def is_overdue(appointment: Appointment, now: datetime) -> bool:
    return classify(appointment, now) is AppointmentState.OVERDUE


def overdue_appointments(
    appointments: Iterable[Appointment], now: datetime
) -> List[Appointment]:
    """Scheduled appointments already past, oldest first."""
    now = to_local_naive(now)
    return sorted(
        (a for a in appointments if is_overdue(a, now)), key=lambda a: a.date
    )


def appointments_on(appointments: Iterable[Appointment], day: date) -> List[Appointment]:
    """All appointments falling on ``day`` whatever their status, by time."""
    return sorted((a for a in appointments if a.date.date() == day), key=lambda a: a.date)


def upcoming_appointments(
    appointments: Iterable[Appointment], now: datetime, limit: int = None
) -> List[Appointment]:
    """Scheduled appointments at or after ``now``, soonest first."""
    now = to_local_naive(now)
    upcoming = sorted(
        (a for a in appointments if a.is_scheduled and a.date >= now),
        key=lambda a: a.date,
    )
    return upcoming if limit is None else upcoming[:limit]
