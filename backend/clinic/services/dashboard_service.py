"""
Read-side views: dashboard, calendar, patient timeline and patient search.

Each view restricts the snapshot to the actor before sorting or counting.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, List, Optional, Tuple

from clinic.core import config
from clinic.core.validation import to_local_naive
from clinic.core.exceptions import NotFoundError, ValidationError
from clinic.domain.entities import Actor, Appointment, Injection, Patient
from clinic.domain.interfaces import PATIENTS
from clinic.services.appointment_classifier import (
    AppointmentState,
    appointments_on,
    classify,
    overdue_appointments,
    upcoming_appointments,
)
from clinic.services.snapshot_service import ClinicSnapshot
from clinic.services.stats_service import OverviewStats, build_scope, overview


@dataclass(frozen=True)
class Dashboard:
    overview: OverviewStats
    recent_patients: List[Patient] = field(default_factory=list)
    upcoming_appointments: List[Appointment] = field(default_factory=list)
    recent_injections: List[Injection] = field(default_factory=list)
    today_appointments: List[Appointment] = field(default_factory=list)
    overdue_appointments: List[Appointment] = field(default_factory=list)


@dataclass(frozen=True)
class CalendarEntry:
    appointment: Appointment
    state: AppointmentState
    patient_name: str = ""


@dataclass(frozen=True)
class TimelineEvent:
    kind: str
    date: datetime
    entity: Any


def _patient_names(snapshot: ClinicSnapshot) -> dict:
    return {p.id: p.full_name for p in snapshot.patients}


def dashboard(
    snapshot: ClinicSnapshot,
    actor: Actor,
    now: Optional[datetime] = None,
    limit: Optional[int] = None,
) -> Dashboard:
    now = to_local_naive(now or config.local_now())
    limit = limit or config.DASHBOARD_LIST_LIMIT
    own = snapshot.restricted_to(actor)

    epoch = datetime.min
    recent_patients = sorted(
        own.patients,
        key=lambda p: p.created_at or epoch,
        reverse=True,
    )[:limit]
    recent_injections = sorted(own.injections, key=lambda i: i.date, reverse=True)[:limit]

    return Dashboard(
        overview=overview(build_scope(own, actor), now),
        recent_patients=recent_patients,
        upcoming_appointments=upcoming_appointments(own.appointments, now, limit),
        recent_injections=recent_injections,
        today_appointments=appointments_on(own.appointments, now.date()),
        overdue_appointments=overdue_appointments(own.appointments, now),
    )


def calendar(
    snapshot: ClinicSnapshot,
    actor: Actor,
    start: date,
    end: date,
    now: Optional[datetime] = None,
) -> List[CalendarEntry]:
    """Appointments between ``start`` and ``end`` (inclusive days), classified."""
    if end < start:
        raise ValidationError("end must not be before start", "end")
    now = to_local_naive(now or config.local_now())
    own = snapshot.restricted_to(actor)
    names = _patient_names(own)
    in_range = sorted(
        (a for a in own.appointments if start <= a.date.date() <= end),
        key=lambda a: a.date,
    )
    return [
        CalendarEntry(
            appointment=a, state=classify(a, now), patient_name=names.get(a.patient_id, "")
        )
        for a in in_range
    ]


def patient_timeline(
    snapshot: ClinicSnapshot, actor: Actor, patient_id: str
) -> Tuple[Patient, List[TimelineEvent]]:
    """The patient's injections, follow-ups and appointments, newest first."""
    own = snapshot.restricted_to(actor)
    patient = own.patient(patient_id)
    if patient is None:
        raise NotFoundError(PATIENTS, patient_id)

    events = [TimelineEvent("injection", i.date, i) for i in own.injections_for(patient_id)]
    events += [
        TimelineEvent("follow_up", f.date, f)
        for f in own.follow_ups
        if f.patient_id == patient_id
    ]
    events += [
        TimelineEvent("appointment", a.date, a)
        for a in own.appointments
        if a.patient_id == patient_id
    ]
    return patient, sorted(events, key=lambda e: e.date, reverse=True)


def search_patients(
    snapshot: ClinicSnapshot,
    actor: Actor,
    term: str = "",
    diagnosis: Optional[str] = None,
) -> List[Patient]:
    """Case-insensitive name search with an optional diagnosis filter."""
    needle = (term or "").strip().lower()
    matches = [
        p
        for p in snapshot.restricted_to(actor).patients
        if (not needle or needle in p.full_name.lower())
        and (not diagnosis or p.diagnosis == diagnosis)
    ]
    return sorted(matches, key=lambda p: (p.last_name.lower(), p.first_name.lower()))
