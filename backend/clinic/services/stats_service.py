"""
Statistics for the dashboard and the reports page.

Every reducer is a pure function over a ReportScope: an access-filtered and
optionally date-bounded slice of the clinical collections. The scope is built
from a snapshot by ``build_scope``, which applies the access filter before
anything is counted. An empty scope yields zeros and empty lists.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional, Tuple, Union

from clinic.core import config
from clinic.core.validation import to_local_naive
from clinic.domain.entities import (
    Actor,
    Appointment,
    Configuration,
    FollowUp,
    Gender,
    Injection,
    Objective,
    Patient,
    total_dosage,
)
from clinic.services.access_filter import visible
from clinic.services.appointment_classifier import overdue_appointments
from clinic.services.snapshot_service import ClinicSnapshot

Number = Union[int, float]


def round_half_up(value: Union[Decimal, Number], places: int = 0) -> Number:
    """Round half away from zero; returns an int when ``places`` is 0."""
    quantum = Decimal(1).scaleb(-places)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if places == 0 else float(rounded)


def _ratio(numerator: Number, denominator: Number, scale: int = 1, places: int = 0) -> Number:
    if not denominator:
        return 0 if places == 0 else 0.0
    value = Decimal(str(numerator)) * scale / Decimal(str(denominator))
    return round_half_up(value, places)


# =====================================================
# Scope
# =====================================================


@dataclass(frozen=True)
class ReportScope:
    patients: Tuple[Patient, ...] = ()
    injections: Tuple[Injection, ...] = ()
    follow_ups: Tuple[FollowUp, ...] = ()
    appointments: Tuple[Appointment, ...] = ()
    start: Optional[date] = None
    end: Optional[date] = None


def _in_range(moment: datetime, start: Optional[date], end: Optional[date]) -> bool:
    day = moment.date()
    if start is not None and day < start:
        return False
    if end is not None and day > end:
        return False
    return True


def build_scope(
    snapshot: ClinicSnapshot,
    actor: Actor,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> ReportScope:
    """Access-filter the snapshot, then bound dated records to [start, end].

    Patients are not date-bounded.
    """
    return ReportScope(
        patients=tuple(visible(snapshot.patients, actor)),
        injections=tuple(
            i for i in visible(snapshot.injections, actor) if _in_range(i.date, start, end)
        ),
        follow_ups=tuple(
            f for f in visible(snapshot.follow_ups, actor) if _in_range(f.date, start, end)
        ),
        appointments=tuple(
            a
            for a in visible(snapshot.appointments, actor)
            if _in_range(a.date, start, end)
        ),
        start=start,
        end=end,
    )


# =====================================================
# Result rows
# =====================================================


@dataclass(frozen=True)
class OverviewStats:
    total_patients: int = 0
    injected_patients: int = 0
    waiting_patients: int = 0
    overdue_appointments: int = 0
    success_rate: int = 0
    average_age: int = 0
    gender_distribution: Dict[str, int] = field(default_factory=dict)
    total_injections: int = 0
    total_follow_ups: int = 0
    total_appointments: int = 0
    average_injection_interval: int = 0


@dataclass(frozen=True)
class ProductUsage:
    product: str
    injections: int
    total_dosage: Number
    average_dosage: int


@dataclass(frozen=True)
class DiagnosisBreakdown:
    diagnosis: str
    patients: int
    injections: int
    average_injections_per_patient: float


@dataclass(frozen=True)
class MuscleUsage:
    muscle_id: str
    muscle: str
    region: str
    injections: int
    total_dosage: Number
    average_dosage: int


@dataclass(frozen=True)
class AdverseEventFrequency:
    event: str
    occurrences: int
    percentage: int


@dataclass(frozen=True)
class Report:
    overview: OverviewStats
    products: List[ProductUsage]
    diagnoses: List[DiagnosisBreakdown]
    muscles: List[MuscleUsage]
    events: List[AdverseEventFrequency]
    configuration_version: int


# =====================================================
# Reducers
# =====================================================


def overview(scope: ReportScope, now: Optional[datetime] = None) -> OverviewStats:
    now = to_local_naive(now or config.local_now())
    today = now.date()

    injected_ids = {i.patient_id for i in scope.injections}
    waiting = sum(1 for p in scope.patients if p.id not in injected_ids)
    achieved = sum(
        1 for f in scope.follow_ups if f.objective_achieved == Objective.ACHIEVED.value
    )

    genders = Counter(p.gender for p in scope.patients)
    distribution = {g.value: genders.get(g.value, 0) for g in Gender}

    total_age = sum(p.age_on(today) for p in scope.patients)

    interval = 0
    if len(scope.injections) > 1 and scope.start and scope.end:
        interval = _ratio((scope.end - scope.start).days, len(scope.injections))

    return OverviewStats(
        total_patients=len(scope.patients),
        injected_patients=len(injected_ids),
        waiting_patients=waiting,
        overdue_appointments=len(overdue_appointments(scope.appointments, now)),
        success_rate=_ratio(achieved, len(scope.follow_ups), scale=100),
        average_age=_ratio(total_age, len(scope.patients)),
        gender_distribution=distribution,
        total_injections=len(scope.injections),
        total_follow_ups=len(scope.follow_ups),
        total_appointments=len(scope.appointments),
        average_injection_interval=interval,
    )


def product_usage(scope: ReportScope, configuration: Configuration) -> List[ProductUsage]:
    rows = []
    for product in configuration.products:
        injections = [i for i in scope.injections if i.product == product]
        if not injections:
            continue
        dosage = sum((i.total_dosage for i in injections), 0)
        rows.append(
            ProductUsage(
                product=product,
                injections=len(injections),
                total_dosage=dosage,
                average_dosage=_ratio(dosage, len(injections)),
            )
        )
    return rows


def diagnosis_breakdown(
    scope: ReportScope, configuration: Configuration
) -> List[DiagnosisBreakdown]:
    diagnosis_by_patient = {p.id: p.diagnosis for p in scope.patients}
    rows = []
    for diagnosis in configuration.diagnoses:
        patients = sum(1 for p in scope.patients if p.diagnosis == diagnosis)
        if not patients:
            continue
        injections = sum(
            1 for i in scope.injections if diagnosis_by_patient.get(i.patient_id) == diagnosis
        )
        rows.append(
            DiagnosisBreakdown(
                diagnosis=diagnosis,
                patients=patients,
                injections=injections,
                average_injections_per_patient=_ratio(injections, patients, places=1),
            )
        )
    return rows


def muscle_usage(scope: ReportScope, configuration: Configuration) -> List[MuscleUsage]:
    rows = []
    for muscle in configuration.muscles:
        referencing = [i for i in scope.injections if i.references_muscle(muscle.id)]
        if not referencing:
            continue
        dosage = total_dosage(
            m for i in scope.injections for m in i.muscles if m.muscle_id == muscle.id
        )
        rows.append(
            MuscleUsage(
                muscle_id=muscle.id,
                muscle=muscle.name,
                region=muscle.region,
                injections=len(referencing),
                total_dosage=dosage,
                average_dosage=_ratio(dosage, len(referencing)),
            )
        )
    return sorted(rows, key=lambda row: -row.injections)


def adverse_events(
    scope: ReportScope, configuration: Configuration
) -> List[AdverseEventFrequency]:
    total = len(scope.injections)
    rows = []
    for event in configuration.post_injection_events:
        occurrences = sum(1 for i in scope.injections if event in i.post_injection_events)
        if not occurrences:
            continue
        rows.append(
            AdverseEventFrequency(
                event=event,
                occurrences=occurrences,
                percentage=_ratio(occurrences, total, scale=100),
            )
        )
    return sorted(rows, key=lambda row: -row.occurrences)


def build_report(
    scope: ReportScope, configuration: Configuration, now: Optional[datetime] = None
) -> Report:
    return Report(
        overview=overview(scope, now),
        products=product_usage(scope, configuration),
        diagnoses=diagnosis_breakdown(scope, configuration),
        muscles=muscle_usage(scope, configuration),
        events=adverse_events(scope, configuration),
        configuration_version=configuration.version,
    )
