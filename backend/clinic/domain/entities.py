"""
Domain entities - Pure business logic, no framework dependencies.

Each entity validates its own construction invariants in ``__post_init__``
and raises ValidationError. Rules that need the controlled vocabularies
(Configuration) are checked by the services, which receive the configuration
value explicitly.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from clinic.core.exceptions import ValidationError
from clinic.core.validation import (
    Number,
    clean_labels,
    is_blank,
    parse_date,
    parse_datetime,
    parse_dosage,
    to_local_naive,
    require_choice,
    require_text,
)


class Role(str, Enum):
    DOCTOR = "doctor"
    ADMIN = "admin"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class Side(str, Enum):
    LEFT = "left"
    RIGHT = "right"


class MuscleSide(str, Enum):
    LEFT = "left"
    RIGHT = "right"
    BOTH = "both"


class Objective(str, Enum):
    ACHIEVED = "achieved"
    PARTIAL = "partial"
    NOT_ACHIEVED = "not_achieved"


class AppointmentType(str, Enum):
    INJECTION = "injection"
    FOLLOWUP = "followup"


class AppointmentLocation(str, Enum):
    SERVICE = "service"
    OPERATING_ROOM = "operating_room"


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


def _values(enum_cls) -> List[str]:
    return [member.value for member in enum_cls]


def total_dosage(muscles: Iterable["InjectedMuscle"]) -> Number:
    """Sum of the dosages of the given muscle entries (0 when empty)."""
    return sum((muscle.dosage for muscle in muscles), 0)


@dataclass(frozen=True)
class Actor:
    """The authenticated user driving an operation."""

    id: str
    role: str = Role.DOCTOR.value
    name: str = ""
    email: str = ""

    def __post_init__(self):
        if is_blank(self.id):
            raise ValidationError("is required", "actor.id")
        require_choice(self.role, _values(Role), "actor.role")

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value


@dataclass
class User:
    """Identity record stored in the ``users`` collection."""

    id: Optional[str] = None
    email: str = ""
    name: str = ""
    role: str = Role.DOCTOR.value
    password_hash: Optional[str] = None
    is_active: bool = True

    def __post_init__(self):
        self.name = require_text(self.name, "name")
        self.email = require_text(self.email, "email").lower()
        if "@" not in self.email:
            raise ValidationError("invalid email format", "email")
        self.role = require_choice(self.role, _values(Role), "role")

    def to_actor(self) -> Actor:
        if not self.id:
            raise ValidationError("user has no identifier yet", "id")
        return Actor(id=self.id, role=self.role, name=self.name, email=self.email)


@dataclass
class Patient:
    """A patient followed by one doctor."""

    first_name: str = ""
    last_name: str = ""
    date_of_birth: Optional[date] = None
    gender: str = ""
    diagnosis: str = ""
    doctor_id: str = ""
    problem: str = ""
    injection_objective: str = ""
    referring_doctor: str = ""
    sedation_required: bool = False
    cpa_managed: bool = False
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        self.first_name = require_text(self.first_name, "first_name")
        self.last_name = require_text(self.last_name, "last_name")
        if self.date_of_birth is None or self.date_of_birth == "":
            raise ValidationError("is required", "date_of_birth")
        self.date_of_birth = parse_date(self.date_of_birth, "date_of_birth")
        self.gender = require_choice(self.gender, _values(Gender), "gender")
        self.diagnosis = require_text(self.diagnosis, "diagnosis")
        self.doctor_id = require_text(self.doctor_id, "doctor_id")
        self.sedation_required = bool(self.sedation_required)
        self.cpa_managed = bool(self.cpa_managed)
        if self.created_at is not None:
            self.created_at = to_local_naive(self.created_at)
        if self.updated_at is not None:
            self.updated_at = to_local_naive(self.updated_at)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def cpa_applicable(self) -> bool:
        """CPA coordination only counts when sedation is required."""
        return self.sedation_required and self.cpa_managed

    def age_on(self, day: date) -> int:
        """Age in whole years on ``day``."""
        born = self.date_of_birth
        years = day.year - born.year
        if (day.month, day.day) < (born.month, born.day):
            years -= 1
        return max(years, 0)


@dataclass(frozen=True)
class InjectedMuscle:
    muscle_id: str
    dosage: Number
    side: str

    def __post_init__(self):
        object.__setattr__(self, "muscle_id", require_text(self.muscle_id, "muscle_id"))
        object.__setattr__(self, "dosage", parse_dosage(self.dosage))
        object.__setattr__(self, "side", require_choice(self.side, _values(Side), "side"))


@dataclass
class Injection:
    """One injection session; saved atomically with all its muscles."""

    patient_id: str = ""
    doctor_id: str = ""
    date: Optional[datetime] = None
    product: str = ""
    muscles: List[InjectedMuscle] = field(default_factory=list)
    guidance_types: List[str] = field(default_factory=list)
    post_injection_events: List[str] = field(default_factory=list)
    notes: str = ""
    follow_up_date: Optional[str] = None
    id: Optional[str] = None

    def __post_init__(self):
        self.patient_id = require_text(self.patient_id, "patient_id")
        self.doctor_id = require_text(self.doctor_id, "doctor_id")
        if self.date is None:
            raise ValidationError("is required", "date")
        self.date = parse_datetime(self.date, "date")
        self.product = require_text(self.product, "product")

        if not self.muscles:
            raise ValidationError("at least one muscle is required", "muscles")
        self.muscles = [
            m if isinstance(m, InjectedMuscle) else InjectedMuscle(**m)
            for m in self.muscles
        ]

        self.guidance_types = clean_labels(self.guidance_types, "guidance_types")
        if not self.guidance_types:
            raise ValidationError("at least one guidance type is required", "guidance_types")
        self.post_injection_events = clean_labels(
            self.post_injection_events, "post_injection_events"
        )
        self.notes = self.notes or ""
        # Parsed lazily by the cascade engine; only blank values are normalized here
        if is_blank(self.follow_up_date):
            self.follow_up_date = None

    @property
    def total_dosage(self) -> Number:
        return total_dosage(self.muscles)

    def references_muscle(self, muscle_id: str) -> bool:
        return any(m.muscle_id == muscle_id for m in self.muscles)

    def dosage_for(self, muscle_id: str) -> Number:
        return total_dosage(m for m in self.muscles if m.muscle_id == muscle_id)


@dataclass
class FollowUp:
    """Post-injection check. Its source injection never changes."""

    patient_id: str = ""
    injection_id: str = ""
    doctor_id: str = ""
    date: Optional[datetime] = None
    objective_achieved: str = Objective.ACHIEVED.value
    comments: str = ""
    next_appointment: Optional[str] = None
    next_appointment_time: Optional[str] = None
    id: Optional[str] = None

    def __post_init__(self):
        self.patient_id = require_text(self.patient_id, "patient_id")
        self.injection_id = require_text(self.injection_id, "injection_id")
        self.doctor_id = require_text(self.doctor_id, "doctor_id")
        if self.date is None:
            raise ValidationError("is required", "date")
        self.date = parse_datetime(self.date, "date")
        self.objective_achieved = require_choice(
            self.objective_achieved, _values(Objective), "objective_achieved"
        )
        self.comments = self.comments or ""
        if is_blank(self.next_appointment):
            self.next_appointment = None
        if is_blank(self.next_appointment_time):
            self.next_appointment_time = None


@dataclass
class Appointment:
    patient_id: str = ""
    doctor_id: str = ""
    date: Optional[datetime] = None
    type: str = AppointmentType.INJECTION.value
    location: str = AppointmentLocation.SERVICE.value
    status: str = AppointmentStatus.SCHEDULED.value
    notes: str = ""
    id: Optional[str] = None

    def __post_init__(self):
        self.patient_id = require_text(self.patient_id, "patient_id")
        self.doctor_id = require_text(self.doctor_id, "doctor_id")
        if self.date is None:
            raise ValidationError("is required", "date")
        self.date = parse_datetime(self.date, "date")
        self.type = require_choice(self.type, _values(AppointmentType), "type")
        self.location = require_choice(
            self.location, _values(AppointmentLocation), "location"
        )
        self.status = require_choice(self.status, _values(AppointmentStatus), "status")
        if (
            self.location == AppointmentLocation.OPERATING_ROOM.value
            and self.type != AppointmentType.INJECTION.value
        ):
            raise ValidationError(
                "operating room is only available for injection appointments",
                "location",
            )
        self.notes = self.notes or ""

    @property
    def is_scheduled(self) -> bool:
        return self.status == AppointmentStatus.SCHEDULED.value


@dataclass(frozen=True)
class Muscle:
    """Catalog entry for an injectable muscle."""

    id: str
    name: str
    region: str
    side: str = MuscleSide.BOTH.value

    def __post_init__(self):
        object.__setattr__(self, "id", require_text(self.id, "muscle.id"))
        object.__setattr__(self, "name", require_text(self.name, "muscle.name"))
        object.__setattr__(self, "region", require_text(self.region, "muscle.region"))
        object.__setattr__(
            self, "side", require_choice(self.side, _values(MuscleSide), "muscle.side")
        )


@dataclass(frozen=True)
class Configuration:
    """Versioned snapshot of the controlled vocabularies.

    Immutable: every change produces a new value with a higher version, so a
    computation holding a Configuration always sees one consistent catalog.
    """

    diagnoses: Tuple[str, ...] = ()
    muscles: Tuple[Muscle, ...] = ()
    regions: Tuple[str, ...] = ()
    products: Tuple[str, ...] = ()
    guidance_types: Tuple[str, ...] = ()
    post_injection_events: Tuple[str, ...] = ()
    version: int = 1

    VOCABULARIES = (
        "diagnoses",
        "regions",
        "products",
        "guidance_types",
        "post_injection_events",
    )

    def __post_init__(self):
        for name in self.VOCABULARIES:
            object.__setattr__(self, name, tuple(clean_labels(list(getattr(self, name)), name)))
        object.__setattr__(self, "muscles", tuple(self.muscles))

    def muscle(self, muscle_id: str) -> Optional[Muscle]:
        return next((m for m in self.muscles if m.id == muscle_id), None)

    @property
    def muscle_ids(self) -> List[str]:
        return [m.id for m in self.muscles]

    def evolve(self, **changes) -> "Configuration":
        """Return a copy with ``changes`` applied and the version bumped."""
        return replace(self, version=self.version + 1, **changes)
