"""
Data Transfer Objects (DTOs) for the clinic services and the JSON adapter.

Request DTOs are built from camelCase JSON with ``from_json`` and checked with
``validate()``, which raises ValidationError. Update requests keep ``None`` for
fields that were not sent, so ``changes()`` only returns what the caller wants
to replace. Response helpers turn entities and report rows back into camelCase
JSON.
"""

from dataclasses import asdict, dataclass, field, fields, is_dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional

from clinic.core.exceptions import ValidationError
from clinic.core.validation import is_blank
from clinic.domain.entities import Injection, Patient
from clinic.repositories.mappers import to_record


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _pick(data: Mapping[str, Any], cls) -> Dict[str, Any]:
    """Read the dataclass fields of ``cls`` from camelCase (or snake_case) keys."""
    values = {}
    for f in fields(cls):
        for key in (_camel(f.name), f.name):
            if key in data:
                values[f.name] = data[key]
                break
    return values


def _muscles_from_json(muscles: Any) -> Any:
    if not isinstance(muscles, list):
        return muscles
    converted = []
    for entry in muscles:
        if not isinstance(entry, Mapping):
            raise ValidationError("each muscle must be an object", "muscles")
        converted.append(
            {
                "muscle_id": entry.get("muscleId", entry.get("muscle_id")),
                "dosage": entry.get("dosage"),
                "side": entry.get("side"),
            }
        )
    return converted


def _require(value: Any, field_name: str) -> None:
    if is_blank(value):
        raise ValidationError("is required", field_name)


class _UpdateRequest:
    def changes(self) -> Dict[str, Any]:
        """Fields explicitly provided by the caller."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        return {name: value for name, value in values.items() if value is not None}


# =====================================================
# Auth / users
# =====================================================


@dataclass
class LoginRequest:
    email: str = ""
    password: str = ""

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "LoginRequest":
        return cls(**_pick(data, cls))

    def validate(self) -> None:
        _require(self.email, "email")
        _require(self.password, "password")


@dataclass
class UserCreateRequest:
    """DTO for user creation requests."""

    email: str = ""
    name: str = ""
    password: str = ""
    confirm_password: str = ""
    role: str = "doctor"

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "UserCreateRequest":
        return cls(**_pick(data, cls))

    def validate(self) -> None:
        _require(self.email, "email")
        _require(self.name, "name")
        if self.password != self.confirm_password:
            raise ValidationError("passwords do not match", "confirm_password")
        if len(self.password or "") < 6:
            raise ValidationError("must be at least 6 characters", "password")


# =====================================================
# Patients
# =====================================================


@dataclass
class PatientCreateRequest:
    """DTO for patient creation requests."""

    first_name: str = ""
    last_name: str = ""
    date_of_birth: Any = None
    gender: str = ""
    diagnosis: str = ""
    problem: str = ""
    injection_objective: str = ""
    referring_doctor: str = ""
    sedation_required: bool = False
    cpa_managed: bool = False
    doctor_id: Optional[str] = None

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "PatientCreateRequest":
        return cls(**_pick(data, cls))

    def validate(self) -> None:
        for name in ("first_name", "last_name", "date_of_birth", "gender", "diagnosis"):
            _require(getattr(self, name), name)


@dataclass
class PatientUpdateRequest(_UpdateRequest):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Any = None
    gender: Optional[str] = None
    diagnosis: Optional[str] = None
    problem: Optional[str] = None
    injection_objective: Optional[str] = None
    referring_doctor: Optional[str] = None
    sedation_required: Optional[bool] = None
    cpa_managed: Optional[bool] = None
    doctor_id: Optional[str] = None

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "PatientUpdateRequest":
        return cls(**_pick(data, cls))

    def validate(self) -> None:
        if not self.changes():
            raise ValidationError("no fields to update")


# =====================================================
# Injections
# =====================================================


@dataclass
class InjectionCreateRequest:
    """DTO for injection creation requests.

    ``muscles`` holds dicts with ``muscle_id``, ``dosage`` and ``side``.
    """

    patient_id: str = ""
    date: Any = None
    product: str = ""
    muscles: List[Dict[str, Any]] = field(default_factory=list)
    guidance_types: List[str] = field(default_factory=list)
    post_injection_events: List[str] = field(default_factory=list)
    notes: str = ""
    follow_up_date: Optional[str] = None
    doctor_id: Optional[str] = None

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "InjectionCreateRequest":
        values = _pick(data, cls)
        if "guidance_types" not in values and "guidanceType" in data:
            values["guidance_types"] = data["guidanceType"]
        if "muscles" in values:
            values["muscles"] = _muscles_from_json(values["muscles"])
        return cls(**values)

    def validate(self) -> None:
        _require(self.patient_id, "patient_id")
        _require(self.date, "date")
        _require(self.product, "product")
        if not self.muscles:
            raise ValidationError("at least one muscle is required", "muscles")


@dataclass
class InjectionUpdateRequest(_UpdateRequest):
    date: Any = None
    product: Optional[str] = None
    muscles: Optional[List[Dict[str, Any]]] = None
    guidance_types: Optional[List[str]] = None
    post_injection_events: Optional[List[str]] = None
    notes: Optional[str] = None
    follow_up_date: Optional[str] = None

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "InjectionUpdateRequest":
        values = _pick(data, cls)
        if "guidance_types" not in values and "guidanceType" in data:
            values["guidance_types"] = data["guidanceType"]
        if "muscles" in values:
            values["muscles"] = _muscles_from_json(values["muscles"])
        return cls(**values)

    def validate(self) -> None:
        if not self.changes():
            raise ValidationError("no fields to update")
        if self.muscles is not None and not self.muscles:
            raise ValidationError("at least one muscle is required", "muscles")


# =====================================================
# Follow-ups
# =====================================================


@dataclass
class FollowUpCreateRequest:
    patient_id: str = ""
    injection_id: str = ""
    date: Any = None
    objective_achieved: str = "achieved"
    comments: str = ""
    next_appointment: Optional[str] = None
    next_appointment_time: Optional[str] = None
    doctor_id: Optional[str] = None

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "FollowUpCreateRequest":
        return cls(**_pick(data, cls))

    def validate(self) -> None:
        _require(self.patient_id, "patient_id")
        _require(self.injection_id, "injection_id")
        _require(self.date, "date")


# =====================================================
# Appointments
# =====================================================


@dataclass
class AppointmentCreateRequest:
    """DTO for appointment creation requests."""

    patient_id: str = ""
    date: Any = None
    type: str = "injection"
    location: str = "service"
    status: str = "scheduled"
    notes: str = ""
    doctor_id: Optional[str] = None

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "AppointmentCreateRequest":
        return cls(**_pick(data, cls))

    def validate(self) -> None:
        _require(self.patient_id, "patient_id")
        _require(self.date, "date")


@dataclass
class AppointmentUpdateRequest(_UpdateRequest):
    """DTO for appointment update requests."""

    date: Any = None
    type: Optional[str] = None
    location: Optional[str] = None
    status: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "AppointmentUpdateRequest":
        return cls(**_pick(data, cls))

    def validate(self) -> None:
        if not self.changes():
            raise ValidationError("no fields to update")


# =====================================================
# Responses
# =====================================================


def _json_value(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if is_dataclass(value):
        return to_json(asdict(value))
    if isinstance(value, Mapping):
        return to_json(value)
    if isinstance(value, (list, tuple)):
        return [_json_value(item) for item in value]
    if hasattr(value, "value") and isinstance(getattr(value, "value"), str):
        return value.value
    return value


def to_json(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Recursively convert snake_case keys to camelCase JSON-ready values."""
    return {_camel(str(key)): _json_value(value) for key, value in data.items()}


def entity_to_json(entity: Any) -> Dict[str, Any]:
    """Serialize a domain entity as its gateway record plus id and derived fields."""
    payload = {"id": entity.id, **to_record(entity)}
    payload.pop("passwordHash", None)
    if isinstance(entity, Patient):
        payload["fullName"] = entity.full_name
        payload["cpaApplicable"] = entity.cpa_applicable
    if isinstance(entity, Injection):
        payload["totalDosage"] = entity.total_dosage
    return payload


def save_result_to_json(result) -> Dict[str, Any]:
    derived = result.derived_appointment
    return {
        "entity": entity_to_json(result.entity),
        "derivedAppointment": entity_to_json(derived) if derived is not None else None,
        "cascadeError": str(result.cascade_error) if result.cascade_error else None,
    }


def configuration_to_json(configuration) -> Dict[str, Any]:
    return {
        "version": configuration.version,
        "diagnoses": list(configuration.diagnoses),
        "regions": list(configuration.regions),
        "products": list(configuration.products),
        "guidanceTypes": list(configuration.guidance_types),
        "postInjectionEvents": list(configuration.post_injection_events),
        "muscles": [
            {"id": m.id, "name": m.name, "region": m.region, "side": m.side}
            for m in configuration.muscles
        ],
    }
