"""
Mapping between domain entities and gateway records.

Records use the document store's camelCase keys and ISO-8601 strings for
dates, so they can be written as JSON as-is. ``from_record`` re-runs the
entity invariants; a corrupt stored document therefore surfaces as
ValidationError instead of leaking half-built entities into computations.
"""

from datetime import date, datetime
from typing import Any, Callable, Dict, Mapping, Optional

from clinic.core.validation import parse_datetime
from clinic.domain.entities import (
    Appointment,
    FollowUp,
    InjectedMuscle,
    Injection,
    Patient,
    User,
)
from clinic.domain.interfaces import (
    APPOINTMENTS,
    FOLLOW_UPS,
    INJECTIONS,
    PATIENTS,
    USERS,
    Record,
)


def _iso(value: Optional[Any]) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _instant(value: Optional[str], field_name: str) -> Optional[datetime]:
    if not value:
        return None
    return parse_datetime(value, field_name)


# =====================================================
# Patients
# =====================================================


def patient_to_record(patient: Patient) -> Record:
    return {
        "firstName": patient.first_name,
        "lastName": patient.last_name,
        "dateOfBirth": _iso(patient.date_of_birth),
        "gender": patient.gender,
        "diagnosis": patient.diagnosis,
        "problem": patient.problem,
        "injectionObjective": patient.injection_objective,
        "referringDoctor": patient.referring_doctor,
        "sedationRequired": patient.sedation_required,
        "cpaManaged": patient.cpa_managed,
        "doctorId": patient.doctor_id,
        "createdAt": _iso(patient.created_at),
        "updatedAt": _iso(patient.updated_at),
    }


def patient_from_record(record: Mapping[str, Any]) -> Patient:
    return Patient(
        id=record.get("id"),
        first_name=record.get("firstName", ""),
        last_name=record.get("lastName", ""),
        date_of_birth=record.get("dateOfBirth"),
        gender=record.get("gender", ""),
        diagnosis=record.get("diagnosis", ""),
        problem=record.get("problem", ""),
        injection_objective=record.get("injectionObjective", ""),
        referring_doctor=record.get("referringDoctor", ""),
        sedation_required=bool(record.get("sedationRequired", False)),
        cpa_managed=bool(record.get("cpaManaged", False)),
        doctor_id=record.get("doctorId", ""),
        created_at=_instant(record.get("createdAt"), "created_at"),
        updated_at=_instant(record.get("updatedAt"), "updated_at"),
    )


# =====================================================
# Injections
# =====================================================


def injection_to_record(injection: Injection) -> Record:
    return {
        "patientId": injection.patient_id,
        "doctorId": injection.doctor_id,
        "date": _iso(injection.date),
        "product": injection.product,
        "muscles": [
            {"muscleId": m.muscle_id, "dosage": m.dosage, "side": m.side}
            for m in injection.muscles
        ],
        "guidanceType": list(injection.guidance_types),
        "postInjectionEvents": list(injection.post_injection_events),
        "notes": injection.notes,
        "followUpDate": injection.follow_up_date,
    }


def injection_from_record(record: Mapping[str, Any]) -> Injection:
    guidance = record.get("guidanceType", [])
    if isinstance(guidance, str):
        guidance = [guidance]
    return Injection(
        id=record.get("id"),
        patient_id=record.get("patientId", ""),
        doctor_id=record.get("doctorId", ""),
        date=record.get("date"),
        product=record.get("product", ""),
        muscles=[
            InjectedMuscle(
                muscle_id=m.get("muscleId", ""),
                dosage=m.get("dosage"),
                side=m.get("side", ""),
            )
            for m in record.get("muscles", [])
        ],
        guidance_types=guidance,
        post_injection_events=record.get("postInjectionEvents", []),
        notes=record.get("notes", ""),
        follow_up_date=record.get("followUpDate"),
    )


# =====================================================
# Follow-ups
# =====================================================


def follow_up_to_record(follow_up: FollowUp) -> Record:
    return {
        "patientId": follow_up.patient_id,
        "injectionId": follow_up.injection_id,
        "doctorId": follow_up.doctor_id,
        "date": _iso(follow_up.date),
        "objectiveAchieved": follow_up.objective_achieved,
        "comments": follow_up.comments,
        "nextAppointment": follow_up.next_appointment,
        "nextAppointmentTime": follow_up.next_appointment_time,
    }


def follow_up_from_record(record: Mapping[str, Any]) -> FollowUp:
    return FollowUp(
        id=record.get("id"),
        patient_id=record.get("patientId", ""),
        injection_id=record.get("injectionId", ""),
        doctor_id=record.get("doctorId", ""),
        date=record.get("date"),
        objective_achieved=record.get("objectiveAchieved", ""),
        comments=record.get("comments", ""),
        next_appointment=record.get("nextAppointment"),
        next_appointment_time=record.get("nextAppointmentTime"),
    )


# =====================================================
# Appointments
# =====================================================


def appointment_to_record(appointment: Appointment) -> Record:
    return {
        "patientId": appointment.patient_id,
        "doctorId": appointment.doctor_id,
        "date": _iso(appointment.date),
        "type": appointment.type,
        "location": appointment.location,
        "status": appointment.status,
        "notes": appointment.notes,
    }


def appointment_from_record(record: Mapping[str, Any]) -> Appointment:
    return Appointment(
        id=record.get("id"),
        patient_id=record.get("patientId", ""),
        doctor_id=record.get("doctorId", ""),
        date=record.get("date"),
        type=record.get("type", ""),
        location=record.get("location", ""),
        status=record.get("status", ""),
        notes=record.get("notes", ""),
    )


# =====================================================
# Users
# =====================================================


def user_to_record(user: User) -> Record:
    return {
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "passwordHash": user.password_hash,
        "isActive": user.is_active,
    }


def user_from_record(record: Mapping[str, Any]) -> User:
    return User(
        id=record.get("id"),
        email=record.get("email", ""),
        name=record.get("name", ""),
        role=record.get("role", ""),
        password_hash=record.get("passwordHash"),
        is_active=bool(record.get("isActive", True)),
    )


_TO_RECORD: Dict[type, Callable[[Any], Record]] = {
    Patient: patient_to_record,
    Injection: injection_to_record,
    FollowUp: follow_up_to_record,
    Appointment: appointment_to_record,
    User: user_to_record,
}

_FROM_RECORD: Dict[str, Callable[[Mapping[str, Any]], Any]] = {
    PATIENTS: patient_from_record,
    INJECTIONS: injection_from_record,
    FOLLOW_UPS: follow_up_from_record,
    APPOINTMENTS: appointment_from_record,
    USERS: user_from_record,
}


def to_record(entity: Any) -> Record:
    try:
        return _TO_RECORD[type(entity)](entity)
    except KeyError:
        raise TypeError(f"No record mapping for {type(entity).__name__}")


def from_record(collection: str, record: Mapping[str, Any]) -> Any:
    try:
        mapper = _FROM_RECORD[collection]
    except KeyError:
        raise TypeError(f"No entity mapping for collection '{collection}'")
    return mapper(record)


def changed_fields(before: Mapping[str, Any], after: Mapping[str, Any]) -> Record:
    """The partial record that turns ``before`` into ``after``."""
    return {key: value for key, value in after.items() if before.get(key) != value}
