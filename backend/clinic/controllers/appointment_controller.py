"""
Appointment controller - scheduling and status transitions.
"""

from flask import Blueprint, request
from flask_login import login_required

from clinic.core import config
from clinic.core.api_utils import api_response, get_services, json_body
from clinic.core.auth_decorators import current_actor
from clinic.schemas.dtos import (
    AppointmentCreateRequest,
    AppointmentUpdateRequest,
    entity_to_json,
)
from clinic.services.appointment_classifier import classify

appointment_bp = Blueprint("appointments", __name__, url_prefix="/api/appointments")


def _appointment_json(appointment, now):
    payload = entity_to_json(appointment)
    payload["state"] = classify(appointment, now).value
    return payload


@appointment_bp.route("", methods=["GET"])
@login_required
def list_appointments():
    actor = current_actor()
    snapshot = get_services().snapshots.load(actor)
    patient_id = request.args.get("patientId")
    appointments = sorted(
        (a for a in snapshot.appointments if not patient_id or a.patient_id == patient_id),
        key=lambda a: a.date,
    )
    now = config.local_now()
    return api_response(
        True,
        "Appointments retrieved",
        [_appointment_json(a, now) for a in appointments],
    )


@appointment_bp.route("", methods=["POST"])
@login_required
def create_appointment():
    appointment = get_services().appointments.add_appointment(
        current_actor(), AppointmentCreateRequest.from_json(json_body())
    )
    return api_response(
        True, "Appointment created", _appointment_json(appointment, config.local_now()), 201
    )


@appointment_bp.route("/<appointment_id>", methods=["PATCH"])
@login_required
def update_appointment(appointment_id):
    appointment = get_services().appointments.update_appointment(
        current_actor(), appointment_id, AppointmentUpdateRequest.from_json(json_body())
    )
    return api_response(
        True, "Appointment updated", _appointment_json(appointment, config.local_now())
    )


@appointment_bp.route("/<appointment_id>/complete", methods=["POST"])
@login_required
def complete_appointment(appointment_id):
    appointment = get_services().appointments.complete_appointment(
        current_actor(), appointment_id
    )
    return api_response(
        True, "Appointment completed", _appointment_json(appointment, config.local_now())
    )


@appointment_bp.route("/<appointment_id>/cancel", methods=["POST"])
@login_required
def cancel_appointment(appointment_id):
    appointment = get_services().appointments.cancel_appointment(
        current_actor(), appointment_id
    )
    return api_response(
        True, "Appointment cancelled", _appointment_json(appointment, config.local_now())
    )
