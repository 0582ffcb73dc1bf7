"""
Patient controller - CRUD, search and timeline endpoints.
"""

from flask import Blueprint, request
from flask_login import login_required

from clinic.core.api_utils import api_response, get_services, json_body
from clinic.core.auth_decorators import current_actor
from clinic.schemas.dtos import (
    PatientCreateRequest,
    PatientUpdateRequest,
    entity_to_json,
)
from clinic.services.dashboard_service import patient_timeline, search_patients

patient_bp = Blueprint("patients", __name__, url_prefix="/api/patients")


@patient_bp.route("", methods=["GET"])
@login_required
def list_patients():
    services = get_services()
    actor = current_actor()
    patients = search_patients(
        services.snapshots.load(actor),
        actor,
        term=request.args.get("q", ""),
        diagnosis=request.args.get("diagnosis") or None,
    )
    return api_response(
        True, "Patients retrieved", [entity_to_json(p) for p in patients]
    )


@patient_bp.route("", methods=["POST"])
@login_required
def create_patient():
    services = get_services()
    patient = services.patients.add_patient(
        current_actor(),
        PatientCreateRequest.from_json(json_body()),
        services.configuration.current,
    )
    return api_response(True, "Patient created", entity_to_json(patient), 201)


@patient_bp.route("/<patient_id>", methods=["GET"])
@login_required
def get_patient(patient_id):
    patient = get_services().patients.get_patient(current_actor(), patient_id)
    return api_response(True, "Patient retrieved", entity_to_json(patient))


@patient_bp.route("/<patient_id>", methods=["PATCH"])
@login_required
def update_patient(patient_id):
    services = get_services()
    patient = services.patients.update_patient(
        current_actor(),
        patient_id,
        PatientUpdateRequest.from_json(json_body()),
        services.configuration.current,
    )
    return api_response(True, "Patient updated", entity_to_json(patient))


@patient_bp.route("/<patient_id>", methods=["DELETE"])
@login_required
def delete_patient(patient_id):
    get_services().patients.delete_patient(current_actor(), patient_id)
    return api_response(True, "Patient deleted")


@patient_bp.route("/<patient_id>/timeline", methods=["GET"])
@login_required
def get_timeline(patient_id):
    services = get_services()
    actor = current_actor()
    patient, events = patient_timeline(services.snapshots.load(actor), actor, patient_id)
    return api_response(
        True,
        "Timeline retrieved",
        {
            "patient": entity_to_json(patient),
            "events": [
                {
                    "kind": event.kind,
                    "date": event.date.isoformat(),
                    "record": entity_to_json(event.entity),
                }
                for event in events
            ],
        },
    )
