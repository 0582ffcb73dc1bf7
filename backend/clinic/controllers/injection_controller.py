"""
Injection controller - injection sessions and their follow-up cascade.
"""

from flask import Blueprint, request
from flask_login import login_required

from clinic.core.api_utils import api_response, get_services, json_body
from clinic.core.auth_decorators import current_actor
from clinic.schemas.dtos import (
    InjectionCreateRequest,
    InjectionUpdateRequest,
    entity_to_json,
    save_result_to_json,
)

injection_bp = Blueprint("injections", __name__, url_prefix="/api/injections")


@injection_bp.route("", methods=["GET"])
@login_required
def list_injections():
    actor = current_actor()
    snapshot = get_services().snapshots.load(actor)
    patient_id = request.args.get("patientId")
    injections = snapshot.injections_for(patient_id) if patient_id else snapshot.injections
    injections = sorted(injections, key=lambda i: i.date, reverse=True)
    return api_response(
        True, "Injections retrieved", [entity_to_json(i) for i in injections]
    )


@injection_bp.route("", methods=["POST"])
@login_required
def create_injection():
    services = get_services()
    result = services.injections.add_injection(
        current_actor(),
        InjectionCreateRequest.from_json(json_body()),
        services.configuration.current,
    )
    message = "Injection created"
    if result.cascade_error is not None:
        message = f"Injection created; follow-up appointment not scheduled: {result.cascade_error}"
    return api_response(True, message, save_result_to_json(result), 201)


@injection_bp.route("/<injection_id>", methods=["PATCH"])
@login_required
def update_injection(injection_id):
    services = get_services()
    injection = services.injections.update_injection(
        current_actor(),
        injection_id,
        InjectionUpdateRequest.from_json(json_body()),
        services.configuration.current,
    )
    return api_response(True, "Injection updated", entity_to_json(injection))
