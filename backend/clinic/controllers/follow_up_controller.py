"""
Follow-up controller - post-injection checks and next-appointment cascade.
"""

from flask import Blueprint, request
from flask_login import login_required

from clinic.core.api_utils import api_response, get_services, json_body
from clinic.core.auth_decorators import current_actor
from clinic.schemas.dtos import FollowUpCreateRequest, entity_to_json, save_result_to_json

follow_up_bp = Blueprint("follow_ups", __name__, url_prefix="/api/follow-ups")


@follow_up_bp.route("", methods=["GET"])
@login_required
def list_follow_ups():
    actor = current_actor()
    snapshot = get_services().snapshots.load(actor)
    patient_id = request.args.get("patientId")
    follow_ups = [
        f for f in snapshot.follow_ups if not patient_id or f.patient_id == patient_id
    ]
    follow_ups.sort(key=lambda f: f.date, reverse=True)
    return api_response(
        True, "Follow-ups retrieved", [entity_to_json(f) for f in follow_ups]
    )


@follow_up_bp.route("", methods=["POST"])
@login_required
def create_follow_up():
    result = get_services().follow_ups.add_follow_up(
        current_actor(), FollowUpCreateRequest.from_json(json_body())
    )
    message = "Follow-up created"
    if result.cascade_error is not None:
        message = f"Follow-up created; next appointment not scheduled: {result.cascade_error}"
    return api_response(True, message, save_result_to_json(result), 201)
