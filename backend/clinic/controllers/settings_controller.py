"""
Settings controller - controlled vocabularies and the muscle catalog.
"""

from flask import Blueprint
from flask_login import login_required

from clinic.core.api_utils import api_response, get_services, json_body
from clinic.core.auth_decorators import admin_required, current_actor
from clinic.core.exceptions import ValidationError
from clinic.schemas.dtos import configuration_to_json

settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")

# JSON names of the vocabularies mapped to Configuration fields
_KINDS = {
    "diagnoses": "diagnoses",
    "regions": "regions",
    "products": "products",
    "guidanceTypes": "guidance_types",
    "guidance_types": "guidance_types",
    "postInjectionEvents": "post_injection_events",
    "post_injection_events": "post_injection_events",
}


def _kind(name: str) -> str:
    try:
        return _KINDS[name]
    except KeyError:
        raise ValidationError(f"unknown vocabulary '{name}'", "kind")


@settings_bp.route("", methods=["GET"])
@login_required
def get_settings():
    return api_response(
        True, "Settings retrieved", configuration_to_json(get_services().configuration.current)
    )


@settings_bp.route("", methods=["PUT"])
@admin_required
def replace_settings():
    body = json_body()
    lists = {
        _kind(name): values
        for name, values in body.items()
        if name not in ("muscles", "version")
    }
    configuration = get_services().configuration.update(current_actor(), **lists)
    return api_response(True, "Settings updated", configuration_to_json(configuration))


@settings_bp.route("/muscles", methods=["POST"])
@admin_required
def add_muscle():
    body = json_body()
    configuration = get_services().configuration.add_muscle(
        current_actor(),
        name=body.get("name", ""),
        region=body.get("region", ""),
        side=body.get("side", "both"),
    )
    return api_response(True, "Muscle added", configuration_to_json(configuration), 201)


@settings_bp.route("/muscles/<muscle_id>", methods=["DELETE"])
@admin_required
def remove_muscle(muscle_id):
    configuration = get_services().configuration.remove_muscle(current_actor(), muscle_id)
    return api_response(True, "Muscle removed", configuration_to_json(configuration))


@settings_bp.route("/<kind>", methods=["POST"])
@admin_required
def add_value(kind):
    configuration = get_services().configuration.add_value(
        current_actor(), _kind(kind), json_body().get("value", "")
    )
    return api_response(True, "Value added", configuration_to_json(configuration), 201)


@settings_bp.route("/<kind>", methods=["DELETE"])
@admin_required
def remove_value(kind):
    configuration = get_services().configuration.remove_value(
        current_actor(), _kind(kind), json_body().get("value", "")
    )
    return api_response(True, "Value removed", configuration_to_json(configuration))
