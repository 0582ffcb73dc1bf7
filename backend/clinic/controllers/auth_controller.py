"""
Auth controller - login, current actor and user management endpoints.
"""

import logging

from flask import Blueprint
from flask_login import login_required

from clinic.core.api_utils import api_response, get_services, json_body
from clinic.core.auth_decorators import admin_required, current_actor
from clinic.core.limiter_config import limiter
from clinic.core.security import JWT_EXPIRATION_HOURS, create_actor_token
from clinic.schemas.dtos import LoginRequest, UserCreateRequest, entity_to_json

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _actor_json(actor):
    return {"id": actor.id, "role": actor.role, "name": actor.name, "email": actor.email}


@auth_bp.route("/login", methods=["POST"])
@limiter.limit("5 per minute;20 per hour")
def login():
    request_dto = LoginRequest.from_json(json_body())
    request_dto.validate()
    actor = get_services().identity.authenticate(request_dto.email, request_dto.password)
    token = create_actor_token(actor.id, actor.role)
    return api_response(
        True,
        "Login successful",
        {
            "accessToken": token,
            "tokenType": "bearer",
            "expiresInHours": JWT_EXPIRATION_HOURS,
            "actor": _actor_json(actor),
        },
    )


@auth_bp.route("/me", methods=["GET"])
@login_required
def me():
    return api_response(True, "Current actor", _actor_json(current_actor()))


@auth_bp.route("/users", methods=["GET"])
@admin_required
def list_users():
    users = get_services().identity.list_users(current_actor())
    return api_response(True, "Users retrieved", [entity_to_json(u) for u in users])


@auth_bp.route("/users", methods=["POST"])
@admin_required
def create_user():
    request_dto = UserCreateRequest.from_json(json_body())
    user = get_services().identity.create_user(current_actor(), request_dto)
    return api_response(True, "User created", entity_to_json(user), 201)
