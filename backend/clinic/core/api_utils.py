"""
Common API utilities for consistent response formatting across all controllers.
"""

import logging
from datetime import date
from typing import Any, Optional

from flask import current_app, jsonify, request
from flask_login import current_user
from werkzeug.exceptions import HTTPException

from clinic.core.exceptions import (
    AuthError,
    ClinicError,
    InvalidDateError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from clinic.core.validation import is_blank, parse_date

logger = logging.getLogger(__name__)


def api_response(
    success: bool, message: str, data: Optional[Any] = None, status_code: int = 200
) -> tuple:
    """
    Standardized API response format for all endpoints.

    Args:
        success: Whether the operation was successful
        message: Human-readable message about the operation
        data: Optional data payload
        status_code: HTTP status code

    Returns:
        Tuple of (json_response, status_code)
    """
    response = {"success": success, "message": message}

    if data is not None:
        response["data"] = data

    return jsonify(response), status_code


def get_services():
    """Service container attached to the running app by ``create_app``."""
    return current_app.extensions["clinic"]


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("request body must be a JSON object")
    return data


def query_date(name: str) -> Optional[date]:
    """Optional ``YYYY-MM-DD`` query-string parameter."""
    value = request.args.get(name)
    if is_blank(value):
        return None
    return parse_date(value, name)


def register_error_handlers(app) -> None:
    """Map the clinic error family onto HTTP status codes."""

    @app.errorhandler(ValidationError)
    def handle_validation_error(e: ValidationError):
        logger.warning(
            f"Validation failed: {e}",
            extra={"context": {"field": e.field, "path": request.path}},
        )
        return api_response(False, str(e), {"field": e.field}, 400)

    @app.errorhandler(InvalidDateError)
    def handle_invalid_date(e: InvalidDateError):
        return api_response(False, e.message, {"value": e.value}, 400)

    @app.errorhandler(AuthError)
    def handle_auth_error(e: AuthError):
        status = 403 if current_user and current_user.is_authenticated else 401
        return api_response(False, e.message, status_code=status)

    @app.errorhandler(NotFoundError)
    def handle_not_found(e: NotFoundError):
        return api_response(False, e.message, status_code=404)

    @app.errorhandler(PersistenceError)
    def handle_persistence_error(e: PersistenceError):
        logger.error(
            f"Persistence failure: {e.message}", extra={"context": {"path": request.path}}
        )
        return api_response(False, "Storage backend unavailable", status_code=503)

    @app.errorhandler(ClinicError)
    def handle_clinic_error(e: ClinicError):
        return api_response(False, e.message, status_code=400)

    @app.errorhandler(HTTPException)
    def handle_http_exception(e: HTTPException):
        return api_response(False, e.description or e.name, status_code=e.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.error(
            f"Unhandled error on {request.method} {request.path}: {e}",
            extra={"context": {"path": request.path}},
            exc_info=True,
        )
        return api_response(False, "Internal server error", status_code=500)
