"""
Health controller - liveness and storage connectivity check.
"""

import logging

from flask import Blueprint

from clinic.core.api_utils import api_response, get_services
from clinic.core.exceptions import PersistenceError
from clinic.core.limiter_config import limiter
from clinic.domain.interfaces import USERS

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/health")


@health_bp.route("", methods=["GET"])
@limiter.exempt
def health_check():
    """Report whether the gateway answers a query. No authentication required."""
    services = get_services()
    try:
        services.gateway.query(USERS, {"email": "__health__"})
    except PersistenceError as e:
        logger.error("Health check failed", extra={"context": {"error": e.message}})
        return api_response(False, "Storage unavailable", {"status": "unhealthy"}, 503)
    return api_response(
        True,
        "Service healthy",
        {"status": "healthy", "configurationVersion": services.configuration.current.version},
    )
