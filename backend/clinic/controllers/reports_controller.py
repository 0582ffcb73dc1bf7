"""
Reports controller - statistics over an optional date range.
"""

import logging
import time
from dataclasses import asdict

from flask import Blueprint
from flask_login import login_required

from clinic.core import config
from clinic.core.api_utils import api_response, get_services, query_date
from clinic.core.auth_decorators import current_actor
from clinic.core.exceptions import ValidationError
from clinic.core.logging_config import log_performance
from clinic.schemas.dtos import to_json
from clinic.services.stats_service import build_report, build_scope

logger = logging.getLogger(__name__)

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.route("", methods=["GET"])
@login_required
def get_report():
    """Overview, product, diagnosis, muscle and adverse-event statistics.

    Query parameters ``start`` and ``end`` (YYYY-MM-DD, inclusive) bound the
    injections, follow-ups and appointments; patients are never date-bounded.
    """
    start = query_date("start")
    end = query_date("end")
    if start and end and end < start:
        raise ValidationError("end must not be before start", "end")

    started = time.perf_counter()
    services = get_services()
    actor = current_actor()
    scope = build_scope(services.snapshots.load(actor), actor, start, end)
    report = build_report(scope, services.configuration.current, config.local_now())
    log_performance(
        "build_report",
        (time.perf_counter() - started) * 1000,
        actor_id=actor.id,
        injections=len(scope.injections),
    )

    data = to_json(asdict(report))
    data["range"] = {
        "start": start.isoformat() if start else None,
        "end": end.isoformat() if end else None,
    }
    return api_response(True, "Report generated", data)
