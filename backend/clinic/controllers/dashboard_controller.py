"""
Dashboard controller - overview counters, agenda lists and calendar range.
"""

from dataclasses import asdict

from flask import Blueprint
from flask_login import login_required

from clinic.core import config
from clinic.core.api_utils import api_response, get_services, query_date
from clinic.core.auth_decorators import current_actor
from clinic.core.exceptions import ValidationError
from clinic.schemas.dtos import entity_to_json, to_json
from clinic.services.dashboard_service import calendar, dashboard

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api")


@dashboard_bp.route("/dashboard", methods=["GET"])
@login_required
def get_dashboard():
    actor = current_actor()
    view = dashboard(get_services().snapshots.load(actor), actor, config.local_now())
    return api_response(
        True,
        "Dashboard retrieved",
        {
            "overview": to_json(asdict(view.overview)),
            "recentPatients": [entity_to_json(p) for p in view.recent_patients],
            "upcomingAppointments": [
                entity_to_json(a) for a in view.upcoming_appointments
            ],
            "recentInjections": [entity_to_json(i) for i in view.recent_injections],
            "todayAppointments": [entity_to_json(a) for a in view.today_appointments],
            "overdueAppointments": [
                entity_to_json(a) for a in view.overdue_appointments
            ],
        },
    )


@dashboard_bp.route("/calendar", methods=["GET"])
@login_required
def get_calendar():
    start = query_date("start")
    end = query_date("end")
    if start is None or end is None:
        raise ValidationError("start and end are required", "start")

    actor = current_actor()
    entries = calendar(
        get_services().snapshots.load(actor), actor, start, end, config.local_now()
    )
    return api_response(
        True,
        "Calendar retrieved",
        [
            {
                **entity_to_json(entry.appointment),
                "state": entry.state.value,
                "patientName": entry.patient_name,
            }
            for entry in entries
        ],
    )
