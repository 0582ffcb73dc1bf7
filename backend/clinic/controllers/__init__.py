# Controllers package initialization
# This file makes the controllers directory a Python package
# and allows importing controller modules

from . import (
    appointment_controller,
    auth_controller,
    dashboard_controller,
    follow_up_controller,
    health_controller,
    injection_controller,
    patient_controller,
    reports_controller,
    settings_controller,
)

__all__ = [
    "appointment_controller",
    "auth_controller",
    "dashboard_controller",
    "follow_up_controller",
    "health_controller",
    "injection_controller",
    "patient_controller",
    "reports_controller",
    "settings_controller",
]
