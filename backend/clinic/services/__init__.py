# Services package initialization
# This file makes the services directory a Python package
# and allows importing service modules

from . import (
    access_filter,
    appointment_classifier,
    appointment_service,
    cascade_service,
    configuration_service,
    dashboard_service,
    follow_up_service,
    identity_service,
    injection_service,
    patient_service,
    snapshot_service,
    stats_service,
)

__all__ = [
    "access_filter",
    "appointment_classifier",
    "appointment_service",
    "cascade_service",
    "configuration_service",
    "dashboard_service",
    "follow_up_service",
    "identity_service",
    "injection_service",
    "patient_service",
    "snapshot_service",
    "stats_service",
]
