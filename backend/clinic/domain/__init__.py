"""
Domain package - Pure business logic layer.

This package contains:
- entities.py: Domain entities and their construction invariants
- defaults.py: Default controlled vocabularies
- interfaces.py: Repository gateway and identity contracts
"""

from .entities import (
    Actor,
    Appointment,
    AppointmentLocation,
    AppointmentStatus,
    AppointmentType,
    Configuration,
    FollowUp,
    Gender,
    InjectedMuscle,
    Injection,
    Muscle,
    Objective,
    Patient,
    Role,
    User,
    total_dosage,
)
from .interfaces import IIdentityProvider, IRepositoryGateway

__all__ = [
    # Domain entities
    "Actor",
    "User",
    "Patient",
    "InjectedMuscle",
    "Injection",
    "FollowUp",
    "Appointment",
    "Muscle",
    "Configuration",
    # Vocabularies
    "Role",
    "Gender",
    "Objective",
    "AppointmentType",
    "AppointmentLocation",
    "AppointmentStatus",
    "total_dosage",
    # Contracts
    "IRepositoryGateway",
    "IIdentityProvider",
]
