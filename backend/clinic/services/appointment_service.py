"""
Appointment service.

Completed and cancelled are terminal: once an appointment leaves the
scheduled state its status can no longer change.
"""

import logging
from dataclasses import replace

from clinic.core.exceptions import ValidationError
from clinic.domain.entities import Actor, Appointment, AppointmentStatus
from clinic.domain.interfaces import APPOINTMENTS, PATIENTS
from clinic.repositories.mappers import changed_fields, to_record
from clinic.schemas.dtos import AppointmentCreateRequest, AppointmentUpdateRequest
from clinic.services.base_service import GatewayService

logger = logging.getLogger(__name__)


class AppointmentService(GatewayService):
    """Application service for appointment-related use-cases."""

    def get_appointment(self, actor: Actor, appointment_id: str) -> Appointment:
        return self._fetch(APPOINTMENTS, appointment_id, actor)

    def add_appointment(self, actor: Actor, request: AppointmentCreateRequest) -> Appointment:
        request.validate()
        patient = self._fetch(PATIENTS, request.patient_id, actor)
        appointment = Appointment(
            patient_id=patient.id,
            doctor_id=self._owner_for(actor, request.doctor_id, patient.doctor_id),
            date=request.date,
            type=request.type,
            location=request.location,
            status=request.status,
            notes=request.notes or "",
        )
        self._insert(APPOINTMENTS, appointment)
        logger.info(
            "Appointment created",
            extra={
                "context": {
                    "appointment_id": appointment.id,
                    "patient_id": appointment.patient_id,
                    "date": appointment.date.isoformat(),
                }
            },
        )
        return appointment

    def update_appointment(
        self, actor: Actor, appointment_id: str, request: AppointmentUpdateRequest
    ) -> Appointment:
        request.validate()
        existing = self._fetch(APPOINTMENTS, appointment_id, actor)
        changes = request.changes()

        new_status = changes.get("status", existing.status)
        if new_status != existing.status and not existing.is_scheduled:
            raise ValidationError(
                f"appointment is already {existing.status}", "status"
            )

        updated = replace(existing, **changes)
        partial = changed_fields(to_record(existing), to_record(updated))
        if partial:
            self.gateway.update(APPOINTMENTS, appointment_id, partial)
        logger.info(
            "Appointment updated",
            extra={
                "context": {"appointment_id": appointment_id, "fields": sorted(partial)}
            },
        )
        return updated

    def complete_appointment(self, actor: Actor, appointment_id: str) -> Appointment:
        return self.update_appointment(
            actor,
            appointment_id,
            AppointmentUpdateRequest(status=AppointmentStatus.COMPLETED.value),
        )

    def cancel_appointment(self, actor: Actor, appointment_id: str) -> Appointment:
        return self.update_appointment(
            actor,
            appointment_id,
            AppointmentUpdateRequest(status=AppointmentStatus.CANCELLED.value),
        )
