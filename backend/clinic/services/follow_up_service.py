"""
Follow-up service: records post-injection checks and schedules the next
injection appointment planned during the visit.
"""

import logging

from clinic.core.exceptions import ValidationError
from clinic.domain.entities import Actor, FollowUp
from clinic.domain.interfaces import FOLLOW_UPS, INJECTIONS, PATIENTS
from clinic.schemas.dtos import FollowUpCreateRequest
from clinic.services.base_service import GatewayService, SaveResult
from clinic.services.cascade_service import derive_next_appointment

logger = logging.getLogger(__name__)


class FollowUpService(GatewayService):
    """Application service for follow-ups.

    Business Rules:
    - The patient must have at least one injection, and the referenced
      injection must belong to that patient
    - The follow-up is persisted before its next appointment is submitted
    """

    def add_follow_up(self, actor: Actor, request: FollowUpCreateRequest) -> SaveResult:
        request.validate()
        patient = self._fetch(PATIENTS, request.patient_id, actor)
        injection = self._fetch(INJECTIONS, request.injection_id, actor)
        if injection.patient_id != patient.id:
            raise ValidationError(
                "injection does not belong to this patient", "injection_id"
            )

        follow_up = FollowUp(
            patient_id=patient.id,
            injection_id=injection.id,
            doctor_id=self._owner_for(actor, request.doctor_id, injection.doctor_id),
            date=request.date,
            objective_achieved=request.objective_achieved,
            comments=request.comments or "",
            next_appointment=request.next_appointment,
            next_appointment_time=request.next_appointment_time,
        )

        self._insert(FOLLOW_UPS, follow_up)
        logger.info(
            "Follow-up created",
            extra={
                "context": {
                    "follow_up_id": follow_up.id,
                    "injection_id": follow_up.injection_id,
                    "objective": follow_up.objective_achieved,
                }
            },
        )
        return self._cascade(follow_up, derive_next_appointment)
