"""
Patient service: creation, partial updates and deletion of patient records.
"""

import logging
from dataclasses import replace
from typing import Optional

from clinic.core import config
from clinic.core.validation import require_known
from clinic.domain.entities import Actor, Configuration, Patient
from clinic.domain.interfaces import PATIENTS
from clinic.repositories.mappers import changed_fields, to_record
from clinic.schemas.dtos import PatientCreateRequest, PatientUpdateRequest
from clinic.services.base_service import GatewayService

logger = logging.getLogger(__name__)


class PatientService(GatewayService):
    """Application service for patient records.

    Deleting a patient never touches its injections, follow-ups or
    appointments; they are left orphaned.
    """

    def __init__(self, gateway, normalize_cpa: Optional[bool] = None):
        super().__init__(gateway)
        self.normalize_cpa = (
            config.NORMALIZE_CPA_WITHOUT_SEDATION if normalize_cpa is None else normalize_cpa
        )

    def _apply_cpa_policy(self, patient: Patient) -> None:
        if patient.sedation_required or not patient.cpa_managed:
            return
        if self.normalize_cpa:
            patient.cpa_managed = False
            return
        logger.warning(
            "CPA managed flag stored without sedation",
            extra={"context": {"patient_id": patient.id}},
        )

    def get_patient(self, actor: Actor, patient_id: str) -> Patient:
        return self._fetch(PATIENTS, patient_id, actor)

    def add_patient(
        self, actor: Actor, request: PatientCreateRequest, configuration: Configuration
    ) -> Patient:
        request.validate()
        now = config.local_now()
        patient = Patient(
            first_name=request.first_name,
            last_name=request.last_name,
            date_of_birth=request.date_of_birth,
            gender=request.gender,
            diagnosis=request.diagnosis,
            problem=request.problem or "",
            injection_objective=request.injection_objective or "",
            referring_doctor=request.referring_doctor or "",
            sedation_required=request.sedation_required,
            cpa_managed=request.cpa_managed,
            doctor_id=self._owner_for(actor, request.doctor_id),
            created_at=now,
            updated_at=now,
        )
        require_known(patient.diagnosis, configuration.diagnoses, "diagnosis")
        self._apply_cpa_policy(patient)

        self._insert(PATIENTS, patient)
        logger.info(
            "Patient created",
            extra={"context": {"patient_id": patient.id, "doctor_id": patient.doctor_id}},
        )
        return patient

    def update_patient(
        self,
        actor: Actor,
        patient_id: str,
        request: PatientUpdateRequest,
        configuration: Configuration,
    ) -> Patient:
        request.validate()
        existing = self._fetch(PATIENTS, patient_id, actor)
        changes = request.changes()
        if not actor.is_admin:
            changes.pop("doctor_id", None)

        updated = replace(existing, updated_at=config.local_now(), **changes)
        if "diagnosis" in changes:
            require_known(updated.diagnosis, configuration.diagnoses, "diagnosis")
        self._apply_cpa_policy(updated)

        partial = changed_fields(to_record(existing), to_record(updated))
        self.gateway.update(PATIENTS, patient_id, partial)
        logger.info(
            "Patient updated",
            extra={"context": {"patient_id": patient_id, "fields": sorted(partial)}},
        )
        return updated

    def delete_patient(self, actor: Actor, patient_id: str) -> None:
        self._fetch(PATIENTS, patient_id, actor)
        self.gateway.delete(PATIENTS, patient_id)
        logger.info("Patient deleted", extra={"context": {"patient_id": patient_id}})
