"""
Injection service.

Saving a new injection is an ordered sequence: the injection is persisted
first, then the follow-up appointment derived from it (if any) is submitted.
A failure on the second step is reported in the SaveResult and never undoes
or hides the first.
"""

import logging
from dataclasses import replace
from typing import Iterable, Optional

from clinic.core.validation import require_known
from clinic.domain.entities import Actor, Configuration, Injection
from clinic.domain.interfaces import INJECTIONS, PATIENTS
from clinic.repositories.mappers import changed_fields, to_record
from clinic.schemas.dtos import InjectionCreateRequest, InjectionUpdateRequest
from clinic.services.base_service import GatewayService, SaveResult
from clinic.services.cascade_service import derive_follow_up_appointment

logger = logging.getLogger(__name__)


def _require_all_known(values: Iterable[str], vocabulary, field_name: str) -> None:
    for value in values:
        require_known(value, vocabulary, field_name)


def check_injection_vocabulary(
    injection: Injection, configuration: Configuration, only: Optional[set] = None
) -> None:
    """Check the injection's labels against the configured vocabularies.

    ``only`` restricts the check to the named fields (used by updates).
    """

    def wanted(name: str) -> bool:
        return only is None or name in only

    if wanted("product"):
        require_known(injection.product, configuration.products, "product")
    if wanted("muscles"):
        _require_all_known(
            (m.muscle_id for m in injection.muscles), configuration.muscle_ids, "muscles"
        )
    if wanted("guidance_types"):
        _require_all_known(
            injection.guidance_types, configuration.guidance_types, "guidance_types"
        )
    if wanted("post_injection_events"):
        _require_all_known(
            injection.post_injection_events,
            configuration.post_injection_events,
            "post_injection_events",
        )


class InjectionService(GatewayService):
    """Application service for injection sessions."""

    def get_injection(self, actor: Actor, injection_id: str) -> Injection:
        return self._fetch(INJECTIONS, injection_id, actor)

    def add_injection(
        self, actor: Actor, request: InjectionCreateRequest, configuration: Configuration
    ) -> SaveResult:
        """Create an injection, then schedule its follow-up appointment.

        Business Rules:
        - The patient must exist and be visible to the actor
        - At least one muscle and one guidance type, no negative dosage
        - Product, muscles, guidance types and events must be configured
        """
        request.validate()
        patient = self._fetch(PATIENTS, request.patient_id, actor)

        injection = Injection(
            patient_id=patient.id,
            doctor_id=self._owner_for(actor, request.doctor_id, patient.doctor_id),
            date=request.date,
            product=request.product,
            muscles=request.muscles,
            guidance_types=request.guidance_types,
            post_injection_events=request.post_injection_events,
            notes=request.notes or "",
            follow_up_date=request.follow_up_date,
        )
        check_injection_vocabulary(injection, configuration)

        self._insert(INJECTIONS, injection)
        logger.info(
            "Injection created",
            extra={
                "context": {
                    "injection_id": injection.id,
                    "patient_id": injection.patient_id,
                    "product": injection.product,
                    "total_dosage": injection.total_dosage,
                }
            },
        )
        return self._cascade(injection, derive_follow_up_appointment)

    def update_injection(
        self,
        actor: Actor,
        injection_id: str,
        request: InjectionUpdateRequest,
        configuration: Configuration,
    ) -> Injection:
        """Replace fields of an injection. Updates never re-run the cascade."""
        request.validate()
        existing = self._fetch(INJECTIONS, injection_id, actor)
        changes = request.changes()

        updated = replace(existing, **changes)
        check_injection_vocabulary(updated, configuration, only=set(changes))

        partial = changed_fields(to_record(existing), to_record(updated))
        self.gateway.update(INJECTIONS, injection_id, partial)
        logger.info(
            "Injection updated",
            extra={"context": {"injection_id": injection_id, "fields": sorted(partial)}},
        )
        return updated

