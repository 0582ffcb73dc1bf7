"""
Shared plumbing for the services that mutate clinical records.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from clinic.core.exceptions import (
    AuthError,
    ClinicError,
    InvalidDateError,
    NotFoundError,
    PersistenceError,
)
from clinic.domain.entities import Actor, Appointment
from clinic.domain.interfaces import APPOINTMENTS, IRepositoryGateway
from clinic.repositories.mappers import from_record, to_record
from clinic.services.access_filter import can_access

logger = logging.getLogger(__name__)


@dataclass
class SaveResult:
    """Outcome of saving an entity that may cascade into an appointment.

    ``cascade_error`` is set when the derived appointment could not be built
    or stored; the source entity was saved regardless.
    """

    entity: Any
    derived_appointment: Optional[Appointment] = None
    cascade_error: Optional[ClinicError] = None

    @property
    def cascaded(self) -> bool:
        return self.derived_appointment is not None


def require_admin(actor: Actor) -> None:
    if not actor.is_admin:
        raise AuthError("Administrator role required")


class GatewayService:
    """Base class for services working through the repository gateway."""

    def __init__(self, gateway: IRepositoryGateway):
        self.gateway = gateway

    def _fetch(self, collection: str, record_id: str, actor: Actor) -> Any:
        """Load one entity visible to the actor, else NotFoundError."""
        records = self.gateway.query(collection, {"id": record_id})
        record = next((r for r in records if r.get("id") == record_id), None)
        if record is None:
            raise NotFoundError(collection, record_id)
        entity = from_record(collection, record)
        if not can_access(entity, actor):
            logger.warning(
                "Access denied to record",
                extra={
                    "context": {
                        "collection": collection,
                        "record_id": record_id,
                        "actor_id": actor.id,
                    }
                },
            )
            raise NotFoundError(collection, record_id)
        return entity

    @staticmethod
    def _owner_for(actor: Actor, requested: Optional[str], fallback: Optional[str] = None) -> str:
        """Doctors always own what they create; admins may assign an owner."""
        if not actor.is_admin:
            return actor.id
        return requested or fallback or actor.id

    def _insert(self, collection: str, entity: Any) -> Any:
        entity.id = self.gateway.create(collection, to_record(entity))
        return entity

    def _cascade(
        self, source: Any, derive: Callable[[Any], Optional[Appointment]]
    ) -> SaveResult:
        """Derive and submit the appointment implied by an already saved source."""
        context = {"source_id": source.id, "source": type(source).__name__}
        try:
            candidate = derive(source)
        except InvalidDateError as e:
            logger.warning(
                f"Derived appointment skipped: {e.message}",
                extra={"context": {**context, "value": e.value}},
            )
            return SaveResult(entity=source, cascade_error=e)

        if candidate is None:
            return SaveResult(entity=source)

        try:
            self._insert(APPOINTMENTS, candidate)
        except PersistenceError as e:
            logger.error(
                f"Derived appointment could not be stored: {e.message}",
                extra={"context": context},
            )
            return SaveResult(entity=source, cascade_error=e)

        logger.info(
            "Derived appointment scheduled",
            extra={
                "context": {
                    **context,
                    "appointment_id": candidate.id,
                    "date": candidate.date.isoformat(),
                    "type": candidate.type,
                }
            },
        )
        return SaveResult(entity=source, derived_appointment=candidate)
