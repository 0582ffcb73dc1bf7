"""
Loading of the in-memory clinical collections.

A ClinicSnapshot is an immutable, access-filtered view of the four clinical
collections. Callers replace their snapshot wholesale after each successful
load; nothing mutates a snapshot in place. Stored documents that no longer
pass the entity checks are logged and left out of the snapshot.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional, Tuple

from clinic.core.exceptions import ValidationError
from clinic.core.logging_config import log_performance
from clinic.domain.entities import Actor, Appointment, FollowUp, Injection, Patient
from clinic.domain.interfaces import (
    APPOINTMENTS,
    FOLLOW_UPS,
    INJECTIONS,
    PATIENTS,
    IRepositoryGateway,
)
from clinic.repositories.mappers import from_record
from clinic.services.access_filter import visible

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClinicSnapshot:
    patients: Tuple[Patient, ...] = ()
    injections: Tuple[Injection, ...] = ()
    follow_ups: Tuple[FollowUp, ...] = ()
    appointments: Tuple[Appointment, ...] = ()

    def patient(self, patient_id: str) -> Optional[Patient]:
        return next((p for p in self.patients if p.id == patient_id), None)

    def injections_for(self, patient_id: str) -> Tuple[Injection, ...]:
        return tuple(i for i in self.injections if i.patient_id == patient_id)

    def restricted_to(self, actor: Actor) -> "ClinicSnapshot":
        """Same snapshot with the access filter applied to every collection."""
        return ClinicSnapshot(
            patients=tuple(visible(self.patients, actor)),
            injections=tuple(visible(self.injections, actor)),
            follow_ups=tuple(visible(self.follow_ups, actor)),
            appointments=tuple(visible(self.appointments, actor)),
        )


class SnapshotService:
    """Reads the clinical collections through the gateway for one actor."""

    def __init__(self, gateway: IRepositoryGateway):
        self.gateway = gateway

    def _load(self, collection: str, actor: Actor) -> tuple:
        filters = None if actor.is_admin else {"doctorId": actor.id}
        entities = []
        for record in self.gateway.query(collection, filters):
            try:
                entities.append(from_record(collection, record))
            except ValidationError as e:
                logger.warning(
                    "Skipping invalid stored record",
                    extra={
                        "context": {
                            "collection": collection,
                            "record_id": record.get("id"),
                            "field": e.field,
                            "error": e.message,
                        }
                    },
                )
        return tuple(visible(entities, actor))

    def load(self, actor: Actor) -> ClinicSnapshot:
        started = time.perf_counter()
        snapshot = ClinicSnapshot(
            patients=self._load(PATIENTS, actor),
            injections=self._load(INJECTIONS, actor),
            follow_ups=self._load(FOLLOW_UPS, actor),
            appointments=self._load(APPOINTMENTS, actor),
        )
        log_performance(
            "snapshot_load",
            (time.perf_counter() - started) * 1000,
            actor_id=actor.id,
            patients=len(snapshot.patients),
            injections=len(snapshot.injections),
        )
        return snapshot
