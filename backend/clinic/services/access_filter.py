"""
Role-based visibility of clinical records.

Admins see every record; doctors only see records whose ``doctor_id`` is
their own id. Every read path (snapshot loading, stats, classification,
timelines, dashboards) goes through ``visible`` before doing anything else.
"""

from typing import Any, Iterable, List, TypeVar

from clinic.domain.entities import Actor

T = TypeVar("T")


def can_access(entity: Any, actor: Actor) -> bool:
    """Single visibility predicate shared by reads and mutations."""
    if actor.is_admin:
        return True
    return getattr(entity, "doctor_id", None) == actor.id


def visible(entities: Iterable[T], actor: Actor) -> List[T]:
    """Return the subset of ``entities`` the actor may see, order preserved."""
    return [entity for entity in entities if can_access(entity, actor)]
