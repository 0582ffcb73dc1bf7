"""
Abstract interfaces the core depends on, following Interface Segregation.

The core only talks to persistence and authentication through these
contracts, so services can be tested with mocks and the backend swapped
without touching business rules.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Mapping, Optional

from .entities import Actor

Record = Dict[str, Any]

PATIENTS = "patients"
INJECTIONS = "injections"
FOLLOW_UPS = "followUps"
APPOINTMENTS = "appointments"
USERS = "users"

COLLECTIONS = (PATIENTS, INJECTIONS, FOLLOW_UPS, APPOINTMENTS, USERS)


class IGatewayReader(ABC):
    """Read side of the repository gateway."""

    @abstractmethod
    def query(
        self, collection: str, filters: Optional[Mapping[str, Any]] = None
    ) -> List[Record]:
        """Return records matching every ``field == value`` pair in filters.

        ``None`` or an empty mapping returns the whole collection. Ordering is
        not guaranteed.
        """
        pass


class IGatewayWriter(ABC):
    """Write side of the repository gateway."""

    @abstractmethod
    def create(self, collection: str, record: Mapping[str, Any]) -> str:
        """Persist a new record and return its generated identifier.

        Raises PersistenceError on backend failure.
        """
        pass

    @abstractmethod
    def update(self, collection: str, record_id: str, partial: Mapping[str, Any]) -> None:
        """Merge ``partial`` into an existing record.

        Raises NotFoundError if absent, PersistenceError otherwise.
        """
        pass

    @abstractmethod
    def delete(self, collection: str, record_id: str) -> None:
        """Remove a record. Raises NotFoundError if absent."""
        pass


class IRepositoryGateway(IGatewayReader, IGatewayWriter):
    """Complete gateway combining read/write operations."""

    pass


ActorListener = Callable[[Optional[Actor]], None]


class IIdentityProvider(ABC):
    """Authentication collaborator producing the acting user."""

    @abstractmethod
    def authenticate(self, email: str, password: str) -> Actor:
        """Return the actor for valid credentials; raise AuthError otherwise."""
        pass

    @abstractmethod
    def subscribe(self, listener: ActorListener) -> Callable[[], None]:
        """Register for actor changes; returns an unsubscribe callable."""
        pass
