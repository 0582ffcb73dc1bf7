"""
Identity service: authentication, user management and the actor-change stream.
"""

import logging
from typing import Callable, List, Optional

from clinic.core.exceptions import AuthError, ValidationError
from clinic.core.security import hash_password, verify_password
from clinic.domain.entities import Actor, Role, User
from clinic.domain.interfaces import USERS, ActorListener, IIdentityProvider
from clinic.repositories.mappers import from_record, to_record
from clinic.schemas.dtos import UserCreateRequest
from clinic.services.base_service import GatewayService, require_admin

logger = logging.getLogger(__name__)


class IdentityService(GatewayService, IIdentityProvider):
    """Authenticates users stored in the ``users`` collection.

    The service also tracks the actor of the current session and notifies
    subscribers whenever it changes (sign-in or sign-out).
    """

    def __init__(self, gateway) -> None:
        super().__init__(gateway)
        self._current: Optional[Actor] = None
        self._listeners: List[ActorListener] = []

    # -- lookups ---------------------------------------------------------

    def find_by_email(self, email: str) -> Optional[User]:
        if not email:
            return None
        records = self.gateway.query(USERS, {"email": email.strip().lower()})
        return from_record(USERS, records[0]) if records else None

    def get_user(self, user_id: str) -> Optional[User]:
        records = self.gateway.query(USERS, {"id": user_id})
        record = next((r for r in records if r.get("id") == user_id), None)
        return from_record(USERS, record) if record else None

    def list_users(self, actor: Actor) -> List[User]:
        require_admin(actor)
        users = [from_record(USERS, r) for r in self.gateway.query(USERS)]
        return sorted(users, key=lambda u: u.email)

    # -- authentication --------------------------------------------------

    def authenticate(self, email: str, password: str) -> Actor:
        user = self.find_by_email(email)
        if user is None or not user.is_active or not verify_password(
            password, user.password_hash
        ):
            logger.warning(
                "Authentication failed",
                extra={"context": {"email": (email or "").strip().lower()}},
            )
            raise AuthError("Invalid email or password")
        return user.to_actor()

    @property
    def current_actor(self) -> Optional[Actor]:
        return self._current

    def sign_in(self, email: str, password: str) -> Actor:
        actor = self.authenticate(email, password)
        self._set_current(actor)
        logger.info("Actor signed in", extra={"context": {"actor_id": actor.id}})
        return actor

    def sign_out(self) -> None:
        if self._current is not None:
            logger.info(
                "Actor signed out", extra={"context": {"actor_id": self._current.id}}
            )
        self._set_current(None)

    def subscribe(self, listener: ActorListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_current(self, actor: Optional[Actor]) -> None:
        self._current = actor
        for listener in list(self._listeners):
            listener(actor)

    # -- user management -------------------------------------------------

    def _store_user(self, request: UserCreateRequest) -> User:
        request.validate()
        if self.find_by_email(request.email) is not None:
            raise ValidationError("a user with this email already exists", "email")
        user = User(
            email=request.email,
            name=request.name,
            role=request.role,
            password_hash=hash_password(request.password),
        )
        user.id = self.gateway.create(USERS, to_record(user))
        logger.info(
            "User created", extra={"context": {"user_id": user.id, "role": user.role}}
        )
        return user

    def create_user(self, actor: Actor, request: UserCreateRequest) -> User:
        require_admin(actor)
        return self._store_user(request)

    def bootstrap_admin(self, email: str, name: str, password: str) -> Optional[User]:
        """Create the first administrator when the users collection is empty."""
        if self.gateway.query(USERS):
            return None
        return self._store_user(
            UserCreateRequest(
                email=email,
                name=name,
                password=password,
                confirm_password=password,
                role=Role.ADMIN.value,
            )
        )
