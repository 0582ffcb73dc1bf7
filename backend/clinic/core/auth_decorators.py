"""
Authentication helpers for the JSON API.

Clients obtain a JWT from ``POST /api/auth/login`` and send it as an
``Authorization: Bearer <token>`` header. Flask-Login's request loader turns
the token back into an AuthenticatedActor; controllers then use
``@login_required`` and, for administration endpoints, ``@admin_required``.
"""

from functools import wraps
from typing import Optional

from flask_login import current_user, login_required

from clinic.core.api_utils import api_response
from clinic.core.security import get_actor_from_token
from clinic.domain.entities import Actor


# Explicitly implement the Flask-Login interface without inheriting UserMixin
class AuthenticatedActor:
    """Flask-Login user object wrapping the domain Actor."""

    def __init__(self, actor: Actor):
        self.actor = actor

    @property
    def id(self) -> str:
        return self.actor.id

    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def is_active(self) -> bool:
        return True

    @property
    def is_anonymous(self) -> bool:
        return False

    def get_id(self) -> str:
        return self.actor.id


def actor_from_bearer(auth_header: Optional[str], identity) -> Optional[AuthenticatedActor]:
    """Resolve a Bearer header to an active user, or None."""
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    claims = get_actor_from_token(auth_header.split(" ", 1)[1].strip())
    if claims is None:
        return None

    user = identity.get_user(claims["actor_id"])
    if user is None or not user.is_active:
        return None
    return AuthenticatedActor(user.to_actor())


def current_actor() -> Actor:
    """The domain Actor of the authenticated request."""
    return current_user.actor


def admin_required(f):
    """Require an authenticated admin; 403 for other roles."""

    @wraps(f)
    @login_required
    def decorated(*args, **kwargs):
        if not current_actor().is_admin:
            return api_response(False, "Administrator role required", status_code=403)
        return f(*args, **kwargs)

    return decorated
