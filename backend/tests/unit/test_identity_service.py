"""
Unit tests for IdentityService: authentication, users and the actor stream.
"""

import pytest

from clinic.core.exceptions import AuthError, ValidationError
from clinic.core.security import hash_password
from clinic.domain.entities import Actor, User
from clinic.domain.interfaces import USERS
from clinic.schemas.dtos import UserCreateRequest
from clinic.services.identity_service import IdentityService
from tests.factories.repository_factories import GatewayFactory, record_of


@pytest.fixture
def gateway():
    users = [
        User(
            id="doc-1",
            email="martin@clinic.fr",
            name="Dr Martin",
            role="doctor",
            password_hash=hash_password("secret-pass"),
        ),
        User(
            id="doc-9",
            email="retired@clinic.fr",
            name="Dr Retired",
            role="doctor",
            password_hash=hash_password("secret-pass"),
            is_active=False,
        ),
    ]
    return GatewayFactory.create_mock_with_records({USERS: [record_of(u) for u in users]})


@pytest.fixture
def service(gateway):
    return IdentityService(gateway)


@pytest.mark.auth
class TestAuthentication:
    def test_valid_credentials_yield_actor(self, service):
        actor = service.authenticate(" Martin@Clinic.fr ", "secret-pass")
        assert actor == Actor(id="doc-1", role="doctor", name="Dr Martin", email="martin@clinic.fr")

    @pytest.mark.parametrize(
        "email,password",
        [
            ("martin@clinic.fr", "wrong"),
            ("nobody@clinic.fr", "secret-pass"),
            ("retired@clinic.fr", "secret-pass"),
            ("", ""),
        ],
    )
    def test_invalid_credentials(self, service, email, password):
        with pytest.raises(AuthError) as exc:
            service.authenticate(email, password)
        assert exc.value.message == "Invalid email or password"

    def test_sign_in_and_out_notify_subscribers(self, service):
        seen = []
        unsubscribe = service.subscribe(seen.append)

        actor = service.sign_in("martin@clinic.fr", "secret-pass")
        assert service.current_actor == actor
        service.sign_out()
        assert service.current_actor is None
        assert seen == [actor, None]

        unsubscribe()
        service.sign_in("martin@clinic.fr", "secret-pass")
        assert seen == [actor, None]

    def test_failed_sign_in_keeps_current_actor(self, service):
        seen = []
        service.subscribe(seen.append)
        with pytest.raises(AuthError):
            service.sign_in("martin@clinic.fr", "wrong")
        assert service.current_actor is None
        assert seen == []


@pytest.mark.auth
class TestUserManagement:
    def _request(self, **overrides):
        values = dict(
            email="new@clinic.fr",
            name="Dr New",
            password="123456",
            confirm_password="123456",
        )
        values.update(overrides)
        return UserCreateRequest(**values)

    def test_admin_creates_doctor_with_hashed_password(self, service, gateway, admin):
        user = service.create_user(admin, self._request())

        stored = gateway.store[USERS][-1]
        assert user.id == stored["id"]
        assert stored["role"] == "doctor"
        assert stored["passwordHash"] != "123456"
        assert service.authenticate("new@clinic.fr", "123456").id == user.id

    def test_doctor_cannot_create_users(self, service, gateway, doctor):
        with pytest.raises(AuthError):
            service.create_user(doctor, self._request())
        gateway.create.assert_not_called()

    @pytest.mark.parametrize(
        "overrides,field_name",
        [
            ({"password": "12345", "confirm_password": "12345"}, "password"),
            ({"confirm_password": "654321"}, "confirm_password"),
            ({"email": "martin@clinic.fr"}, "email"),
        ],
    )
    def test_invalid_user_requests(self, service, admin, overrides, field_name):
        with pytest.raises(ValidationError) as exc:
            service.create_user(admin, self._request(**overrides))
        assert exc.value.field == field_name

    def test_list_users_is_admin_only(self, service, admin, doctor):
        assert [u.email for u in service.list_users(admin)] == [
            "martin@clinic.fr",
            "retired@clinic.fr",
        ]
        with pytest.raises(AuthError):
            service.list_users(doctor)

    def test_bootstrap_admin_only_on_empty_store(self, service):
        assert service.bootstrap_admin("root@clinic.fr", "Root", "changeme") is None

        empty = IdentityService(GatewayFactory.create_mock_with_records())
        created = empty.bootstrap_admin("root@clinic.fr", "Root", "changeme")
        assert created.role == "admin"
        assert empty.authenticate("root@clinic.fr", "changeme").is_admin
