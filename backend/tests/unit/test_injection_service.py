"""
Unit tests for InjectionService and the follow-up appointment cascade.
"""

from datetime import datetime

import pytest

from clinic.core.exceptions import InvalidDateError, NotFoundError, PersistenceError, ValidationError
from clinic.domain.interfaces import APPOINTMENTS, INJECTIONS, PATIENTS
from clinic.schemas.dtos import InjectionCreateRequest, InjectionUpdateRequest
from clinic.services.injection_service import InjectionService
from tests.factories.entity_factories import make_injection, make_patient
from tests.factories.repository_factories import GatewayFactory, record_of


def _create_request(**overrides) -> InjectionCreateRequest:
    values = dict(
        patient_id="p1",
        date="2024-02-01T09:00:00",
        product="Botox",
        muscles=[{"muscle_id": "1", "dosage": 50, "side": "left"}],
        guidance_types=["Échographique"],
    )
    values.update(overrides)
    return InjectionCreateRequest(**values)


@pytest.fixture
def gateway():
    return GatewayFactory.create_mock_with_records(
        {
            PATIENTS: [
                record_of(make_patient(id="p1", doctor_id="doc-1")),
                record_of(make_patient(id="p2", doctor_id="doc-2")),
            ],
            INJECTIONS: [record_of(make_injection(id="i1", patient_id="p1"))],
        }
    )


@pytest.fixture
def service(gateway):
    return InjectionService(gateway)


def _created_collections(gateway):
    return [c.args[0] for c in gateway.create.call_args_list]


@pytest.mark.services
@pytest.mark.cascade
class TestAddInjection:
    def test_injection_is_persisted_before_its_appointment(
        self, service, gateway, doctor, configuration
    ):
        result = service.add_injection(
            doctor, _create_request(follow_up_date="2024-03-01"), configuration
        )

        assert _created_collections(gateway) == [INJECTIONS, APPOINTMENTS]
        assert result.entity.id == "injections-1"
        assert result.cascaded
        assert result.cascade_error is None

        appointment = result.derived_appointment
        assert appointment.id == "appointments-2"
        assert appointment.date == datetime(2024, 3, 1, 10, 0)
        assert appointment.type == "followup"
        assert appointment.patient_id == "p1"
        assert appointment.doctor_id == result.entity.doctor_id == "doc-1"

    def test_without_follow_up_date_only_the_injection_is_saved(
        self, service, gateway, doctor, configuration
    ):
        result = service.add_injection(doctor, _create_request(), configuration)

        assert _created_collections(gateway) == [INJECTIONS]
        assert not result.cascaded
        assert result.cascade_error is None

    def test_bad_follow_up_date_keeps_the_injection(
        self, service, gateway, doctor, configuration
    ):
        result = service.add_injection(
            doctor, _create_request(follow_up_date="2024-02-30"), configuration
        )

        assert _created_collections(gateway) == [INJECTIONS]
        assert isinstance(result.cascade_error, InvalidDateError)
        assert result.entity.id == "injections-1"
        assert APPOINTMENTS not in gateway.store

    def test_appointment_write_failure_is_reported_not_raised(
        self, service, gateway, doctor, configuration
    ):
        store_create = gateway.create.side_effect

        def create(collection, record):
            if collection == APPOINTMENTS:
                raise PersistenceError("store unavailable")
            return store_create(collection, record)

        gateway.create.side_effect = create

        result = service.add_injection(
            doctor, _create_request(follow_up_date="2024-03-01"), configuration
        )

        assert isinstance(result.cascade_error, PersistenceError)
        assert result.derived_appointment is None
        assert [r["id"] for r in gateway.store[INJECTIONS]] == ["i1", "injections-1"]

    def test_injection_write_failure_propagates(self, service, gateway, doctor, configuration):
        gateway.create.side_effect = PersistenceError("store unavailable")

        with pytest.raises(PersistenceError):
            service.add_injection(
                doctor, _create_request(follow_up_date="2024-03-01"), configuration
            )
        assert gateway.create.call_count == 1

    @pytest.mark.parametrize(
        "overrides,field_name",
        [
            ({"product": "Xeomin"}, "product"),
            ({"muscles": [{"muscle_id": "99", "dosage": 10, "side": "left"}]}, "muscles"),
            ({"guidance_types": ["Radioscopie"]}, "guidance_types"),
            ({"post_injection_events": ["Fièvre"]}, "post_injection_events"),
            ({"muscles": [{"muscle_id": "1", "dosage": -1, "side": "left"}]}, "dosage"),
            ({"guidance_types": []}, "guidance_types"),
        ],
    )
    def test_invalid_injection_is_rejected_before_any_write(
        self, service, gateway, doctor, configuration, overrides, field_name
    ):
        with pytest.raises(ValidationError) as exc:
            service.add_injection(doctor, _create_request(**overrides), configuration)
        assert exc.value.field == field_name
        gateway.create.assert_not_called()

    def test_patient_of_another_doctor_is_not_found(self, service, gateway, doctor, configuration):
        with pytest.raises(NotFoundError):
            service.add_injection(doctor, _create_request(patient_id="p2"), configuration)
        gateway.create.assert_not_called()

    def test_admin_injection_belongs_to_patient_doctor(self, service, admin, configuration):
        result = service.add_injection(
            admin, _create_request(patient_id="p2", follow_up_date="2024-03-01"), configuration
        )
        assert result.entity.doctor_id == "doc-2"
        assert result.derived_appointment.doctor_id == "doc-2"


@pytest.mark.services
class TestUpdateInjection:
    def test_update_sends_partial_and_never_cascades(
        self, service, gateway, doctor, configuration
    ):
        updated = service.update_injection(
            doctor,
            "i1",
            InjectionUpdateRequest(notes="Bonne tolérance", follow_up_date="2024-05-01"),
            configuration,
        )

        assert updated.notes == "Bonne tolérance"
        gateway.create.assert_not_called()
        _, _, partial = gateway.update.call_args.args
        assert partial == {"notes": "Bonne tolérance", "followUpDate": "2024-05-01"}

    def test_update_checks_only_changed_vocabularies(self, service, doctor, configuration):
        with pytest.raises(ValidationError) as exc:
            service.update_injection(
                doctor, "i1", InjectionUpdateRequest(product="Xeomin"), configuration
            )
        assert exc.value.field == "product"

    def test_update_replaces_muscles(self, service, gateway, doctor, configuration):
        updated = service.update_injection(
            doctor,
            "i1",
            InjectionUpdateRequest(muscles=[{"muscle_id": "2", "dosage": 80, "side": "right"}]),
            configuration,
        )
        assert updated.total_dosage == 80
        assert gateway.store[INJECTIONS][0]["muscles"] == [
            {"muscleId": "2", "dosage": 80, "side": "right"}
        ]

    def test_get_injection_hides_foreign_records(self, gateway, other_doctor):
        with pytest.raises(NotFoundError):
            InjectionService(gateway).get_injection(other_doctor, "i1")
