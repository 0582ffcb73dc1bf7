"""
Unit tests for request DTOs, response serialization and record mappers.
"""

from datetime import datetime

import pytest

from clinic.core.exceptions import ValidationError
from clinic.domain.entities import User
from clinic.domain.interfaces import INJECTIONS, PATIENTS
from clinic.repositories.mappers import changed_fields, from_record, to_record
from clinic.schemas.dtos import (
    InjectionCreateRequest,
    LoginRequest,
    PatientUpdateRequest,
    entity_to_json,
    to_json,
)
from tests.factories.entity_factories import make_injection, make_patient


class TestRequests:
    def test_injection_request_from_camel_case_json(self):
        request = InjectionCreateRequest.from_json(
            {
                "patientId": "p1",
                "date": "2024-02-01T09:00:00",
                "product": "Botox",
                "muscles": [{"muscleId": "1", "dosage": 50, "side": "left"}],
                "guidanceType": ["Échographique"],
                "followUpDate": "2024-03-01",
            }
        )
        assert request.patient_id == "p1"
        assert request.muscles == [{"muscle_id": "1", "dosage": 50, "side": "left"}]
        assert request.guidance_types == ["Échographique"]
        assert request.follow_up_date == "2024-03-01"

    def test_injection_request_requires_muscles(self):
        request = InjectionCreateRequest(patient_id="p1", date="2024-02-01", product="Botox")
        with pytest.raises(ValidationError) as exc:
            request.validate()
        assert exc.value.field == "muscles"

    def test_muscles_must_be_objects(self):
        with pytest.raises(ValidationError):
            InjectionCreateRequest.from_json({"muscles": ["1"]})

    def test_update_request_only_reports_sent_fields(self):
        request = PatientUpdateRequest.from_json({"lastName": "Martin", "unknown": 1})
        assert request.changes() == {"last_name": "Martin"}

    def test_login_request_requires_credentials(self):
        with pytest.raises(ValidationError):
            LoginRequest.from_json({"email": "a@b.fr"}).validate()


class TestMappers:
    def test_injection_record_uses_camel_case(self):
        record = to_record(make_injection(follow_up_date="2024-03-01"))
        assert record["patientId"] == "p1"
        assert record["date"] == "2024-02-01T09:00:00"
        assert record["muscles"] == [{"muscleId": "1", "dosage": 50, "side": "left"}]
        assert record["guidanceType"] == ["Échographique"]
        assert record["followUpDate"] == "2024-03-01"

    def test_injection_record_rebuilds_entity(self):
        original = make_injection()
        rebuilt = from_record(INJECTIONS, {"id": original.id, **to_record(original)})
        assert rebuilt == original

    def test_legacy_single_guidance_string(self):
        record = {**to_record(make_injection()), "guidanceType": "Échographique"}
        assert from_record(INJECTIONS, record).guidance_types == ["Échographique"]

    def test_corrupt_record_raises_validation_error(self):
        record = {**to_record(make_patient()), "gender": "?"}
        with pytest.raises(ValidationError):
            from_record(PATIENTS, record)

    def test_unknown_collection(self):
        with pytest.raises(TypeError):
            from_record("invoices", {})

    def test_changed_fields(self):
        assert changed_fields({"a": 1, "b": 2}, {"a": 1, "b": 3}) == {"b": 3}


class TestResponses:
    def test_patient_json_has_derived_fields(self):
        payload = entity_to_json(make_patient(sedation_required=True, cpa_managed=True))
        assert payload["id"] == "p1"
        assert payload["fullName"] == "Marie Durand"
        assert payload["cpaApplicable"] is True

    def test_user_json_hides_password_hash(self):
        user = User(id="u1", email="a@b.fr", name="A", password_hash="secret")
        assert "passwordHash" not in entity_to_json(user)

    def test_injection_json_has_total_dosage(self):
        assert entity_to_json(make_injection())["totalDosage"] == 50

    def test_to_json_is_recursive(self):
        data = {"overview": {"success_rate": 67}, "when": datetime(2024, 1, 1, 9, 0)}
        assert to_json(data) == {"overview": {"successRate": 67}, "when": "2024-01-01T09:00:00"}
