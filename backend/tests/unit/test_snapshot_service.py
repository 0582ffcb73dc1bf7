"""
Unit tests for SnapshotService loading through the gateway.
"""

import logging

import pytest

from clinic.core.exceptions import PersistenceError
from clinic.domain.interfaces import APPOINTMENTS, FOLLOW_UPS, INJECTIONS, PATIENTS
from clinic.services.snapshot_service import SnapshotService
from tests.factories.entity_factories import (
    make_appointment,
    make_follow_up,
    make_injection,
    make_patient,
)
from tests.factories.repository_factories import GatewayFactory, record_of


@pytest.fixture
def gateway():
    return GatewayFactory.create_mock_with_records(
        {
            PATIENTS: [
                record_of(make_patient(id="p1")),
                record_of(make_patient(id="p2", doctor_id="doc-2")),
            ],
            INJECTIONS: [record_of(make_injection(id="i1"))],
            FOLLOW_UPS: [record_of(make_follow_up(id="f1", doctor_id="doc-2"))],
            APPOINTMENTS: [record_of(make_appointment(id="a1"))],
        }
    )


@pytest.mark.services
class TestSnapshotService:
    def test_doctor_queries_are_scoped(self, gateway, doctor):
        snapshot = SnapshotService(gateway).load(doctor)

        assert [p.id for p in snapshot.patients] == ["p1"]
        assert [i.id for i in snapshot.injections] == ["i1"]
        assert snapshot.follow_ups == ()
        assert [a.id for a in snapshot.appointments] == ["a1"]
        for call in gateway.query.call_args_list:
            assert call.args[1] == {"doctorId": "doc-1"}

    def test_admin_loads_everything(self, gateway, admin):
        snapshot = SnapshotService(gateway).load(admin)
        assert len(snapshot.patients) == 2
        assert len(snapshot.follow_ups) == 1

    def test_gateway_filter_is_not_trusted(self, doctor):
        foreign = record_of(make_patient(id="p2", doctor_id="doc-2"))
        gateway = GatewayFactory.create_mock_reader()
        gateway.query.side_effect = lambda collection, filters=None: (
            [foreign] if collection == PATIENTS else []
        )

        snapshot = SnapshotService(gateway).load(doctor)

        assert snapshot.patients == ()

    def test_entities_are_rebuilt_from_records(self, gateway, admin):
        snapshot = SnapshotService(gateway).load(admin)
        assert snapshot.patient("p1").full_name == "Marie Durand"
        assert snapshot.injections_for("p1")[0].total_dosage == 50

    def test_persistence_errors_propagate(self, doctor):
        gateway = GatewayFactory.create_mock_reader()
        gateway.query.side_effect = PersistenceError("store unavailable")
        with pytest.raises(PersistenceError):
            SnapshotService(gateway).load(doctor)

    def test_invalid_stored_record_is_skipped_and_logged(self, admin, caplog):
        legacy = dict(record_of(make_injection(id="i-legacy")), guidanceType=[])
        gateway = GatewayFactory.create_mock_with_records(
            {
                PATIENTS: [record_of(make_patient(id="p1"))],
                INJECTIONS: [record_of(make_injection(id="i1")), legacy],
                FOLLOW_UPS: [],
                APPOINTMENTS: [],
            }
        )

        with caplog.at_level(logging.WARNING, logger="clinic.services.snapshot_service"):
            snapshot = SnapshotService(gateway).load(admin)

        assert [i.id for i in snapshot.injections] == ["i1"]
        assert [p.id for p in snapshot.patients] == ["p1"]
        assert any(
            getattr(r, "context", {}).get("record_id") == "i-legacy" for r in caplog.records
        )
