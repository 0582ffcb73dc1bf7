"""
Unit tests for ConfigurationService.
"""

import pytest

from clinic.core.exceptions import AuthError, ValidationError
from clinic.services.configuration_service import ConfigurationService


@pytest.fixture
def service(configuration):
    return ConfigurationService(configuration)


@pytest.mark.services
class TestConfigurationService:
    def test_defaults_are_loaded(self):
        current = ConfigurationService().current
        assert current.version == 1
        assert "Botox" in current.products
        assert len(current.muscles) == 9

    def test_doctor_cannot_edit(self, service, doctor):
        with pytest.raises(AuthError):
            service.add_value(doctor, "products", "Xeomin")
        assert service.current.version == 1

    def test_add_value_bumps_version_and_keeps_old_snapshot(self, service, admin):
        before = service.current
        after = service.add_value(admin, "products", "Xeomin")

        assert after.version == before.version + 1
        assert after.products[-1] == "Xeomin"
        assert "Xeomin" not in before.products
        assert service.current is after

    def test_duplicate_value_is_a_no_op(self, service, admin):
        before = service.current
        assert service.add_value(admin, "products", "Botox") is before

    def test_remove_value(self, service, admin):
        after = service.remove_value(admin, "diagnoses", "Autre")
        assert "Autre" not in after.diagnoses

    def test_unknown_kind_is_rejected(self, service, admin):
        with pytest.raises(ValidationError):
            service.add_value(admin, "colours", "blue")

    def test_blank_value_is_rejected(self, service, admin):
        with pytest.raises(ValidationError):
            service.add_value(admin, "regions", "  ")

    def test_update_replaces_lists(self, service, admin):
        after = service.update(admin, products=["Botox"], regions=["Cou"])
        assert after.products == ("Botox",)
        assert after.regions == ("Cou",)
        assert after.version == 2

    def test_update_rejects_unknown_lists(self, service, admin):
        with pytest.raises(ValidationError):
            service.update(admin, colours=["blue"])

    def test_add_muscle_gets_next_identifier(self, service, admin):
        after = service.add_muscle(admin, "Orbiculaire", " Visage ")
        muscle = after.muscles[-1]
        assert (muscle.id, muscle.name, muscle.region, muscle.side) == (
            "10",
            "Orbiculaire",
            "Visage",
            "both",
        )

    def test_duplicate_muscle_in_region_is_rejected(self, service, admin):
        with pytest.raises(ValidationError):
            service.add_muscle(admin, "Temporal", "Visage")

    def test_remove_muscle(self, service, admin):
        after = service.remove_muscle(admin, "9")
        assert after.muscle("9") is None
        assert len(after.muscles) == 8
