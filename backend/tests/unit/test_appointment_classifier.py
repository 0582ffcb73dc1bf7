"""
Unit tests for temporal classification of appointments.
"""

from datetime import date, timedelta, timezone

import pytest

from clinic.services.appointment_classifier import (
    AppointmentState,
    appointments_on,
    classify,
    is_overdue,
    overdue_appointments,
    upcoming_appointments,
)
from tests.factories.entity_factories import make_appointment


@pytest.mark.appointment
class TestClassify:
    def test_scheduled_in_the_past_is_overdue(self, now):
        appointment = make_appointment(date=now - timedelta(days=2))
        assert classify(appointment, now) is AppointmentState.OVERDUE
        assert is_overdue(appointment, now)

    def test_earlier_today_is_overdue(self, now):
        appointment = make_appointment(date=now - timedelta(minutes=1))
        assert classify(appointment, now) is AppointmentState.OVERDUE

    def test_later_today_is_due_today(self, now):
        appointment = make_appointment(date=now + timedelta(hours=2))
        assert classify(appointment, now) is AppointmentState.DUE_TODAY
        assert not is_overdue(appointment, now)

    def test_exactly_now_is_not_overdue(self, now):
        assert classify(make_appointment(date=now), now) is AppointmentState.DUE_TODAY

    def test_future_day_is_scheduled_future(self, now):
        appointment = make_appointment(date=now + timedelta(days=1))
        assert classify(appointment, now) is AppointmentState.SCHEDULED_FUTURE

    @pytest.mark.parametrize("offset", [timedelta(days=-30), timedelta(0), timedelta(days=30)])
    def test_completed_is_never_overdue(self, now, offset):
        appointment = make_appointment(date=now + offset, status="completed")
        assert classify(appointment, now) is AppointmentState.COMPLETED
        assert not is_overdue(appointment, now)

    def test_cancelled_is_terminal(self, now):
        appointment = make_appointment(date=now - timedelta(days=1), status="cancelled")
        assert classify(appointment, now) is AppointmentState.CANCELLED

    def test_classification_follows_the_clock(self, now):
        appointment = make_appointment(date=now + timedelta(hours=1))
        assert not is_overdue(appointment, now)
        assert is_overdue(appointment, now + timedelta(hours=2))


@pytest.mark.appointment
class TestSelections:
    @pytest.fixture
    def agenda(self, now):
        return [
            make_appointment(id="late", date=now - timedelta(days=1)),
            make_appointment(id="later-today", date=now + timedelta(hours=3)),
            make_appointment(id="done", date=now - timedelta(days=3), status="completed"),
            make_appointment(id="tomorrow", date=now + timedelta(days=1)),
            make_appointment(id="very-late", date=now - timedelta(days=10)),
        ]

    def test_overdue_appointments_oldest_first(self, agenda, now):
        assert [a.id for a in overdue_appointments(agenda, now)] == ["very-late", "late"]

    def test_appointments_on_day(self, agenda, now):
        assert [a.id for a in appointments_on(agenda, now.date())] == ["later-today"]
        assert appointments_on(agenda, date(2000, 1, 1)) == []

    def test_upcoming_appointments_with_limit(self, agenda, now):
        assert [a.id for a in upcoming_appointments(agenda, now)] == ["later-today", "tomorrow"]
        assert [a.id for a in upcoming_appointments(agenda, now, limit=1)] == ["later-today"]

    def test_empty_inputs(self, now):
        assert overdue_appointments([], now) == []
        assert upcoming_appointments([], now) == []


@pytest.mark.appointment
class TestAwareClock:
    # Tests run with TZ=UTC, so a UTC-aware clock reads the same wall time
    def test_aware_now_classifies_like_local_wall_clock(self, now):
        aware = now.replace(tzinfo=timezone.utc)
        assert classify(make_appointment(date=now - timedelta(days=2)), aware) is (
            AppointmentState.OVERDUE
        )
        assert classify(make_appointment(date=now + timedelta(hours=1)), aware) is (
            AppointmentState.DUE_TODAY
        )

    def test_aware_now_in_list_helpers(self, now):
        aware = now.replace(tzinfo=timezone.utc)
        past = make_appointment(id="past", date=now - timedelta(days=1))
        soon = make_appointment(id="soon", date=now + timedelta(days=1))

        assert [a.id for a in overdue_appointments([past, soon], aware)] == ["past"]
        assert [a.id for a in upcoming_appointments([past, soon], aware)] == ["soon"]
