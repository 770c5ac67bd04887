"""Tests for domain records and status transitions."""

import pytest

from therapist_checkin.core.errors import (
    ConflictError,
    DependencyError,
    NotFoundError,
    SchedulingError,
    ValidationError,
)
from therapist_checkin.core.models import (
    Appointment,
    AppointmentStatus,
    Therapist,
    TherapistUpdate,
    can_transition,
    is_terminal_status,
)


class TestAppointmentStatus:
    """Test status transition helpers."""

    def test_scheduled_can_complete_or_cancel(self):
        assert can_transition(AppointmentStatus.SCHEDULED, AppointmentStatus.COMPLETED)
        assert can_transition(AppointmentStatus.SCHEDULED, AppointmentStatus.CANCELLED)

    def test_terminal_statuses_have_no_transitions(self):
        assert not can_transition(AppointmentStatus.CANCELLED, AppointmentStatus.SCHEDULED)
        assert not can_transition(AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED)
        assert is_terminal_status(AppointmentStatus.COMPLETED)
        assert is_terminal_status(AppointmentStatus.CANCELLED)
        assert not is_terminal_status(AppointmentStatus.SCHEDULED)

    def test_status_is_string_valued(self):
        assert AppointmentStatus("scheduled") == AppointmentStatus.SCHEDULED
        assert AppointmentStatus.SCHEDULED == "scheduled"


class TestTherapist:
    def test_to_dict(self):
        therapist = Therapist(id="t1", name="Dr. A", email="a@x.com", phone="+15551234567")
        assert therapist.to_dict() == {
            "id": "t1",
            "name": "Dr. A",
            "email": "a@x.com",
            "phone": "+15551234567",
        }


class TestAppointment:
    """Test appointment record shape."""

    def test_check_in_omits_booking_fields(self):
        record = Appointment(
            id="c1",
            therapist_id="t1",
            therapist_name="Dr. A",
            created_at="2024-06-01T09:00:00.000Z",
            check_in_time="2024-06-01T09:00:00.000Z",
        )

        d = record.to_dict()

        assert not record.is_scheduled
        assert "time_slot" not in d
        assert "status" not in d
        assert d["check_in_time"] == "2024-06-01T09:00:00.000Z"

    def test_booking_serializes_status_value(self):
        record = Appointment(
            id="a1",
            therapist_id="t1",
            therapist_name="Dr. A",
            created_at="2024-06-01T09:00:00.000Z",
            patient_name="Pat",
            date="2024-06-01",
            time_slot="09:00",
            status=AppointmentStatus.SCHEDULED,
        )

        d = record.to_dict()

        assert d["status"] == "scheduled"
        assert record.is_scheduled
        assert d["time_slot"] == "09:00"
        assert "check_in_time" not in d


class TestTherapistUpdate:
    """Test the partial-update field set."""

    def test_from_mapping_drops_id_unknown_and_none(self):
        update = TherapistUpdate.from_mapping(
            {"id": "hijack", "name": "New", "email": None, "color": "red"}
        )
        assert update.fields == {"name": "New"}

    def test_of_only_carries_supplied_fields(self):
        assert TherapistUpdate.of(phone="+15550000000").fields == {"phone": "+15550000000"}

    def test_empty(self):
        assert TherapistUpdate().is_empty
        assert TherapistUpdate.from_mapping({"id": "x"}).is_empty
        assert not TherapistUpdate.of(name="A").is_empty


class TestErrors:
    @pytest.mark.parametrize(
        "error_class,kind",
        [
            (ValidationError, "validation_error"),
            (NotFoundError, "not_found"),
            (ConflictError, "conflict"),
            (DependencyError, "dependency_error"),
        ],
    )
    def test_kind_and_body(self, error_class, kind):
        error = error_class("Something")

        assert isinstance(error, SchedulingError)
        assert error.kind == kind
        assert error.to_dict() == {"error": kind, "message": "Something"}
