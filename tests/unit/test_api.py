"""Tests for the HTTP API."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from therapist_checkin.api.dependencies import Resources
from therapist_checkin.config import Settings
from therapist_checkin.core.errors import DependencyError
from therapist_checkin.core.ports import MessageSender, ShortMessageSender
from therapist_checkin.infra.memory import (
    InMemoryAppointmentRepository,
    InMemoryTherapistRepository,
)
from therapist_checkin.infra.redis import RateLimiterStore
from therapist_checkin.main import create_app

from tests.conftest import FIXED_NOW, FixedClock, SequentialIds

TOKEN = "test-token-1234567890"
HEADERS = {"x-api-key": TOKEN}


@pytest.fixture
def settings():
    return Settings(
        app_env="development",
        api_token=TOKEN,
        storage_backend="memory",
        rate_limit_enabled=False,
    )


@pytest.fixture
def email_sender():
    return AsyncMock(spec=MessageSender)


@pytest.fixture
def sms_sender():
    return AsyncMock(spec=ShortMessageSender)


@pytest.fixture
def resources(settings, email_sender, sms_sender):
    return Resources(
        settings=settings,
        message_sender=email_sender,
        short_message_sender=sms_sender,
        id_generator=SequentialIds(),
        clock=FixedClock(),
        therapist_repository=InMemoryTherapistRepository(),
        appointment_repository=InMemoryAppointmentRepository(),
    )


@pytest.fixture
def app(settings, resources):
    application = create_app(settings)
    application.state.resources = resources
    return application


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def therapist(client):
    response = client.post(
        "/therapists",
        json={"name": "Dr. A", "email": "a@x.com", "phone": "(555) 123-4567"},
        headers=HEADERS,
    )
    assert response.status_code == 201
    return response.json()


class TestAuth:
    def test_missing_token(self, client):
        response = client.get("/therapists")
        assert response.status_code == 401

    def test_wrong_token(self, client):
        response = client.get("/therapists", headers={"x-api-key": "wrong"})
        assert response.status_code == 401

    def test_health_needs_no_token(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["storage"] == "memory"

    def test_ready_with_memory_storage(self, client):
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["checks"] == {"database": "memory", "redis": "disabled"}

    def test_live(self, client):
        assert client.get("/health/live").json()["status"] == "alive"


class TestTherapistRoutes:
    """Directory endpoints."""

    def test_create_normalizes_phone(self, therapist):
        assert therapist == {
            "id": "id-1",
            "name": "Dr. A",
            "email": "a@x.com",
            "phone": "+15551234567",
        }

    def test_duplicate_name_conflict(self, client, therapist):
        response = client.post(
            "/therapists",
            json={"name": "dr. a", "email": "b@x.com", "phone": "5559876543"},
            headers=HEADERS,
        )

        assert response.status_code == 409
        assert response.json() == {
            "error": "conflict",
            "message": "A therapist with this name already exists",
        }

    def test_missing_field(self, client):
        response = client.post(
            "/therapists",
            json={"name": "Dr. A", "email": "a@x.com"},
            headers=HEADERS,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_invalid_phone(self, client):
        response = client.post(
            "/therapists",
            json={"name": "Dr. A", "email": "a@x.com", "phone": "12345"},
            headers=HEADERS,
        )

        assert response.status_code == 400
        assert "valid US phone number" in response.json()["message"]

    def test_malformed_body(self, client):
        response = client.post("/therapists", json=["not", "an", "object"], headers=HEADERS)

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_list_and_get(self, client, therapist):
        listed = client.get("/therapists", headers=HEADERS).json()
        fetched = client.get(f"/therapists/{therapist['id']}", headers=HEADERS).json()

        assert listed == [therapist]
        assert fetched == therapist

    def test_get_missing(self, client):
        response = client.get("/therapists/missing", headers=HEADERS)

        assert response.status_code == 404
        assert response.json()["message"] == "Therapist not found"

    def test_update_partial(self, client, therapist):
        response = client.put(
            f"/therapists/{therapist['id']}",
            json={"email": "new@x.com", "id": "ignored"},
            headers=HEADERS,
        )

        assert response.status_code == 200
        assert response.json() == {**therapist, "email": "new@x.com"}

    def test_update_missing_is_404(self, client):
        response = client.put("/therapists/missing", json={"name": "X"}, headers=HEADERS)
        assert response.status_code == 404

    def test_delete_is_idempotent(self, client, therapist):
        first = client.delete(f"/therapists/{therapist['id']}", headers=HEADERS)
        second = client.delete(f"/therapists/{therapist['id']}", headers=HEADERS)

        assert first.status_code == second.status_code == 200
        assert first.json() == {"message": "Therapist deleted successfully"}
        assert client.get("/therapists", headers=HEADERS).json() == []


class TestAppointmentRoutes:
    """Booking endpoints."""

    def _book(self, client, therapist_id, slot="09:00"):
        return client.post(
            "/appointments",
            json={
                "patientName": "Jane Doe",
                "therapistId": therapist_id,
                "date": "2024-06-01",
                "timeSlot": slot,
            },
            headers=HEADERS,
        )

    def test_book_returns_camel_case(self, client, therapist):
        response = self._book(client, therapist["id"])

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "scheduled"
        assert body["therapistId"] == therapist["id"]
        assert body["therapistName"] == "Dr. A"
        assert body["timeSlot"] == "09:00"
        assert body["createdAt"] == FIXED_NOW
        assert "checkInTime" not in body

    def test_snake_case_input_accepted(self, client, therapist):
        response = client.post(
            "/appointments",
            json={
                "patient_name": "Jane Doe",
                "therapist_id": therapist["id"],
                "date": "2024-06-01",
                "time_slot": "11:00",
            },
            headers=HEADERS,
        )

        assert response.status_code == 201

    def test_slot_conflict(self, client, therapist):
        assert self._book(client, therapist["id"]).status_code == 201

        conflict = self._book(client, therapist["id"])
        other_slot = self._book(client, therapist["id"], "09:30")

        assert conflict.status_code == 409
        assert conflict.json()["message"] == "Time slot is not available"
        assert other_slot.status_code == 201

    def test_unknown_therapist(self, client):
        response = self._book(client, "missing")
        assert response.status_code == 404

    def test_confirmation_failure_is_502_but_stored(self, client, therapist, email_sender):
        email_sender.send.side_effect = DependencyError("Email delivery failed")

        response = self._book(client, therapist["id"])

        assert response.status_code == 502
        assert response.json() == {
            "error": "dependency_error",
            "message": "Email delivery failed",
        }

        day = client.get(
            f"/therapists/{therapist['id']}/appointments",
            params={"date": "2024-06-01"},
            headers=HEADERS,
        ).json()
        assert len(day) == 1
        assert day[0]["status"] == "scheduled"

    def test_get_appointment(self, client, therapist):
        created = self._book(client, therapist["id"]).json()

        fetched = client.get(f"/appointments/{created['id']}", headers=HEADERS)
        missing = client.get("/appointments/missing", headers=HEADERS)

        assert fetched.json() == created
        assert missing.status_code == 404

    def test_list_requires_date(self, client, therapist):
        response = client.get(f"/therapists/{therapist['id']}/appointments", headers=HEADERS)
        assert response.status_code == 400


class TestCheckInRoutes:
    """Kiosk endpoints."""

    def test_get_lists_therapists(self, client, therapist):
        assert client.get("/check-in", headers=HEADERS).json() == [therapist]

    def test_check_in(self, client, therapist):
        response = client.post(
            "/check-in",
            json={"therapistId": therapist["id"]},
            headers=HEADERS,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Check-in completed successfully"
        assert body["checkIn"]["checkInTime"] == FIXED_NOW
        assert "status" not in body["checkIn"]
        assert "timeSlot" not in body["checkIn"]

    def test_check_in_survives_notification_failure(
        self, client, therapist, email_sender, sms_sender
    ):
        email_sender.send.side_effect = DependencyError("Email delivery failed")
        sms_sender.send.side_effect = DependencyError("SMS delivery failed")

        response = client.post(
            "/check-in",
            json={"therapistId": therapist["id"]},
            headers=HEADERS,
        )

        assert response.status_code == 200

    def test_missing_therapist_id(self, client):
        response = client.post("/check-in", json={}, headers=HEADERS)

        assert response.status_code == 400
        assert response.json()["message"] == "Therapist ID is required"

    def test_unknown_therapist(self, client, resources):
        response = client.post("/check-in", json={"therapistId": "nope"}, headers=HEADERS)

        assert response.status_code == 404
        assert len(resources.appointment_repository) == 0


class TestErrorHandling:
    def test_unexpected_error_is_500(self, settings, resources):
        resources.therapist_repository = AsyncMock(spec=InMemoryTherapistRepository)
        resources.therapist_repository.scan_all.side_effect = RuntimeError("boom")
        application = create_app(settings)
        application.state.resources = resources
        client = TestClient(application, raise_server_exceptions=False)

        response = client.get("/therapists", headers=HEADERS)

        assert response.status_code == 500
        assert response.json()["message"] == "Internal server error"
        assert "boom" not in response.text


class TestRateLimiting:
    @staticmethod
    def _store(used: int, ttl: int, max_requests: int) -> RateLimiterStore:
        pipe = MagicMock()
        pipe.execute = AsyncMock(return_value=[used, ttl])
        redis_client = MagicMock()
        redis_client.pipeline.return_value.__aenter__.return_value = pipe
        return RateLimiterStore(redis_client, max_requests=max_requests, window_seconds=60)

    def test_over_limit_is_429(self, settings, resources):
        settings.rate_limit_enabled = True
        store = self._store(used=2, ttl=30, max_requests=1)

        application = create_app(settings)
        application.state.resources = resources
        client = TestClient(application)

        with patch(
            "therapist_checkin.api.middleware.rate_limit.get_rate_limiter_store",
            AsyncMock(return_value=store),
        ):
            response = client.get("/therapists", headers=HEADERS)

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "30"
        assert response.headers["X-RateLimit-Remaining"] == "0"

    def test_under_limit_allowed(self, settings, resources):
        settings.rate_limit_enabled = True
        store = self._store(used=1, ttl=60, max_requests=10)

        application = create_app(settings)
        application.state.resources = resources
        client = TestClient(application)

        with patch(
            "therapist_checkin.api.middleware.rate_limit.get_rate_limiter_store",
            AsyncMock(return_value=store),
        ):
            response = client.get("/therapists", headers=HEADERS)

        assert response.status_code == 200
        assert response.headers["X-RateLimit-Limit"] == "10"
        assert response.headers["X-RateLimit-Remaining"] == "9"
        assert response.headers["X-RateLimit-Used"] == "1"
