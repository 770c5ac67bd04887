"""API routers."""

from therapist_checkin.api.routes import appointments, checkin, health, therapists

__all__ = ["appointments", "checkin", "health", "therapists"]
