"""Therapist directory, appointment booking and patient check-in service."""

__version__ = "1.0.0"
