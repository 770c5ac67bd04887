"""Shared fixtures: deterministic clock/ids, in-memory storage, mock transports."""

import itertools
from unittest.mock import AsyncMock

import pytest

from therapist_checkin.core.ports import Clock, IdGenerator, MessageSender, ShortMessageSender
from therapist_checkin.core.service import SchedulingService
from therapist_checkin.infra.memory import (
    InMemoryAppointmentRepository,
    InMemoryTherapistRepository,
)

FIXED_NOW = "2024-06-01T09:15:00.000Z"


class FixedClock(Clock):
    """Clock that always returns the same instant."""

    def __init__(self, value: str = FIXED_NOW):
        self.value = value

    def now(self) -> str:
        return self.value


class SequentialIds(IdGenerator):
    """Ids id-1, id-2, ... in call order."""

    def __init__(self, prefix: str = "id"):
        self._counter = itertools.count(1)
        self.prefix = prefix

    def new_id(self) -> str:
        return f"{self.prefix}-{next(self._counter)}"


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def ids():
    return SequentialIds()


@pytest.fixture
def therapist_repo():
    return InMemoryTherapistRepository()


@pytest.fixture
def appointment_repo():
    return InMemoryAppointmentRepository()


@pytest.fixture
def email_sender():
    """Email sender that succeeds."""
    return AsyncMock(spec=MessageSender)


@pytest.fixture
def sms_sender():
    """SMS sender that succeeds."""
    return AsyncMock(spec=ShortMessageSender)


@pytest.fixture
def service(therapist_repo, appointment_repo, email_sender, sms_sender, ids, clock):
    """Service over in-memory storage and mock transports."""
    return SchedulingService(
        therapists=therapist_repo,
        appointments=appointment_repo,
        message_sender=email_sender,
        short_message_sender=sms_sender,
        id_generator=ids,
        clock=clock,
    )
