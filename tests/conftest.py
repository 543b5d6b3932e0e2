"""Shared fixtures for carpool scheduling tests."""

import pytest

from carpoolhelper.domain.models import UserEntity, UserRole
from carpoolhelper.integrations.collaborators import (
    InMemoryDirectory,
    RecordingNotificationDispatcher,
    RecordingTripMaterializer,
)
from carpoolhelper.scheduling.service import SchedulingService
from tests.helpers import FIXED_NOW, make_group


@pytest.fixture
def group():
    """Three-family group A, B, C administered by ADMIN."""
    return make_group(["A", "B", "C"])


@pytest.fixture
def directory(group):
    return InMemoryDirectory(
        groups=[group],
        users=[
            UserEntity(id="A", first_name="Alice", last_name="Adams"),
            UserEntity(id="B", first_name="Bob", last_name="Brown"),
            UserEntity(id="C", first_name="Carol", last_name="Clark"),
            UserEntity(id="ADMIN", first_name="Group", last_name="Admin",
                       role=UserRole.GROUP_ADMIN),
            UserEntity(id="ROOT", role=UserRole.SUPER_ADMIN),
            UserEntity(id="OUTSIDER"),
        ],
    )


@pytest.fixture
def trips():
    return RecordingTripMaterializer()


@pytest.fixture
def notifications():
    return RecordingNotificationDispatcher()


@pytest.fixture
def service(directory, trips, notifications):
    return SchedulingService(
        directory,
        trip_materializer=trips,
        notification_dispatcher=notifications,
        clock=lambda: FIXED_NOW,
    )
