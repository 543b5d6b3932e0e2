"""Storage interfaces and in-memory implementations."""

from carpoolhelper.storage.repositories import (
    InMemoryPreferenceRepository,
    InMemoryScheduleRepository,
    PreferenceRepository,
    ScheduleRepository,
)

__all__ = [
    "PreferenceRepository",
    "ScheduleRepository",
    "InMemoryPreferenceRepository",
    "InMemoryScheduleRepository",
]
