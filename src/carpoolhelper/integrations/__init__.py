"""Interfaces to the directory, trip, and notification services."""

from carpoolhelper.integrations.collaborators import (
    Directory,
    InMemoryDirectory,
    NotificationDispatcher,
    RecordingNotificationDispatcher,
    RecordingTripMaterializer,
    TripCreationResult,
    TripMaterializer,
)

__all__ = [
    # Interfaces
    "Directory",
    "TripMaterializer",
    "NotificationDispatcher",
    "TripCreationResult",
    # In-memory implementations
    "InMemoryDirectory",
    "RecordingTripMaterializer",
    "RecordingNotificationDispatcher",
]
