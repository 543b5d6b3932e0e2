"""Interfaces to the services the scheduling core depends on.

The directory, trip layer, and notification layer are owned elsewhere;
the scheduling service only receives them through its constructor. The
in-memory implementations here back the tests and the CLI demo.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from carpoolhelper.domain.models import (
    GroupEntity,
    TripSpec,
    UserEntity,
    WeeklySchedule,
)

logger = logging.getLogger(__name__)


@dataclass
class TripCreationResult:
    """Outcome of a trip creation call."""

    success: bool
    trip_id: Optional[str] = None
    error: Optional[str] = None


class Directory(ABC):
    """Read access to group and user records."""

    @abstractmethod
    def get_group_by_id(self, group_id: str) -> Optional[GroupEntity]:
        """Get a group, or None if it does not exist."""
        pass

    @abstractmethod
    def get_user_by_id(self, user_id: str) -> Optional[UserEntity]:
        """Get a user, or None if it does not exist."""
        pass


class TripMaterializer(ABC):
    """Creates trip records for published schedule assignments."""

    @abstractmethod
    def create_trip(self, spec: TripSpec, actor_id: str) -> TripCreationResult:
        """Create one trip on behalf of an actor."""
        pass


class NotificationDispatcher(ABC):
    """Delivers notifications to group members. Fire and forget."""

    @abstractmethod
    def notify(self, member_id: str, group_id: str, week_start: date) -> None:
        """Remind a member to submit preferences for a week."""
        pass

    def notify_schedule_published(self, member_id: str, schedule: WeeklySchedule) -> None:
        """Tell a member a schedule they take part in was published.

        Dispatchers that do not deliver schedule notices may keep this no-op.
        """
        logger.debug(
            "Schedule notice for %s on schedule %s not delivered",
            member_id,
            schedule.id,
        )


class InMemoryDirectory(Directory):
    """Directory backed by dicts of groups and users."""

    def __init__(
        self,
        groups: Optional[list[GroupEntity]] = None,
        users: Optional[list[UserEntity]] = None,
    ):
        self.groups = {g.id: g for g in groups or []}
        self.users = {u.id: u for u in users or []}

    def add_group(self, group: GroupEntity) -> None:
        self.groups[group.id] = group

    def add_user(self, user: UserEntity) -> None:
        self.users[user.id] = user

    def get_group_by_id(self, group_id: str) -> Optional[GroupEntity]:
        return self.groups.get(group_id)

    def get_user_by_id(self, user_id: str) -> Optional[UserEntity]:
        return self.users.get(user_id)


@dataclass
class RecordingTripMaterializer(TripMaterializer):
    """Trip layer that keeps every created trip in memory.

    Attributes:
        trips: Created trips as (trip_id, spec, actor_id) tuples.
        fail_for_drivers: Driver ids whose trips are rejected.
    """

    trips: list[tuple[str, TripSpec, str]] = field(default_factory=list)
    fail_for_drivers: set[str] = field(default_factory=set)

    def create_trip(self, spec: TripSpec, actor_id: str) -> TripCreationResult:
        if spec.driver_id in self.fail_for_drivers:
            return TripCreationResult(
                success=False,
                error=f"Driver {spec.driver_id} cannot accept trips",
            )
        trip_id = str(uuid.uuid4())
        self.trips.append((trip_id, spec, actor_id))
        return TripCreationResult(success=True, trip_id=trip_id)


@dataclass
class RecordingNotificationDispatcher(NotificationDispatcher):
    """Dispatcher that records notifications instead of delivering them."""

    reminders: list[tuple[str, str, date]] = field(default_factory=list)
    schedule_notices: list[tuple[str, str]] = field(default_factory=list)

    def notify(self, member_id: str, group_id: str, week_start: date) -> None:
        logger.info("Preference reminder queued for %s (group %s)", member_id, group_id)
        self.reminders.append((member_id, group_id, week_start))

    def notify_schedule_published(self, member_id: str, schedule: WeeklySchedule) -> None:
        self.schedule_notices.append((member_id, schedule.id))
