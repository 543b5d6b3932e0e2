"""Storage interfaces for preferences and schedules.

The scheduling service only talks to these abstract repositories. The
in-memory implementations serialize access with a lock so a single process
can share one instance between threads without duplicate preference records.
"""

import threading
import uuid
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Callable, Optional

from carpoolhelper.domain.models import (
    DayPreference,
    PreferenceStatus,
    ScheduleStatus,
    WeeklyPreference,
    WeeklySchedule,
    week_start_for,
)


class PreferenceRepository(ABC):
    """Abstract store of weekly preference records."""

    @abstractmethod
    def upsert(
        self,
        user_id: str,
        group_id: str,
        week_start: date,
        preferences: dict[str, DayPreference],
    ) -> tuple[WeeklyPreference, bool]:
        """Create or update the record for a natural key.

        Args:
            user_id: Submitting member.
            group_id: Group of the submission.
            week_start: Any date in the target week.
            preferences: Mapping from weekday name to DayPreference.

        Returns:
            Tuple of (stored record, True if an existing record was updated).
        """
        pass

    @abstractmethod
    def find(self, user_id: str, group_id: str, week_start: date) -> Optional[WeeklyPreference]:
        """Find the record for a natural key, if any."""
        pass

    @abstractmethod
    def list_for_week(self, group_id: str, week_start: date) -> list[WeeklyPreference]:
        """All records for a group's week, in submission order."""
        pass

    @abstractmethod
    def save(self, preference: WeeklyPreference) -> WeeklyPreference:
        """Store a record, replacing any record with the same id."""
        pass


class ScheduleRepository(ABC):
    """Abstract store of weekly schedules."""

    @abstractmethod
    def add(self, schedule: WeeklySchedule) -> WeeklySchedule:
        """Store a new schedule."""
        pass

    @abstractmethod
    def get(self, schedule_id: str) -> Optional[WeeklySchedule]:
        """Get a schedule by id."""
        pass

    @abstractmethod
    def query(
        self,
        group_id: Optional[str] = None,
        week_start: Optional[date] = None,
        status: Optional[ScheduleStatus] = None,
    ) -> list[WeeklySchedule]:
        """List schedules matching every given filter, oldest first."""
        pass

    @abstractmethod
    def update(
        self,
        schedule_id: str,
        mutate: Callable[[WeeklySchedule], None],
    ) -> Optional[WeeklySchedule]:
        """Apply a mutation to a stored schedule under the store's lock.

        Returns:
            The updated schedule, or None if it does not exist.
        """
        pass

    @abstractmethod
    def publish(self, schedule: WeeklySchedule, supersede: bool = True) -> list[WeeklySchedule]:
        """Store a published schedule, replacing the week's current one.

        Finding the group's published schedules for the week, adding the new
        one and archiving the replaced ones happen as a single step.

        Args:
            schedule: The new published schedule.
            supersede: Archive the schedules it replaces and set their
                ``superseded_by``. When False the schedule is only added.

        Returns:
            The schedules that were superseded, oldest first.
        """
        pass

    @abstractmethod
    def delete(self, schedule_id: str) -> bool:
        """Delete a schedule. Returns False if it did not exist.

        Schedules the deleted one had superseded lose their
        ``superseded_by`` link and count toward history again.
        """
        pass


class InMemoryPreferenceRepository(PreferenceRepository):
    """Preference store backed by a dict, keyed by id."""

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self._records: dict[str, WeeklyPreference] = {}
        self._lock = threading.RLock()
        self._clock = clock

    def upsert(
        self,
        user_id: str,
        group_id: str,
        week_start: date,
        preferences: dict[str, DayPreference],
    ) -> tuple[WeeklyPreference, bool]:
        with self._lock:
            existing = self.find(user_id, group_id, week_start)
            if existing is not None:
                existing.preferences = dict(preferences)
                existing.status = PreferenceStatus.SUBMITTED
                existing.submitted_at = self._clock()
                return existing, True

            record = WeeklyPreference(
                id=str(uuid.uuid4()),
                user_id=user_id,
                group_id=group_id,
                week_start=week_start,
                preferences=dict(preferences),
                submitted_at=self._clock(),
                status=PreferenceStatus.SUBMITTED,
            )
            self._records[record.id] = record
            return record, False

    def find(self, user_id: str, group_id: str, week_start: date) -> Optional[WeeklyPreference]:
        key = (user_id, group_id, week_start_for(week_start))
        with self._lock:
            for record in self._records.values():
                if record.natural_key == key:
                    return record
        return None

    def list_for_week(self, group_id: str, week_start: date) -> list[WeeklyPreference]:
        monday = week_start_for(week_start)
        with self._lock:
            return [
                r for r in self._records.values()
                if r.group_id == group_id and r.week_start == monday
            ]

    def save(self, preference: WeeklyPreference) -> WeeklyPreference:
        with self._lock:
            self._records[preference.id] = preference
        return preference

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class InMemoryScheduleRepository(ScheduleRepository):
    """Schedule store backed by an insertion-ordered dict.

    Not durable; contents vanish with the process.
    """

    def __init__(self):
        self._schedules: dict[str, WeeklySchedule] = {}
        self._lock = threading.RLock()

    def add(self, schedule: WeeklySchedule) -> WeeklySchedule:
        with self._lock:
            self._schedules[schedule.id] = schedule
        return schedule

    def get(self, schedule_id: str) -> Optional[WeeklySchedule]:
        with self._lock:
            return self._schedules.get(schedule_id)

    def query(
        self,
        group_id: Optional[str] = None,
        week_start: Optional[date] = None,
        status: Optional[ScheduleStatus] = None,
    ) -> list[WeeklySchedule]:
        monday = week_start_for(week_start) if week_start is not None else None
        with self._lock:
            schedules = list(self._schedules.values())

        if group_id is not None:
            schedules = [s for s in schedules if s.group_id == group_id]
        if monday is not None:
            schedules = [s for s in schedules if s.week_start == monday]
        if status is not None:
            schedules = [s for s in schedules if s.status == status]
        return schedules

    def update(
        self,
        schedule_id: str,
        mutate: Callable[[WeeklySchedule], None],
    ) -> Optional[WeeklySchedule]:
        with self._lock:
            schedule = self._schedules.get(schedule_id)
            if schedule is None:
                return None
            mutate(schedule)
            return schedule

    def publish(self, schedule: WeeklySchedule, supersede: bool = True) -> list[WeeklySchedule]:
        with self._lock:
            previous = [
                s for s in self._schedules.values()
                if s.group_id == schedule.group_id
                and s.week_start == schedule.week_start
                and s.status == ScheduleStatus.PUBLISHED
                and s.id != schedule.id
            ]
            self._schedules[schedule.id] = schedule
            if not supersede:
                return []
            for old in previous:
                old.status = ScheduleStatus.ARCHIVED
                old.superseded_by = schedule.id
            return previous

    def delete(self, schedule_id: str) -> bool:
        with self._lock:
            if self._schedules.pop(schedule_id, None) is None:
                return False
            for schedule in self._schedules.values():
                if schedule.superseded_by == schedule_id:
                    schedule.superseded_by = None
            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._schedules)
