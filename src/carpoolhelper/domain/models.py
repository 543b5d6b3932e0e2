"""Domain models for the carpool scheduling system.

This module contains all core data structures used throughout the scheduling
system, including weekly preferences, schedules, day assignments, fairness
metrics, and the read-only directory records supplied by the group service.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Optional

WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]
SCHOOL_DAYS = len(WEEKDAY_NAMES)


def week_start_for(d: date) -> date:
    """Normalize a date to the Monday of its ISO week.

    Sunday maps back six days, so the week always runs Monday to Sunday.
    """
    if isinstance(d, datetime):
        d = d.date()
    return d - timedelta(days=d.weekday())


def is_same_week(first: date, second: date) -> bool:
    """Check whether two dates fall within the same Monday-anchored week."""
    return week_start_for(first) == week_start_for(second)


def day_name(day_of_week: int) -> str:
    """Get the weekday name for a school-day index (Monday=0)."""
    return WEEKDAY_NAMES[day_of_week]


class UserRole(Enum):
    """Directory-level role of a user."""

    PARENT = "parent"
    GROUP_ADMIN = "group_admin"
    SUPER_ADMIN = "super_admin"


class PreferenceStatus(Enum):
    """Processing state of a weekly preference submission."""

    PENDING = "pending"
    SUBMITTED = "submitted"
    PROCESSED = "processed"


class ScheduleStatus(Enum):
    """Lifecycle state of a weekly schedule."""

    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


@dataclass(frozen=True)
class UserEntity:
    """A user record owned by the directory.

    Attributes:
        id: Unique identifier for the user.
        first_name: Given name.
        last_name: Family name.
        role: Directory-level role.
    """

    id: str
    first_name: str = ""
    last_name: str = ""
    role: UserRole = UserRole.PARENT

    @property
    def display_name(self) -> str:
        """Full name, or the id when no name is on record."""
        name = f"{self.first_name} {self.last_name}".strip()
        return name or self.id


@dataclass(frozen=True)
class GroupMember:
    """Membership entry of a carpool group."""

    user_id: str
    can_drive: bool = True


@dataclass
class GroupEntity:
    """A carpool group record owned by the directory.

    Attributes:
        id: Unique identifier for the group.
        name: Display name for the group.
        members: Members in their directory order.
        group_admin_id: User id of the group administrator.
        co_admin_ids: User ids of co-administrators.
        max_members: Capacity of the group.
    """

    id: str
    name: str = ""
    members: list[GroupMember] = field(default_factory=list)
    group_admin_id: Optional[str] = None
    co_admin_ids: list[str] = field(default_factory=list)
    max_members: int = 10

    @property
    def member_ids(self) -> list[str]:
        """Member user ids in directory order."""
        return [m.user_id for m in self.members]

    def is_member(self, user_id: str) -> bool:
        """Check if a user belongs to the group."""
        return any(m.user_id == user_id for m in self.members)

    def get_member(self, user_id: str) -> Optional[GroupMember]:
        """Get the membership entry for a user, if any."""
        for member in self.members:
            if member.user_id == user_id:
                return member
        return None

    def is_admin(self, user_id: str) -> bool:
        """Check if a user administers the group (admin or co-admin)."""
        return user_id == self.group_admin_id or user_id in self.co_admin_ids


@dataclass
class DayPreference:
    """A member's availability for one weekday.

    Attributes:
        can_drive: Member can drive the carpool this day.
        can_passenger: Member (their child) can ride this day.
        preferred_pickup_time: Optional preferred pickup time, e.g. "07:45".
        preferred_dropoff_time: Optional preferred dropoff time.
        notes: Free-form notes for the admin.
    """

    can_drive: bool = False
    can_passenger: bool = False
    preferred_pickup_time: Optional[str] = None
    preferred_dropoff_time: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def unavailable(cls) -> "DayPreference":
        """Create a preference representing a day with no participation."""
        return cls(can_drive=False, can_passenger=False)

    @classmethod
    def flexible(cls) -> "DayPreference":
        """Create a preference for a member who can drive or ride."""
        return cls(can_drive=True, can_passenger=True)


@dataclass
class WeeklyPreference:
    """One member's availability for a week in a group.

    The natural key is (user_id, group_id, week_start). At most one record
    exists per key; resubmissions update it in place.

    Attributes:
        id: Unique identifier for the record.
        user_id: Submitting member.
        group_id: Group the preference applies to.
        week_start: Monday of the week (normalized on construction).
        preferences: Mapping from weekday name to DayPreference.
        submitted_at: When the record was last submitted.
        status: Processing status.
    """

    id: str
    user_id: str
    group_id: str
    week_start: date
    preferences: dict[str, DayPreference] = field(default_factory=dict)
    submitted_at: Optional[datetime] = None
    status: PreferenceStatus = PreferenceStatus.SUBMITTED

    def __post_init__(self):
        self.week_start = week_start_for(self.week_start)

    @property
    def natural_key(self) -> tuple[str, str, date]:
        """The (user_id, group_id, week_start) key."""
        return (self.user_id, self.group_id, self.week_start)

    def for_day(self, name: str) -> DayPreference:
        """Get the preference for a weekday name, unavailable if missing."""
        return self.preferences.get(name, DayPreference.unavailable())


@dataclass
class ScheduleAssignment:
    """The carpool for one weekday: a driver and their passengers.

    Attributes:
        id: Unique identifier for the assignment.
        day_of_week: School-day index, Monday=0 to Friday=4.
        date: Calendar date of the trip.
        driver_id: Member driving this day.
        passengers: Members riding this day, driver excluded.
        scheduled_start_time: Planned departure.
        scheduled_end_time: Planned arrival.
        estimated_distance: Estimated trip distance in miles.
        fairness_impact: Driver's fairness debt when the assignment was made.
    """

    id: str
    day_of_week: int
    date: date
    driver_id: str
    passengers: list[str] = field(default_factory=list)
    scheduled_start_time: time = time(8, 0)
    scheduled_end_time: time = time(8, 30)
    estimated_distance: float = 10.0
    fairness_impact: float = 0.0

    @property
    def day_name(self) -> str:
        """Weekday name of the assignment."""
        return day_name(self.day_of_week)

    @property
    def participants(self) -> list[str]:
        """Driver followed by passengers."""
        return [self.driver_id] + list(self.passengers)

    @property
    def start_datetime(self) -> datetime:
        """Full start datetime of the trip."""
        return datetime.combine(self.date, self.scheduled_start_time)

    @property
    def end_datetime(self) -> datetime:
        """Full end datetime of the trip."""
        return datetime.combine(self.date, self.scheduled_end_time)


@dataclass
class WeeklySchedule:
    """Complete carpool schedule for a group and week.

    Assignments are fixed once the schedule is created; only ``status``
    and ``notes`` change afterwards.

    Attributes:
        id: Unique identifier for the schedule.
        group_id: Group the schedule belongs to.
        week_start: Monday of the scheduled week.
        assignments: Zero to five assignments, one per filled weekday.
        status: Lifecycle state.
        fairness_score: Driving-distribution score for the week (0-1).
        generated_at: Generation timestamp.
        generated_by: User id (or "system") that triggered generation.
        notes: Free-form notes; carries generation warnings.
        superseded_by: Id of the schedule that replaced this one for the
            same week, if it was regenerated.
    """

    id: str
    group_id: str
    week_start: date
    assignments: tuple[ScheduleAssignment, ...] = ()
    status: ScheduleStatus = ScheduleStatus.DRAFT
    fairness_score: float = 1.0
    generated_at: Optional[datetime] = None
    generated_by: str = "system"
    notes: Optional[str] = None
    superseded_by: Optional[str] = None

    def __post_init__(self):
        self.week_start = week_start_for(self.week_start)
        self.assignments = tuple(self.assignments)

    @property
    def is_superseded(self) -> bool:
        """Whether a regenerated schedule replaced this one."""
        return self.superseded_by is not None

    @property
    def week_end(self) -> date:
        """Friday of the scheduled week."""
        return self.week_start + timedelta(days=SCHOOL_DAYS - 1)

    @property
    def schedule_dates(self) -> list[date]:
        """The five school dates of the week."""
        return [self.week_start + timedelta(days=i) for i in range(SCHOOL_DAYS)]

    def get_assignment_for_day(self, day_of_week: int) -> Optional[ScheduleAssignment]:
        """Get the assignment for a weekday index, if one was made."""
        for assignment in self.assignments:
            if assignment.day_of_week == day_of_week:
                return assignment
        return None

    def get_driving_days(self, user_id: str) -> list[int]:
        """Weekday indexes the user drives."""
        return [a.day_of_week for a in self.assignments if a.driver_id == user_id]

    def get_riding_days(self, user_id: str) -> list[int]:
        """Weekday indexes the user rides."""
        return [a.day_of_week for a in self.assignments if user_id in a.passengers]

    def get_participant_ids(self) -> list[str]:
        """Distinct drivers and passengers, in order of first appearance."""
        seen = []
        for assignment in self.assignments:
            for user_id in assignment.participants:
                if user_id not in seen:
                    seen.append(user_id)
        return seen

    def get_weekly_summary(self) -> dict:
        """Get summary statistics for the weekly schedule."""
        driving_counts: dict[str, int] = {}
        for assignment in self.assignments:
            driving_counts[assignment.driver_id] = (
                driving_counts.get(assignment.driver_id, 0) + 1
            )

        filled = {a.day_of_week for a in self.assignments}
        return {
            "days_filled": len(filled),
            "unfilled_days": [
                day_name(i) for i in range(SCHOOL_DAYS) if i not in filled
            ],
            "total_passenger_seats": sum(len(a.passengers) for a in self.assignments),
            "driving_counts": driving_counts,
            "fairness_score": self.fairness_score,
        }


@dataclass
class FairnessMetric:
    """Long-run driving fairness for one group member.

    Derived from schedule history on demand; never stored.

    Attributes:
        user_id: Member the metric describes.
        user_name: Display name from the directory.
        total_assignments: Days the member drove or rode.
        driving_assignments: Days the member drove.
        passenger_assignments: Days the member rode.
        fairness_score: Driving ratio relative to the fair share (1 = fair).
        fairness_debt: Fair share minus driving ratio; positive means the
            member has driven less than their share.
        weekly_capacity: Days per week the member can drive / ride.
    """

    user_id: str
    user_name: str = ""
    total_assignments: int = 0
    driving_assignments: int = 0
    passenger_assignments: int = 0
    fairness_score: float = 1.0
    fairness_debt: float = 0.0
    weekly_capacity: dict[str, int] = field(
        default_factory=lambda: {"can_drive": 0, "can_passenger": SCHOOL_DAYS}
    )

    @property
    def driving_ratio(self) -> float:
        """Share of the member's assignments spent driving."""
        if self.total_assignments == 0:
            return 0.0
        return self.driving_assignments / self.total_assignments

    @classmethod
    def calculate(
        cls,
        user_id: str,
        member_count: int,
        driving_assignments: int,
        passenger_assignments: int,
        user_name: str = "",
        can_drive: bool = True,
    ) -> "FairnessMetric":
        """Calculate a member's metric from their assignment counts."""
        total = driving_assignments + passenger_assignments
        expected_ratio = 1 / member_count if member_count > 0 else 0.0
        actual_ratio = driving_assignments / total if total > 0 else 0.0

        # Members with no history count as exactly fair
        if total > 0 and expected_ratio > 0:
            score = actual_ratio / expected_ratio
        else:
            score = 1.0

        return cls(
            user_id=user_id,
            user_name=user_name or user_id,
            total_assignments=total,
            driving_assignments=driving_assignments,
            passenger_assignments=passenger_assignments,
            fairness_score=score,
            fairness_debt=expected_ratio - actual_ratio,
            weekly_capacity={
                "can_drive": SCHOOL_DAYS if can_drive else 0,
                "can_passenger": SCHOOL_DAYS,
            },
        )


@dataclass
class ScheduleGenerationOptions:
    """Request parameters for generating a weekly schedule.

    Attributes:
        group_id: Group to schedule.
        week_start_date: Any date in the target week.
        consider_fairness: Pick drivers by fairness debt instead of round-robin.
        prioritize_preferences: Reserved for tie-break refinement; unused.
        allow_partial_generation: Accept weeks with unfilled weekdays.
        notify_participants: Notify drivers and passengers once published.
        dry_run: Compute without persisting or creating trips.
        requester_id: User triggering generation (None for the system).
    """

    group_id: str
    week_start_date: date
    consider_fairness: bool = True
    prioritize_preferences: bool = False
    allow_partial_generation: bool = True
    notify_participants: bool = False
    dry_run: bool = False
    requester_id: Optional[str] = None

    @property
    def week_start(self) -> date:
        """Monday of the target week."""
        return week_start_for(self.week_start_date)


@dataclass
class DayAssignmentResult:
    """Outcome of assigning a single weekday."""

    assignment: Optional[ScheduleAssignment] = None
    warnings: list[str] = field(default_factory=list)


@dataclass
class PreferenceStatusSummary:
    """Submission progress for a group's week.

    Attributes:
        total_members: Members in the group.
        submitted_count: Members who submitted preferences.
        pending_members: Member ids still missing a submission.
        submission_rate: Percentage of members who submitted (0-100).
    """

    total_members: int
    submitted_count: int
    pending_members: list[str] = field(default_factory=list)
    submission_rate: float = 0.0


@dataclass
class TripSpec:
    """Trip creation request handed to the trip materializer."""

    group_id: str
    driver_id: str
    scheduled_start_time: datetime
    scheduled_end_time: datetime
    pickup_address: str
    dropoff_address: str
    max_passengers: int = 4
    passengers: list[str] = field(default_factory=list)
    notes: str = ""
