"""Domain models and business rules for carpool scheduling."""

from carpoolhelper.domain.models import (
    DayAssignmentResult,
    DayPreference,
    FairnessMetric,
    GroupEntity,
    GroupMember,
    PreferenceStatus,
    PreferenceStatusSummary,
    ScheduleAssignment,
    ScheduleGenerationOptions,
    ScheduleStatus,
    TripSpec,
    UserEntity,
    UserRole,
    WeeklyPreference,
    WeeklySchedule,
    is_same_week,
    week_start_for,
)
from carpoolhelper.domain.policies import (
    DefaultPassengerPolicy,
    DefaultScheduleStatusPolicy,
    DriverSelectionPolicy,
    FairnessDebtDriverPolicy,
    PassengerSelectionPolicy,
    RoundRobinDriverPolicy,
    ScheduleStatusPolicy,
)
from carpoolhelper.domain.results import (
    BadRequestError,
    ErrorKind,
    ForbiddenError,
    SchedulingError,
    ServiceResult,
)

__all__ = [
    # Models
    "DayAssignmentResult",
    "DayPreference",
    "FairnessMetric",
    "GroupEntity",
    "GroupMember",
    "PreferenceStatus",
    "PreferenceStatusSummary",
    "ScheduleAssignment",
    "ScheduleGenerationOptions",
    "ScheduleStatus",
    "TripSpec",
    "UserEntity",
    "UserRole",
    "WeeklyPreference",
    "WeeklySchedule",
    "is_same_week",
    "week_start_for",
    # Policies
    "DefaultPassengerPolicy",
    "DefaultScheduleStatusPolicy",
    "DriverSelectionPolicy",
    "FairnessDebtDriverPolicy",
    "PassengerSelectionPolicy",
    "RoundRobinDriverPolicy",
    "ScheduleStatusPolicy",
    # Results
    "BadRequestError",
    "ErrorKind",
    "ForbiddenError",
    "SchedulingError",
    "ServiceResult",
]
