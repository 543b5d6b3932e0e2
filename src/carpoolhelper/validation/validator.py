"""Validation module for verifying schedule correctness.

This module provides a single source of truth for all carpool schedule
constraints. Every generated schedule is validated before it is published.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Optional

from carpoolhelper.domain.models import (
    SCHOOL_DAYS,
    GroupEntity,
    ScheduleAssignment,
    WeeklyPreference,
    WeeklySchedule,
)


class ValidationErrorType(Enum):
    """Types of validation errors."""

    DAY_OUT_OF_RANGE = "day_out_of_range"
    DUPLICATE_DAY = "duplicate_day"
    DATE_MISMATCH = "date_mismatch"
    DRIVER_IS_PASSENGER = "driver_is_passenger"
    DUPLICATE_PASSENGER = "duplicate_passenger"
    TOO_MANY_PASSENGERS = "too_many_passengers"
    NOT_A_MEMBER = "not_a_member"
    DRIVER_UNAVAILABLE = "driver_unavailable"
    PASSENGER_UNAVAILABLE = "passenger_unavailable"
    FAIRNESS_SCORE_OUT_OF_RANGE = "fairness_score_out_of_range"


@dataclass
class ValidationError:
    """A single validation error."""

    error_type: ValidationErrorType
    message: str
    user_id: Optional[str] = None
    day_of_week: Optional[int] = None
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        parts = [f"[{self.error_type.value}]"]
        if self.user_id:
            parts.append(f"User {self.user_id}:")
        parts.append(self.message)
        if self.day_of_week is not None:
            parts.append(f"(day {self.day_of_week})")
        return " ".join(parts)


@dataclass
class ValidationResult:
    """Result of validating a schedule."""

    is_valid: bool
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_error(self, error: ValidationError) -> None:
        """Add an error and mark as invalid."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str) -> None:
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(warning)


class ScheduleValidator:
    """Validates carpool schedules against all constraints.

    Example:
        >>> validator = ScheduleValidator()
        >>> result = validator.validate(schedule, group, preferences)
        >>> if not result.is_valid:
        ...     for error in result.errors:
        ...         print(error)
    """

    def __init__(self, max_passengers: int = 4):
        self.max_passengers = max_passengers

    def validate(
        self,
        schedule: WeeklySchedule,
        group: Optional[GroupEntity] = None,
        preferences: Optional[list[WeeklyPreference]] = None,
    ) -> ValidationResult:
        """Validate a complete weekly schedule.

        Args:
            schedule: The schedule to validate.
            group: Group the schedule belongs to; enables membership checks.
            preferences: Preferences for the week; enables availability checks.

        Returns:
            ValidationResult with is_valid flag and any errors.
        """
        result = ValidationResult(is_valid=True)

        if not 0.0 <= schedule.fairness_score <= 1.0:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.FAIRNESS_SCORE_OUT_OF_RANGE,
                    message=f"Fairness score {schedule.fairness_score} is outside [0, 1]",
                )
            )

        by_user = {p.user_id: p for p in preferences} if preferences is not None else None
        seen_days: set[int] = set()

        for assignment in schedule.assignments:
            if assignment.day_of_week in seen_days:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.DUPLICATE_DAY,
                        message="More than one carpool on the same day",
                        day_of_week=assignment.day_of_week,
                    )
                )
            seen_days.add(assignment.day_of_week)

            self._validate_assignment(assignment, schedule, result)
            if group is not None:
                self._validate_membership(assignment, group, result)
            if by_user is not None and 0 <= assignment.day_of_week < SCHOOL_DAYS:
                self._validate_availability(assignment, by_user, result)

        return result

    def _validate_assignment(
        self,
        assignment: ScheduleAssignment,
        schedule: WeeklySchedule,
        result: ValidationResult,
    ) -> None:
        """Validate a single day's structure."""
        day = assignment.day_of_week

        if not 0 <= day < SCHOOL_DAYS:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.DAY_OUT_OF_RANGE,
                    message=f"Day index must be between 0 and {SCHOOL_DAYS - 1}",
                    day_of_week=day,
                )
            )
            return

        expected_date = schedule.week_start + timedelta(days=day)
        if assignment.date != expected_date:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.DATE_MISMATCH,
                    message=f"Date {assignment.date} should be {expected_date}",
                    day_of_week=day,
                )
            )

        if assignment.driver_id in assignment.passengers:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.DRIVER_IS_PASSENGER,
                    message="Driver is also listed as a passenger",
                    user_id=assignment.driver_id,
                    day_of_week=day,
                )
            )

        if len(set(assignment.passengers)) != len(assignment.passengers):
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.DUPLICATE_PASSENGER,
                    message="Passenger listed more than once",
                    day_of_week=day,
                )
            )

        if len(assignment.passengers) > self.max_passengers:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.TOO_MANY_PASSENGERS,
                    message=(
                        f"{len(assignment.passengers)} passengers exceeds "
                        f"the limit of {self.max_passengers}"
                    ),
                    day_of_week=day,
                    details={"count": len(assignment.passengers)},
                )
            )

        if not assignment.passengers:
            result.add_warning(f"{assignment.day_name} carpool has no passengers")

    def _validate_membership(
        self,
        assignment: ScheduleAssignment,
        group: GroupEntity,
        result: ValidationResult,
    ) -> None:
        """Check that everyone in the car belongs to the group."""
        for user_id in assignment.participants:
            if not group.is_member(user_id):
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.NOT_A_MEMBER,
                        message=f"Not a member of group {group.id}",
                        user_id=user_id,
                        day_of_week=assignment.day_of_week,
                    )
                )

    def _validate_availability(
        self,
        assignment: ScheduleAssignment,
        preferences: dict[str, WeeklyPreference],
        result: ValidationResult,
    ) -> None:
        """Check the day against what each participant declared."""
        name = assignment.day_name
        driver_pref = preferences.get(assignment.driver_id)
        if driver_pref is None or not driver_pref.for_day(name).can_drive:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.DRIVER_UNAVAILABLE,
                    message=f"Did not offer to drive on {name}",
                    user_id=assignment.driver_id,
                    day_of_week=assignment.day_of_week,
                )
            )

        for passenger_id in assignment.passengers:
            pref = preferences.get(passenger_id)
            if pref is None or not pref.for_day(name).can_passenger:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.PASSENGER_UNAVAILABLE,
                        message=f"Did not offer to ride on {name}",
                        user_id=passenger_id,
                        day_of_week=assignment.day_of_week,
                    )
                )
