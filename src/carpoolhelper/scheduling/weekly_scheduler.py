"""Weekly schedule generation for a carpool group.

This module provides the ScheduleGenerator class that orchestrates the
day assignment engine across Monday to Friday with support for:
- Fairness-aware or round-robin driver selection
- Warning aggregation for unfilled days
- Week-level fairness scoring
- Publishing: persistence, trip creation and participant notices
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from carpoolhelper.config import SchedulingConfig
from carpoolhelper.domain.models import (
    SCHOOL_DAYS,
    FairnessMetric,
    GroupEntity,
    ScheduleAssignment,
    ScheduleGenerationOptions,
    ScheduleStatus,
    TripSpec,
    WeeklyPreference,
    WeeklySchedule,
    day_name,
)
from carpoolhelper.domain.results import BadRequestError, SchedulingError
from carpoolhelper.integrations.collaborators import (
    Directory,
    NotificationDispatcher,
    TripMaterializer,
)
from carpoolhelper.scheduling.day_assignment import DayAssignmentEngine
from carpoolhelper.scheduling.fairness import (
    FairnessCalculator,
    calculate_schedule_fairness_score,
)
from carpoolhelper.storage.repositories import PreferenceRepository, ScheduleRepository
from carpoolhelper.validation.validator import ScheduleValidator

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Outcome of a weekly generation run.

    Attributes:
        schedule: The generated schedule.
        warnings: Day-level and publishing warnings, weekday order first.
        fairness_metrics: Metrics the driver choices were based on.
        trip_ids: Ids of trips created while publishing.
        superseded_ids: Schedules archived because this one replaced them.
    """

    schedule: WeeklySchedule
    warnings: list[str] = field(default_factory=list)
    fairness_metrics: list[FairnessMetric] = field(default_factory=list)
    trip_ids: list[str] = field(default_factory=list)
    superseded_ids: list[str] = field(default_factory=list)


class ScheduleGenerator:
    """High-level generator for weekly carpool schedules.

    All five weekdays are assigned in memory before anything is written, so
    a failed run never leaves a partial schedule behind.

    Example:
        >>> generator = ScheduleGenerator(directory, preferences, schedules)
        >>> result = generator.generate(ScheduleGenerationOptions(
        ...     group_id="G1", week_start_date=date(2024, 1, 15)
        ... ))
        >>> result.schedule.fairness_score
    """

    def __init__(
        self,
        directory: Directory,
        preference_repository: PreferenceRepository,
        schedule_repository: ScheduleRepository,
        trip_materializer: Optional[TripMaterializer] = None,
        notification_dispatcher: Optional[NotificationDispatcher] = None,
        config: Optional[SchedulingConfig] = None,
        day_engine: Optional[DayAssignmentEngine] = None,
        validator: Optional[ScheduleValidator] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """Initialize the generator with its collaborators.

        Args:
            directory: Source of group and user records.
            preference_repository: Store of weekly preferences.
            schedule_repository: Store of generated schedules.
            trip_materializer: Trip layer called once per published assignment.
            notification_dispatcher: Used when participants are notified.
            config: Scheduling defaults.
            day_engine: Engine for single-day assignment.
            validator: Checks every generated schedule.
            clock: Source of generation timestamps.
        """
        self.directory = directory
        self.preference_repository = preference_repository
        self.schedule_repository = schedule_repository
        self.trip_materializer = trip_materializer
        self.notification_dispatcher = notification_dispatcher
        self.config = config or SchedulingConfig()
        self.day_engine = day_engine or DayAssignmentEngine(config=self.config)
        self.validator = validator or ScheduleValidator(
            max_passengers=self.config.max_passengers
        )
        self.fairness_calculator = FairnessCalculator(directory.get_user_by_id)
        self.clock = clock

    def generate(self, options: ScheduleGenerationOptions) -> GenerationResult:
        """Generate a weekly schedule and, unless a dry run, publish it.

        Args:
            options: Group, week and generation flags.

        Returns:
            GenerationResult with the schedule and accumulated warnings.

        Raises:
            BadRequestError: The group does not exist, or the week could not
                be fully filled and partial generation is not allowed.
            SchedulingError: The generated schedule failed validation.
        """
        week_start = options.week_start
        logger.info(
            "Generating weekly schedule for group %s, week of %s",
            options.group_id,
            week_start,
        )

        group = self.directory.get_group_by_id(options.group_id)
        if group is None:
            raise BadRequestError("Group not found")

        preferences = self.preference_repository.list_for_week(group.id, week_start)
        fairness_metrics = self.calculate_fairness_metrics(group)

        assignments, warnings = self._assign_week(
            group, preferences, fairness_metrics, options
        )

        if not options.allow_partial_generation and len(assignments) < SCHOOL_DAYS:
            raise BadRequestError(
                f"Unable to fill every weekday: {'; '.join(warnings)}"
            )

        schedule = WeeklySchedule(
            id=str(uuid.uuid4()),
            group_id=group.id,
            week_start=week_start,
            assignments=tuple(assignments),
            status=ScheduleStatus.DRAFT if options.dry_run else ScheduleStatus.PUBLISHED,
            fairness_score=calculate_schedule_fairness_score(assignments),
            generated_at=self.clock(),
            generated_by=options.requester_id or self.config.default_generated_by,
        )

        validation = self.validator.validate(schedule, group, preferences)
        if not validation.is_valid:
            raise SchedulingError(
                "Generated schedule failed validation: "
                + "; ".join(str(e) for e in validation.errors)
            )
        warnings.extend(validation.warnings)
        schedule.notes = _warning_notes(warnings)

        result = GenerationResult(
            schedule=schedule,
            warnings=warnings,
            fairness_metrics=fairness_metrics,
        )

        if not options.dry_run:
            self._publish(result, options)

        logger.info(
            "Weekly schedule %s generated: %d assignments, fairness %.3f, %d warnings",
            schedule.id,
            len(schedule.assignments),
            schedule.fairness_score,
            len(result.warnings),
        )
        return result

    def calculate_fairness_metrics(self, group: GroupEntity) -> list[FairnessMetric]:
        """Fairness metrics for a group from its stored schedule history."""
        history = self.schedule_repository.query(group_id=group.id)
        return self.fairness_calculator.calculate_fairness_metrics(group, history)

    def _assign_week(
        self,
        group: GroupEntity,
        preferences: list[WeeklyPreference],
        fairness_metrics: list[FairnessMetric],
        options: ScheduleGenerationOptions,
    ) -> tuple[list[ScheduleAssignment], list[str]]:
        """Run the day engine Monday to Friday.

        Days depend only on preferences and prior metrics, never on each
        other, so the order here only fixes the order of warnings.
        """
        assignments = []
        warnings = []

        for day_of_week in range(SCHOOL_DAYS):
            day_result = self.day_engine.generate_day_assignment(
                group,
                preferences,
                fairness_metrics,
                day_of_week,
                options.week_start,
                options,
            )
            if day_result.assignment is not None:
                assignments.append(day_result.assignment)
            warnings.extend(day_result.warnings)

        return assignments, warnings

    def _publish(self, result: GenerationResult, options: ScheduleGenerationOptions) -> None:
        """Persist the schedule, then run the best-effort side effects."""
        schedule = result.schedule
        superseded = self.schedule_repository.publish(
            schedule, supersede=self.config.supersede_published
        )
        for old in superseded:
            result.superseded_ids.append(old.id)
            logger.info("Schedule %s superseded by %s", old.id, schedule.id)

        result.trip_ids, trip_warnings = self._create_trips(schedule)
        if trip_warnings:
            result.warnings.extend(trip_warnings)
            notes = _warning_notes(result.warnings)
            self.schedule_repository.update(
                schedule.id, lambda s: setattr(s, "notes", notes)
            )

        if options.notify_participants:
            self._notify_participants(schedule)

    def _create_trips(self, schedule: WeeklySchedule) -> tuple[list[str], list[str]]:
        """Create one trip per assignment.

        A failed trip is logged and reported as a warning; it never fails
        the schedule.
        """
        if self.trip_materializer is None:
            return [], []

        trip_ids = []
        warnings = []
        for assignment in schedule.assignments:
            spec = self._trip_spec(schedule, assignment)
            try:
                outcome = self.trip_materializer.create_trip(spec, schedule.generated_by)
            except Exception as exc:
                logger.warning(
                    "Trip creation raised for schedule %s, assignment %s",
                    schedule.id,
                    assignment.id,
                    exc_info=True,
                )
                warnings.append(f"Failed to create trip for {assignment.day_name}: {exc}")
                continue

            if outcome.success:
                if outcome.trip_id:
                    trip_ids.append(outcome.trip_id)
            else:
                logger.warning(
                    "Failed to create trip from schedule %s, assignment %s: %s",
                    schedule.id,
                    assignment.id,
                    outcome.error,
                )
                warnings.append(
                    f"Failed to create trip for {assignment.day_name}: {outcome.error}"
                )

        return trip_ids, warnings

    def _trip_spec(self, schedule: WeeklySchedule, assignment: ScheduleAssignment) -> TripSpec:
        return TripSpec(
            group_id=schedule.group_id,
            driver_id=assignment.driver_id,
            scheduled_start_time=assignment.start_datetime,
            scheduled_end_time=assignment.end_datetime,
            pickup_address=self.config.pickup_address,
            dropoff_address=self.config.dropoff_address,
            max_passengers=self.config.max_passengers,
            passengers=list(assignment.passengers),
            notes=f"Generated from weekly schedule {schedule.id}",
        )

    def _notify_participants(self, schedule: WeeklySchedule) -> None:
        if self.notification_dispatcher is None:
            logger.warning(
                "Participants of schedule %s not notified: no dispatcher configured",
                schedule.id,
            )
            return

        for member_id in schedule.get_participant_ids():
            try:
                self.notification_dispatcher.notify_schedule_published(member_id, schedule)
            except Exception:
                logger.warning(
                    "Schedule notice to %s failed for schedule %s",
                    member_id,
                    schedule.id,
                    exc_info=True,
                )


def _warning_notes(warnings: list[str]) -> Optional[str]:
    return f"Warnings: {'; '.join(warnings)}" if warnings else None


def describe_week(
    schedule: WeeklySchedule,
    names: Optional[dict[str, str]] = None,
) -> list[str]:
    """One line per weekday describing the carpool, for logs and the CLI.

    Args:
        schedule: The schedule to describe.
        names: Optional mapping from user id to display name; ids without
            an entry are shown as is.
    """
    names = names or {}
    lines = []
    for day_of_week in range(SCHOOL_DAYS):
        assignment = schedule.get_assignment_for_day(day_of_week)
        label = f"{day_name(day_of_week):<9}"
        if assignment is None:
            lines.append(f"{label} (no carpool)")
            continue
        driver = names.get(assignment.driver_id, assignment.driver_id)
        riders = ", ".join(names.get(p, p) for p in assignment.passengers) or "none"
        lines.append(
            f"{label} {assignment.date}  driver={driver}  "
            f"passengers={riders}"
        )
    return lines
