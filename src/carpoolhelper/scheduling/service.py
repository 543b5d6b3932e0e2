"""Scheduling domain service.

Public entry point for preference collection, schedule generation,
fairness tracking and schedule administration. Every method returns a
``ServiceResult``; failures are reported in the envelope and never raised.
"""

import logging
from datetime import date, datetime
from typing import Callable, Optional

from carpoolhelper.config import SchedulingConfig
from carpoolhelper.domain.models import (
    DayPreference,
    FairnessMetric,
    GroupEntity,
    PreferenceStatus,
    PreferenceStatusSummary,
    ScheduleGenerationOptions,
    WeeklyPreference,
    WeeklySchedule,
    week_start_for,
)
from carpoolhelper.domain.policies import (
    DefaultScheduleStatusPolicy,
    ScheduleStatusPolicy,
    parse_status,
)
from carpoolhelper.domain.results import (
    BadRequestError,
    ForbiddenError,
    ServiceResult,
)
from carpoolhelper.integrations.collaborators import (
    Directory,
    NotificationDispatcher,
    TripMaterializer,
)
from carpoolhelper.scheduling.weekly_scheduler import ScheduleGenerator
from carpoolhelper.storage.repositories import (
    InMemoryPreferenceRepository,
    InMemoryScheduleRepository,
    PreferenceRepository,
    ScheduleRepository,
)

logger = logging.getLogger(__name__)

_UNSET = object()


class SchedulingService:
    """Carpool scheduling and fairness service.

    Collaborators are passed in explicitly; storage defaults to the
    in-memory repositories, which are not durable.

    Example:
        >>> service = SchedulingService(directory, trip_materializer=trips)
        >>> service.submit_weekly_preferences("U1", "G1", date(2024, 1, 15), prefs)
        >>> result = service.generate_weekly_schedule(
        ...     ScheduleGenerationOptions(group_id="G1", week_start_date=date(2024, 1, 15))
        ... )
        >>> if result.success:
        ...     print(result.data.fairness_score)
    """

    def __init__(
        self,
        directory: Directory,
        preference_repository: Optional[PreferenceRepository] = None,
        schedule_repository: Optional[ScheduleRepository] = None,
        trip_materializer: Optional[TripMaterializer] = None,
        notification_dispatcher: Optional[NotificationDispatcher] = None,
        config: Optional[SchedulingConfig] = None,
        status_policy: Optional[ScheduleStatusPolicy] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.directory = directory
        self.preferences = preference_repository or InMemoryPreferenceRepository(clock=clock)
        self.schedules = schedule_repository or InMemoryScheduleRepository()
        self.notification_dispatcher = notification_dispatcher
        self.config = config or SchedulingConfig()
        self.status_policy = status_policy or DefaultScheduleStatusPolicy()
        self.clock = clock

        self.generator = ScheduleGenerator(
            directory=directory,
            preference_repository=self.preferences,
            schedule_repository=self.schedules,
            trip_materializer=trip_materializer,
            notification_dispatcher=notification_dispatcher,
            config=self.config,
            clock=clock,
        )

    # Preferences

    def submit_weekly_preferences(
        self,
        user_id: str,
        group_id: str,
        week_start: date,
        preferences: dict[str, DayPreference],
    ) -> ServiceResult[WeeklyPreference]:
        """Create or update a member's preferences for a week.

        Resubmitting for the same (user, group, week) updates the existing
        record and resets its status to submitted.
        """
        logger.info("Submitting weekly preferences for user %s in group %s", user_id, group_id)
        try:
            group = self._require_group(group_id)
            if not group.is_member(user_id):
                raise BadRequestError("User is not a member of this group")

            record, updated = self.preferences.upsert(user_id, group_id, week_start, preferences)
        except Exception as exc:
            logger.error("Failed to submit weekly preferences: %s", exc)
            return ServiceResult.from_exception(exc)

        logger.info("Weekly preferences %s stored for user %s", record.id, user_id)
        message = (
            "Preferences updated successfully"
            if updated
            else "Preferences submitted successfully"
        )
        return ServiceResult.ok(record, message=message)

    def get_preference_status(
        self,
        group_id: str,
        week_start: date,
        requester_id: str,
    ) -> ServiceResult[PreferenceStatusSummary]:
        """Summarize which members have submitted preferences for a week."""
        logger.info("Getting preference status for group %s, week of %s", group_id, week_start)
        try:
            group = self._require_group(group_id)
            self._require_access(group, requester_id)
            summary = self._preference_status(group, week_start)
        except Exception as exc:
            logger.error("Failed to get preference status: %s", exc)
            return ServiceResult.from_exception(exc)

        return ServiceResult.ok(summary, message="Preference status retrieved successfully")

    def get_weekly_preferences(
        self,
        user_id: str,
        group_id: str,
        week_start: date,
    ) -> ServiceResult[list[WeeklyPreference]]:
        """Get a user's preference records for a group's week (zero or one)."""
        try:
            record = self.preferences.find(user_id, group_id, week_start)
        except Exception as exc:
            logger.error("Error getting weekly preferences: %s", exc)
            return ServiceResult.from_exception(exc)
        return ServiceResult.ok([record] if record is not None else [])

    def update_weekly_preferences(
        self,
        user_id: str,
        group_id: str,
        week_start: date,
        preferences: dict[str, DayPreference],
    ) -> ServiceResult[WeeklyPreference]:
        """Replace the preferences of an existing record.

        Unlike submit_weekly_preferences this never creates a record.
        """
        try:
            record = self.preferences.find(user_id, group_id, week_start)
            if record is None:
                raise BadRequestError("Preference not found")

            record.preferences = dict(preferences)
            record.status = PreferenceStatus.SUBMITTED
            record.submitted_at = self.clock()
            self.preferences.save(record)
        except Exception as exc:
            logger.error("Error updating weekly preferences: %s", exc)
            return ServiceResult.from_exception(exc)
        return ServiceResult.ok(record, message="Preferences updated successfully")

    def send_preference_reminders(
        self,
        group_id: str,
        week_start: date,
        sender_id: str,
    ) -> ServiceResult[int]:
        """Remind every member without a submission for the week.

        Returns the number of reminders handed to the dispatcher. A failed
        dispatch is logged and not counted.
        """
        logger.info("Sending preference reminders for group %s, week of %s", group_id, week_start)
        try:
            group = self._require_group(group_id)
            self._require_access(group, sender_id)
            pending = self._preference_status(group, week_start).pending_members
            monday = week_start_for(week_start)

            sent = 0
            warnings = []
            for member_id in pending:
                if self._send_reminder(member_id, group_id, monday):
                    sent += 1
                else:
                    warnings.append(f"Reminder to {member_id} could not be sent")
        except Exception as exc:
            logger.error("Failed to send preference reminders: %s", exc)
            return ServiceResult.from_exception(exc)

        logger.info("Preference reminders sent for group %s: %d", group_id, sent)
        return ServiceResult.ok(sent, message=f"Reminders sent to {sent} members", warnings=warnings)

    # Generation and fairness

    def generate_weekly_schedule(
        self,
        options: ScheduleGenerationOptions,
    ) -> ServiceResult[WeeklySchedule]:
        """Generate a schedule for a group's week.

        Dry runs return a draft without storing it or creating trips.
        """
        try:
            result = self.generator.generate(options)
        except Exception as exc:
            logger.exception("Failed to generate weekly schedule for group %s", options.group_id)
            return ServiceResult.from_exception(exc)

        schedule = result.schedule
        return ServiceResult.ok(
            schedule,
            message=f"Schedule generated with {len(schedule.assignments)} assignments",
            warnings=result.warnings,
        )

    def get_fairness_metrics(
        self,
        group_id: str,
        requester_id: str,
    ) -> ServiceResult[list[FairnessMetric]]:
        """Get the fairness view of a group's driving history."""
        logger.info("Getting fairness metrics for group %s", group_id)
        try:
            group = self._require_group(group_id)
            self._require_access(group, requester_id)
            metrics = self.generator.calculate_fairness_metrics(group)
        except Exception as exc:
            logger.error("Failed to get fairness metrics: %s", exc)
            return ServiceResult.from_exception(exc)

        return ServiceResult.ok(metrics, message="Fairness metrics retrieved successfully")

    # Schedules

    def get_schedule(self, schedule_id: str) -> ServiceResult[WeeklySchedule]:
        """Get a stored schedule by id."""
        try:
            schedule = self.schedules.get(schedule_id)
            if schedule is None:
                raise BadRequestError("Schedule not found")
        except Exception as exc:
            logger.error("Error getting schedule %s: %s", schedule_id, exc)
            return ServiceResult.from_exception(exc)
        return ServiceResult.ok(schedule)

    def get_schedules(
        self,
        group_id: Optional[str] = None,
        week_start: Optional[date] = None,
        status=None,
        limit: Optional[int] = None,
    ) -> ServiceResult[list[WeeklySchedule]]:
        """List stored schedules matching every given filter.

        Args:
            group_id: Only schedules of this group.
            week_start: Only schedules for the week containing this date.
            status: Only schedules in this status (enum or its value).
            limit: Return at most this many schedules, oldest first.
        """
        try:
            status_filter = None
            if status is not None:
                status_filter = parse_status(status)
                if status_filter is None:
                    raise BadRequestError(f"Invalid schedule status: {status}")

            schedules = self.schedules.query(
                group_id=group_id,
                week_start=week_start,
                status=status_filter,
            )
            if limit:
                schedules = schedules[:limit]
        except Exception as exc:
            logger.error("Error getting schedules: %s", exc)
            return ServiceResult.from_exception(exc)
        return ServiceResult.ok(schedules)

    def update_schedule(
        self,
        schedule_id: str,
        status=None,
        notes=_UNSET,
    ) -> ServiceResult[WeeklySchedule]:
        """Change a schedule's status and/or notes.

        Status moves forward only (draft, published, archived). Passing
        ``notes=None`` clears the notes; omitting it leaves them unchanged.
        The transition is checked against the stored schedule inside the
        repository update, so a concurrent change cannot be overwritten.
        """
        try:
            target = None
            if status is not None:
                target = parse_status(status)
                if target is None:
                    raise BadRequestError(f"Invalid schedule status: {status}")

            def apply(s: WeeklySchedule) -> None:
                if target is not None:
                    if not self.status_policy.can_transition(s.status, target):
                        raise BadRequestError(
                            f"Cannot change schedule status from "
                            f"{s.status.value} to {target.value}"
                        )
                    s.status = target
                if notes is not _UNSET:
                    s.notes = notes

            updated = self.schedules.update(schedule_id, apply)
            if updated is None:
                raise BadRequestError("Schedule not found")
        except Exception as exc:
            logger.error("Error updating schedule %s: %s", schedule_id, exc)
            return ServiceResult.from_exception(exc)

        logger.info("Schedule %s updated (status=%s)", schedule_id, updated.status.value)
        return ServiceResult.ok(updated)

    def delete_schedule(self, schedule_id: str) -> ServiceResult[None]:
        """Permanently delete a schedule."""
        try:
            if not self.schedules.delete(schedule_id):
                raise BadRequestError("Schedule not found")
        except Exception as exc:
            logger.error("Error deleting schedule %s: %s", schedule_id, exc)
            return ServiceResult.from_exception(exc)

        logger.info("Schedule %s deleted", schedule_id)
        return ServiceResult.ok(message="Schedule deleted")

    # Helpers

    def _require_group(self, group_id: str) -> GroupEntity:
        group = self.directory.get_group_by_id(group_id)
        if group is None:
            raise BadRequestError("Group not found")
        return group

    def _require_access(self, group: GroupEntity, requester_id: str) -> None:
        """Allow members, the group's admins, and directory-level admins."""
        if group.is_member(requester_id) or group.is_admin(requester_id):
            return
        if self._is_system_admin(requester_id):
            return
        raise ForbiddenError("Access denied")

    def _is_system_admin(self, user_id: str) -> bool:
        try:
            user = self.directory.get_user_by_id(user_id)
        except Exception:
            logger.warning("Directory lookup failed for user %s", user_id, exc_info=True)
            return False
        return user is not None and user.role.value in self.config.system_admin_roles

    def _preference_status(self, group: GroupEntity, week_start: date) -> PreferenceStatusSummary:
        submitted = {p.user_id for p in self.preferences.list_for_week(group.id, week_start)}
        member_ids = group.member_ids
        pending = [m for m in member_ids if m not in submitted]
        submitted_count = len(member_ids) - len(pending)

        return PreferenceStatusSummary(
            total_members=len(member_ids),
            submitted_count=submitted_count,
            pending_members=pending,
            submission_rate=(submitted_count / len(member_ids) * 100) if member_ids else 0.0,
        )

    def _send_reminder(self, member_id: str, group_id: str, week_start: date) -> bool:
        if self.notification_dispatcher is None:
            logger.warning("No notification dispatcher configured; reminder to %s skipped", member_id)
            return False
        try:
            self.notification_dispatcher.notify(member_id, group_id, week_start)
        except Exception:
            logger.warning("Reminder to %s failed", member_id, exc_info=True)
            return False
        return True
