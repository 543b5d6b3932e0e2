"""Driving-load fairness over a group's schedule history.

This module provides:
- FairnessCalculator: per-member fairness metrics from past schedules
- calculate_schedule_fairness_score: how evenly one week spreads driving
"""

from typing import Callable, Iterable, Optional

from carpoolhelper.domain.models import (
    FairnessMetric,
    GroupEntity,
    ScheduleAssignment,
    UserEntity,
    WeeklySchedule,
)


class FairnessCalculator:
    """Computes fairness metrics for group members.

    The calculation is deterministic and side-effect free: it reads only
    the schedules and group it is given, plus an optional user lookup for
    display names.

    Example:
        >>> calculator = FairnessCalculator(directory.get_user_by_id)
        >>> metrics = calculator.calculate_fairness_metrics(group, schedules)
        >>> metrics[0].user_id  # member who has driven least
    """

    def __init__(self, user_lookup: Optional[Callable[[str], Optional[UserEntity]]] = None):
        """Initialize the calculator.

        Args:
            user_lookup: Callable returning a UserEntity for a user id, used
                for display names. Ids are used as names when omitted.
        """
        self.user_lookup = user_lookup

    def calculate_fairness_metrics(
        self,
        group: GroupEntity,
        schedules: Iterable[WeeklySchedule],
    ) -> list[FairnessMetric]:
        """Calculate one fairness metric per current group member.

        Args:
            group: Group with its current membership.
            schedules: Historical schedules of the group. Schedules for
                other groups and superseded schedules are ignored.

        Returns:
            Metrics sorted ascending by fairness score, so members who have
            driven least relative to their fair share come first.
        """
        member_count = len(group.members)
        if member_count == 0:
            return []

        history = [
            s for s in schedules
            if s.group_id == group.id and not s.is_superseded
        ]
        driving, riding = self._count_assignments(history)

        metrics = []
        for member in group.members:
            metrics.append(
                FairnessMetric.calculate(
                    user_id=member.user_id,
                    member_count=member_count,
                    driving_assignments=driving.get(member.user_id, 0),
                    passenger_assignments=riding.get(member.user_id, 0),
                    user_name=self._display_name(member.user_id),
                    can_drive=member.can_drive,
                )
            )

        # Stable sort keeps group order among equal scores
        metrics.sort(key=lambda m: m.fairness_score)
        return metrics

    def _count_assignments(
        self,
        schedules: list[WeeklySchedule],
    ) -> tuple[dict[str, int], dict[str, int]]:
        """Count driving and riding days per user across schedules."""
        driving: dict[str, int] = {}
        riding: dict[str, int] = {}

        for schedule in schedules:
            for assignment in schedule.assignments:
                driving[assignment.driver_id] = driving.get(assignment.driver_id, 0) + 1
                for passenger_id in assignment.passengers:
                    if passenger_id == assignment.driver_id:
                        continue
                    riding[passenger_id] = riding.get(passenger_id, 0) + 1

        return driving, riding

    def _display_name(self, user_id: str) -> str:
        if self.user_lookup is None:
            return user_id
        user = self.user_lookup(user_id)
        if user is None:
            return user_id
        return user.display_name


def calculate_schedule_fairness_score(assignments: Iterable[ScheduleAssignment]) -> float:
    """Score how evenly a week's driving days are spread among its drivers.

    Counts assignments per driver, takes the population variance of those
    counts, and returns ``max(0, 1 - variance)``. An even spread scores 1;
    concentrating days on one driver lowers the score. A week without
    assignments scores 1.
    """
    counts: dict[str, int] = {}
    for assignment in assignments:
        counts[assignment.driver_id] = counts.get(assignment.driver_id, 0) + 1

    if not counts:
        return 1.0

    values = list(counts.values())
    mean = sum(values) / len(values)
    variance = sum((v - mean) ** 2 for v in values) / len(values)
    return max(0.0, 1.0 - variance)
