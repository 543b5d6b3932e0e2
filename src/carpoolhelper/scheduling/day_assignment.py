"""Single-day driver and passenger assignment.

The engine has no side effects: identical inputs always give the same
assignment and warnings, apart from the generated assignment id.
"""

import uuid
from datetime import date, timedelta
from typing import Callable, Optional

from carpoolhelper.config import SchedulingConfig
from carpoolhelper.domain.models import (
    DayAssignmentResult,
    FairnessMetric,
    GroupEntity,
    ScheduleAssignment,
    ScheduleGenerationOptions,
    WeeklyPreference,
    day_name,
    week_start_for,
)
from carpoolhelper.domain.policies import (
    DefaultPassengerPolicy,
    DriverSelectionPolicy,
    PassengerSelectionPolicy,
    driver_policy_for,
)


class DayAssignmentEngine:
    """Assigns a driver and passengers for one weekday.

    Example:
        >>> engine = DayAssignmentEngine()
        >>> result = engine.generate_day_assignment(
        ...     group, preferences, metrics, 0, date(2024, 1, 15), options
        ... )
        >>> result.assignment.driver_id
    """

    def __init__(
        self,
        config: Optional[SchedulingConfig] = None,
        passenger_policy: Optional[PassengerSelectionPolicy] = None,
        driver_policy: Optional[DriverSelectionPolicy] = None,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ):
        """Initialize the engine.

        Args:
            config: Placeholder times, distance and seat limit.
            passenger_policy: Passenger selection rule. Defaults to the first
                ``config.max_passengers`` available members in group order.
            driver_policy: Fixed driver rule. When omitted the rule follows
                ``options.consider_fairness`` on each call.
            id_factory: Source of assignment ids.
        """
        self.config = config or SchedulingConfig()
        self.passenger_policy = passenger_policy or DefaultPassengerPolicy(
            seat_limit=self.config.max_passengers
        )
        self.driver_policy = driver_policy
        self.id_factory = id_factory

    def generate_day_assignment(
        self,
        group: GroupEntity,
        preferences: list[WeeklyPreference],
        fairness_metrics: list[FairnessMetric],
        day_of_week: int,
        week_start: date,
        options: ScheduleGenerationOptions,
    ) -> DayAssignmentResult:
        """Assign a weekday's carpool.

        Args:
            group: Group being scheduled; members are considered in its order.
            preferences: Weekly preferences submitted for the week.
            fairness_metrics: Current fairness metrics for the group.
            day_of_week: School-day index (Monday=0 to Friday=4).
            week_start: Monday of the week.
            options: Generation options; ``consider_fairness`` picks the
                driver rule.

        Returns:
            DayAssignmentResult with the assignment, or no assignment and a
            warning when nobody can drive or nobody can ride.
        """
        name = day_name(day_of_week)
        available_drivers, available_passengers = self.partition_members(
            group, preferences, name
        )

        if not available_drivers:
            return DayAssignmentResult(warnings=[f"No available drivers for {name}"])
        if not available_passengers:
            return DayAssignmentResult(warnings=[f"No available passengers for {name}"])

        policy = self.driver_policy or driver_policy_for(options.consider_fairness)
        driver_id = policy.select_driver(available_drivers, fairness_metrics, day_of_week)
        passengers = self.passenger_policy.select_passengers(available_passengers, driver_id)

        assignment = ScheduleAssignment(
            id=self.id_factory(),
            day_of_week=day_of_week,
            date=week_start_for(week_start) + timedelta(days=day_of_week),
            driver_id=driver_id,
            passengers=passengers,
            scheduled_start_time=self.config.default_start_time,
            scheduled_end_time=self.config.default_end_time,
            estimated_distance=self.config.estimated_distance,
            fairness_impact=self._fairness_impact(driver_id, fairness_metrics),
        )
        return DayAssignmentResult(assignment=assignment)

    def partition_members(
        self,
        group: GroupEntity,
        preferences: list[WeeklyPreference],
        name: str,
    ) -> tuple[list[str], list[str]]:
        """Split group members into available drivers and passengers for a day.

        Members without a submitted preference are unavailable.

        Returns:
            Tuple of (available_drivers, available_passengers) in group order.
        """
        by_user = {p.user_id: p for p in preferences}
        drivers = []
        passengers = []

        for member_id in group.member_ids:
            preference = by_user.get(member_id)
            if preference is None:
                continue
            day_pref = preference.for_day(name)
            if day_pref.can_drive:
                drivers.append(member_id)
            if day_pref.can_passenger:
                passengers.append(member_id)

        return drivers, passengers

    def _fairness_impact(self, driver_id: str, fairness_metrics: list[FairnessMetric]) -> float:
        for metric in fairness_metrics:
            if metric.user_id == driver_id:
                return metric.fairness_debt
        return 0.0
