"""Policy definitions for carpool assignment rules.

This module contains configurable policies that define business rules
for choosing drivers, filling passenger seats, and moving schedules through
their lifecycle. Policies are kept separate from the scheduling engine to
allow independent testing and easy modification.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from carpoolhelper.domain.models import FairnessMetric, ScheduleStatus


class DriverSelectionPolicy(ABC):
    """Abstract base class for choosing a day's driver."""

    @abstractmethod
    def select_driver(
        self,
        available_drivers: list[str],
        fairness_metrics: list[FairnessMetric],
        day_of_week: int,
    ) -> str:
        """Choose the driver for a weekday.

        Args:
            available_drivers: Members who can drive, in group order. Never empty.
            fairness_metrics: Current fairness metrics for the group.
            day_of_week: School-day index (Monday=0).

        Returns:
            User id of the selected driver.
        """
        pass


class PassengerSelectionPolicy(ABC):
    """Abstract base class for filling passenger seats."""

    @abstractmethod
    def max_passengers(self) -> int:
        """Maximum passengers per trip."""
        pass

    @abstractmethod
    def select_passengers(
        self,
        available_passengers: list[str],
        driver_id: str,
    ) -> list[str]:
        """Choose passengers for a trip, never including the driver."""
        pass


class ScheduleStatusPolicy(ABC):
    """Abstract base class for schedule lifecycle rules."""

    @abstractmethod
    def can_transition(self, current: ScheduleStatus, target: ScheduleStatus) -> bool:
        """Check if a schedule may move from one status to another."""
        pass


@dataclass
class FairnessDebtDriverPolicy(DriverSelectionPolicy):
    """Pick the available driver with the highest fairness debt.

    Highest debt means the member has driven least relative to their
    fair share. Ties keep the order of the fairness metrics list. Falls back
    to the first available driver when no metrics cover the available drivers.
    """

    def select_driver(
        self,
        available_drivers: list[str],
        fairness_metrics: list[FairnessMetric],
        day_of_week: int,
    ) -> str:
        candidates = [m for m in fairness_metrics if m.user_id in available_drivers]
        if not candidates:
            return available_drivers[0]
        candidates.sort(key=lambda m: m.fairness_debt, reverse=True)
        return candidates[0].user_id


@dataclass
class RoundRobinDriverPolicy(DriverSelectionPolicy):
    """Rotate through available drivers keyed by the weekday index."""

    def select_driver(
        self,
        available_drivers: list[str],
        fairness_metrics: list[FairnessMetric],
        day_of_week: int,
    ) -> str:
        return available_drivers[day_of_week % len(available_drivers)]


@dataclass
class DefaultPassengerPolicy(PassengerSelectionPolicy):
    """Default passenger policy implementation.

    Takes available passengers in group order, skipping the driver,
    up to the seat limit (4 by default). No further ranking.
    """

    seat_limit: int = 4

    def max_passengers(self) -> int:
        return self.seat_limit

    def select_passengers(
        self,
        available_passengers: list[str],
        driver_id: str,
    ) -> list[str]:
        eligible = [p for p in available_passengers if p != driver_id]
        return eligible[: self.seat_limit]


def _default_transitions() -> dict[ScheduleStatus, set[ScheduleStatus]]:
    return {
        ScheduleStatus.DRAFT: {ScheduleStatus.PUBLISHED, ScheduleStatus.ARCHIVED},
        ScheduleStatus.PUBLISHED: {ScheduleStatus.ARCHIVED},
        ScheduleStatus.ARCHIVED: set(),
    }


@dataclass
class DefaultScheduleStatusPolicy(ScheduleStatusPolicy):
    """Forward-only schedule lifecycle.

    draft -> published -> archived, plus draft -> archived. Re-applying the
    current status is allowed and changes nothing.
    """

    transitions: dict[ScheduleStatus, set[ScheduleStatus]] = field(
        default_factory=_default_transitions
    )

    def can_transition(self, current: ScheduleStatus, target: ScheduleStatus) -> bool:
        if current == target:
            return True
        return target in self.transitions.get(current, set())


def driver_policy_for(consider_fairness: bool) -> DriverSelectionPolicy:
    """Get the driver selection policy for a generation mode."""
    if consider_fairness:
        return FairnessDebtDriverPolicy()
    return RoundRobinDriverPolicy()


def parse_status(value) -> Optional[ScheduleStatus]:
    """Coerce a status name or enum member into a ScheduleStatus.

    Returns None for values that are not a known status.
    """
    if isinstance(value, ScheduleStatus):
        return value
    try:
        return ScheduleStatus(value)
    except ValueError:
        return None
